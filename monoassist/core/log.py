"""Logging for Mono-Assistant.

Everything goes through the stdlib :mod:`logging` tree.  :func:`setup_logging`
is called once from ``main.py``; it writes JSON lines to a rotating file
(``LOG_FILE``) and, in development, mirrors them to the console.

Helpers:

* :func:`safe_print` logs a one-off message at a given level.
* :func:`request_context` tags every record emitted inside it with a short
  correlation id, so one summary request can be followed from the UI
  handler through the relay.
* :func:`timed` logs start, duration and failure of a blocking step such as
  the relay call or a PDF render.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from monoassist.config import get_settings

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("monoassist_request_id", default="")

# Attributes copied from ``extra={...}`` into the JSON line
_EXTRA_FIELDS = ("duration_ms", "model", "status", "style", "mode", "step", "error")

_PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Always present: ``timestamp``, ``level``, ``logger``, ``message``.
    Added when set: ``request_id``, the known extras, and ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = _request_id.get()
        if rid:
            entry["request_id"] = rid
        entry.update(
            {key: getattr(record, key) for key in _EXTRA_FIELDS if getattr(record, key, None) is not None}
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(*, json_format: bool = True, console: bool = False, level: int = logging.INFO) -> None:
    """Replace the root handlers with a rotating log file (plus console).

    Args:
        json_format: Use :class:`StructuredFormatter`; otherwise a plain
            human-readable line.
        console: Also write to stderr.
        level: Root logger level.
    """
    settings = get_settings()
    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = StructuredFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT)
    file_handler = RotatingFileHandler(
        log_path,
        encoding="utf-8",
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        root.addHandler(stream)

    root.setLevel(level)


def safe_print(text: str, level: int = logging.INFO) -> None:
    """Log *text*; before :func:`setup_logging` has run it is printed instead."""
    if logging.getLogger().handlers:
        logging.getLogger("monoassist").log(level, text)
    else:
        print(text)


def set_request_id(rid: str | None = None) -> str:
    rid = rid or uuid.uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def get_request_id() -> str:
    return _request_id.get()


def clear_request_id() -> None:
    _request_id.set("")


@contextlib.contextmanager
def request_context(rid: str | None = None) -> Iterator[str]:
    """Tag records logged inside the block with a correlation id::

        with request_context() as rid:
            safe_print(f"[{rid}] Requesting summary")
    """
    token = _request_id.set(rid or uuid.uuid4().hex[:12])
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


@contextlib.contextmanager
def timed(operation: str, **extra: Any) -> Iterator[None]:
    """Log how long *operation* took (INFO), or that it failed (ERROR).

    Extra keyword arguments are attached to the closing record, e.g.
    ``timed("render_pdf", style="CLASSIC")``.
    """
    logger = logging.getLogger("monoassist.timing")
    logger.info("[START] %s", operation)
    start = time.monotonic()
    outcome = "FAILED"
    try:
        yield
        outcome = "DONE"
    finally:
        elapsed = round((time.monotonic() - start) * 1000)
        fields = {"duration_ms": elapsed, "step": operation, **extra}
        if outcome == "DONE":
            logger.info("[DONE] %s in %dms", operation, elapsed, extra=fields)
        else:
            logger.error("[FAILED] %s after %dms", operation, elapsed, extra=fields)
