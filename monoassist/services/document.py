"""Transcript loading — validation and decoding of uploaded ``.txt`` files."""

from __future__ import annotations

from monoassist.config import get_settings

ACCEPTED_MIME_TYPES = frozenset({"text/plain"})
# Some browsers report no type (or a generic one) for .txt files
_UNTYPED_MIME_TYPES = frozenset({"", "application/octet-stream"})


class InputError(ValueError):
    """The uploaded file was rejected; message is shown to the user as-is."""


def is_transcript_file(filename: str, mime_type: str) -> bool:
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in ACCEPTED_MIME_TYPES:
        return True
    return mime in _UNTYPED_MIME_TYPES and filename.lower().endswith(".txt")


def decode_transcript(file_bytes: bytes) -> str:
    """Decode UTF-8 (BOM tolerated), falling back to cp1251 for legacy Russian files."""
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("cp1251", errors="replace")


def load_transcript(file_bytes: bytes, filename: str, mime_type: str) -> str:
    """Validate an upload and return its text content.

    Raises:
        InputError: wrong file type or file larger than ``max_upload_size_mb``.
    """
    if not is_transcript_file(filename, mime_type):
        raise InputError("Пожалуйста, загрузите файл формата .txt")

    limit_mb = get_settings().max_upload_size_mb
    size_mb = len(file_bytes) / (1024 * 1024)
    if size_mb > limit_mb:
        raise InputError(f"Файл слишком большой ({size_mb:.1f} МБ). Лимит: {limit_mb} МБ.")

    return decode_transcript(file_bytes)
