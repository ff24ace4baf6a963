"""Worker pool for blocking steps of the workflow.

The relay HTTP call and PDF rendering are synchronous.  Mesop handlers are
async generators, so they hand that work to a small thread pool and keep
yielding status updates to the page while it runs.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import contextvars
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from monoassist.config import get_settings

T = TypeVar("T")

_pool: concurrent.futures.ThreadPoolExecutor | None = None


def get_executor() -> concurrent.futures.ThreadPoolExecutor:
    """Shared pool, sized by ``WORKER_THREADS`` and created on first use."""
    global _pool
    if _pool is None:
        _pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=get_settings().worker_threads,
            thread_name_prefix="monoassist-worker",
        )
    return _pool


async def run_in_executor(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Await ``fn(*args, **kwargs)`` executed on the shared pool.

    The caller's context variables (the logging correlation id) are copied
    into the worker thread.
    """
    ctx = contextvars.copy_context()
    call = functools.partial(ctx.run, fn, *args, **kwargs)
    return await asyncio.get_running_loop().run_in_executor(get_executor(), call)

