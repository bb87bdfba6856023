"""
Concurrency Infrastructure.

Shared thread pool for blocking file I/O. Attachment payloads are written,
renamed and deleted here so the event loop keeps serving other requests
while an upload streams. The pool is created lazily and shut down with the
application.

Pool sizing is configured in config/settings/concurrency.yaml.

Usage:
    from notegraph.backend.core.concurrency import run_blocking

    await run_blocking(out.write, chunk)
"""

import asyncio
import contextvars
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from notegraph.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_io_pool: ThreadPoolExecutor | None = None


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Without this, structlog's request_id and path bindings would be missing
    from logs emitted by the worker.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking I/O, creating it on first use."""
    global _io_pool
    if _io_pool is None:
        from notegraph.backend.core.config import get_app_config

        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notegraph-io")
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


async def run_blocking(fn: Callable[..., T], *args: Any) -> T:
    """Run ``fn(*args)`` on the I/O pool and await its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_io_pool(), fn, *args)


async def shutdown_pools() -> None:
    """Shut down the I/O pool. Called during application shutdown.

    Pool shutdown blocks until running jobs finish, so it runs in a thread.
    """
    global _io_pool

    if _io_pool is not None:
        await asyncio.to_thread(_io_pool.shutdown, wait=True)
        logger.info("Thread pool shut down")
        _io_pool = None
