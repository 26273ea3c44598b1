"""Run callback work off the acknowledgment path."""

from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import structlog
from structlog.contextvars import bind_contextvars


_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="approval-worker")


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        structlog.get_logger().error(
            "background_task_failed",
            error=repr(exc),
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Submit *func* to the shared worker pool and return its Future.

    The caller's structlog context travels with the task; *trace_id*, when
    given, is bound on top of it. Exceptions raised by *func* are logged and
    kept on the Future rather than lost.
    """

    context = copy_context()
    if trace_id is not None:
        context.run(bind_contextvars, trace_id=trace_id)

    future = _executor.submit(context.run, func, *args, **kwargs)
    future.add_done_callback(_log_failure)
    return future
