# src/core/tasks.py
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TaskRunner(Protocol):
    """Fire-and-forget execution of side effects detached from a request."""

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> None: ...


class ThreadPoolTaskRunner:
    """Runs tasks on a small worker pool. Failures are logged and dropped."""

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="auth-bg")

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as e:
            # Pool already shut down
            logger.warning(f"Background task '{name}' dropped: {e}")
            return
        future.add_done_callback(lambda f: _log_failure(name, f))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineTaskRunner:
    """Runs tasks immediately in the caller's thread, with the same log-and-drop policy."""

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as e:
            logger.error(f"Background task '{name}' failed: {e}", exc_info=True)


def _log_failure(name: str, future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error(f"Background task '{name}' failed: {exc}", exc_info=exc)
