"""
Bounded analysis worker pool.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Any, Callable

logger = logging.getLogger(__name__)


class AnalysisPool:
    """
    Thread pool with a cap on queued plus running tasks.

    ``submit`` never blocks: when ``max_pending`` tasks are already in
    flight the new task is dropped and ``None`` is returned.

    Args:
        max_workers: Number of worker threads
        max_pending: Maximum number of submitted, unfinished tasks
        thread_name_prefix: Name prefix of the worker threads
    """

    def __init__(self, max_workers: int = 4, max_pending: int = 1024,
                 thread_name_prefix: str = "trafficsniffer-analysis"):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if max_pending < 1:
            raise ValueError(f"max_pending must be >= 1, got {max_pending}")

        self.max_workers = max_workers
        self.max_pending = max_pending
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix=thread_name_prefix)
        self._slots = threading.BoundedSemaphore(max_pending)
        self._lock = threading.Lock()
        self._futures: set[Future] = set()
        self._dropped = 0
        self._saturated = False
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        with self._lock:
            return len(self._futures)

    @property
    def dropped(self) -> int:
        """Number of tasks rejected because the pool was saturated."""
        with self._lock:
            return self._dropped

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future | None:
        """Schedule ``fn(*args)``; returns its Future, or None if dropped."""
        if self._closed:
            raise RuntimeError("AnalysisPool is shut down")

        if not self._slots.acquire(blocking=False):
            with self._lock:
                self._dropped += 1
                first_drop = not self._saturated
                self._saturated = True
            if first_drop:
                logger.warning("Analysis pool saturated (%d pending), dropping analyses",
                               self.max_pending)
            return None

        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError:
            self._slots.release()
            raise
        with self._lock:
            self._futures.add(future)
            self._saturated = False
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)
        self._slots.release()

    def shutdown(self, wait: bool = True, cancel_pending: bool = False,
                 timeout: float | None = None) -> bool:
        """
        Stop accepting work.

        Args:
            wait: Wait for running and queued tasks to finish
            cancel_pending: Cancel tasks that have not started yet
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            True if no task was left unfinished when this call returned
        """
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=cancel_pending)
        with self._lock:
            outstanding = list(self._futures)
        if not wait or not outstanding:
            return not outstanding
        _done, not_done = wait_futures(outstanding, timeout=timeout)
        if not_done:
            logger.warning("Abandoning %d unfinished analyses after %.1fs",
                           len(not_done), timeout)
        return not not_done

    def __enter__(self) -> AnalysisPool:
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
