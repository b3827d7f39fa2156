"""Single-flight FIFO task runner with exponential backoff.

Every call to the embedding provider goes through one :class:`RequestQueue`
so the provider never sees more than one request at a time. A failed task is
retried at the head of the queue, so it delays everything queued behind it.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Optional


@dataclass
class QueueItem:
    """A pending task together with the future handed back to the caller."""

    task: Callable[[], Any]
    max_retries: int
    future: Future = field(default_factory=Future)
    retries: int = 0


class RequestQueue:
    """Runs enqueued callables one at a time on a dedicated worker thread.

    Args:
        delay: Sleep primitive used between retries, called with seconds.
        base_delay: Backoff unit; retry ``n`` waits ``2 ** n * base_delay``.
        max_retries: Default retry budget for tasks enqueued without one.
        name: Used for the worker thread name and log messages.
    """

    def __init__(
        self,
        delay: Callable[[float], None] = time.sleep,
        *,
        base_delay: float = 1.0,
        max_retries: int = 3,
        name: str = "embedding",
    ) -> None:
        self._delay = delay
        self.base_delay = base_delay
        self.max_retries = max_retries
        self.name = name
        self._items: Deque[QueueItem] = deque()
        self._condition = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._active = False
        self._closed = False
        self.logger = logging.getLogger("pelican_store.request_queue")

    # Public API ---------------------------------------------------------
    def enqueue(self, task: Callable[[], Any], max_retries: Optional[int] = None) -> Future:
        """Append ``task`` to the tail and return a future for its result."""

        item = QueueItem(task=task, max_retries=self.max_retries if max_retries is None else max_retries)
        with self._condition:
            if self._closed:
                raise RuntimeError(f"{self.name} queue has been shut down")
            self._items.append(item)
            self._ensure_worker()
            self._condition.notify()
        return item.future

    def clear(self) -> None:
        """Drop every pending item without resolving its future.

        Callers still waiting on a dropped future will wait forever, so this
        is only meant for shutdown paths.
        """

        with self._condition:
            dropped = len(self._items)
            self._items.clear()
        if dropped:
            self.logger.info("Cleared %s queue", self.name, extra={"pending": dropped})

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker after its in-flight task; pending futures are cancelled."""

        with self._condition:
            self._closed = True
            pending = list(self._items)
            self._items.clear()
            self._condition.notify_all()
            worker = self._worker
        for item in pending:
            item.future.cancel()
        if wait and worker is not None and worker is not threading.current_thread():
            worker.join()

    def reopen(self) -> None:
        """Accept tasks again after :meth:`shutdown`; the worker restarts lazily."""

        with self._condition:
            self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._condition:
            return len(self._items)

    @property
    def is_active(self) -> bool:
        return self._active

    # Worker -------------------------------------------------------------
    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._run, name=f"{self.name}-queue", daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._items and not self._closed:
                    self._condition.wait()
                if self._closed:
                    return
                item = self._items[0]
                self._active = True
            try:
                self._process(item)
            finally:
                with self._condition:
                    if self._items and self._items[0] is item:
                        self._items.popleft()
                    self._active = False

    def _process(self, item: QueueItem) -> None:
        if not item.future.set_running_or_notify_cancel():
            return
        while True:
            start = time.perf_counter()
            try:
                result = item.task()
            except Exception as exc:  # noqa: BLE001 - surfaced through the future
                if not getattr(exc, "retryable", True) or item.retries >= item.max_retries:
                    self.logger.error(
                        "%s task failed permanently: %s",
                        self.name,
                        exc,
                        extra={"attempt": item.retries + 1},
                    )
                    item.future.set_exception(exc)
                    return
                item.retries += 1
                wait_s = (2 ** item.retries) * self.base_delay
                self.logger.warning(
                    "%s task failed, retrying: %s",
                    self.name,
                    exc,
                    extra={"attempt": item.retries, "delay_s": wait_s},
                )
                self._delay(wait_s)
                if not self._is_head(item):
                    # Dropped by clear() or shutdown() during backoff.
                    if self._closed:
                        item.future.set_exception(RuntimeError(f"{self.name} queue shut down during retry"))
                    return
                continue
            item.future.set_result(result)
            self.logger.debug(
                "%s task completed",
                self.name,
                extra={
                    "attempt": item.retries + 1,
                    "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return

    def _is_head(self, item: QueueItem) -> bool:
        with self._condition:
            return bool(self._items) and self._items[0] is item and not self._closed


__all__ = ["QueueItem", "RequestQueue"]
