# treefiles/core/discovery/stream.py
"""
The channel between walker threads and the consumer.

ResultStream is a bounded FIFO: producers block while it is full, which is how
a slow consumer slows the whole walk down. EmissionCounter is the one piece of
mutable state shared by every walker thread.
"""
import queue
import threading
from typing import Iterator, Optional
import structlog

from treefiles.exceptions import MaxResultsExceeded, WalkCancelled

log = structlog.get_logger(__name__)

_CLOSED = object()
_POLL_INTERVAL = 0.1


class ResultStream:
    """Bounded, closable, cancellable queue of discovered paths."""

    def __init__(self, capacity: int = 20):
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._closed = False
        self._drained = False
        self._cancelled = threading.Event()
        self.error: Optional[BaseException] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, path: str) -> None:
        # blocks while the stream is full; gives up once the consumer cancels.
        while True:
            if self._cancelled.is_set():
                raise WalkCancelled("result stream was cancelled by the consumer")
            try:
                self._queue.put(path, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def close(self, error: Optional[BaseException] = None) -> None:
        """
        Closes the stream, recording the walk's terminal error (if any).

        Must be called exactly once. Paths already queued are still delivered
        before iteration ends.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("result stream closed twice")
            self._closed = True
        self.error = error
        while True:
            try:
                self._queue.put(_CLOSED, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                if self._cancelled.is_set():
                    self._discard_pending()

    def cancel(self) -> None:
        # stop accepting paths; blocked producers wake up and fail.
        if not self._cancelled.is_set():
            log.info("result_stream_cancelled")
        self._cancelled.set()

    def _discard_pending(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def __iter__(self) -> Iterator[str]:
        while not self._drained:
            item = self._queue.get()
            if item is _CLOSED:
                self._drained = True
                return
            yield item  # type: ignore[misc]


class EmissionCounter:
    """Thread-safe count of emitted files, enforcing an optional maximum."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self._count = 0
        self._lock = threading.Lock()
        self._exhausted = threading.Event()

    @property
    def value(self) -> int:
        with self._lock:
            return self._count

    @property
    def exhausted(self) -> bool:
        return self._exhausted.is_set()

    def increment(self) -> int:
        """
        Reserves one emission slot and returns the new count.

        Raises MaxResultsExceeded if the maximum has already been reached. The
        check and the increment happen under one lock, so concurrent callers
        can never push the count past the limit.
        """
        with self._lock:
            if self.limit is not None and self._count >= self.limit:
                if not self._exhausted.is_set():
                    log.info("max_results_exceeded", limit=self.limit)
                self._exhausted.set()
                raise MaxResultsExceeded(self.limit)
            self._count += 1
            return self._count
