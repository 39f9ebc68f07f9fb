"""Background writer — fire-and-forget persistence of full collections.

One daemon thread drains a FIFO queue of ``(key, value)`` writes. Callers
never block and a failed write is logged and dropped: no retry, no rollback.
Writes land in the order they were enqueued, so the last snapshot of a
collection always wins.
"""

import queue
import threading

import structlog

from storefront.exceptions import PersistenceError
from storefront.persistence.port import KeyValueStorage

logger = structlog.get_logger(__name__)

_STOP = object()


class BackgroundWriter:
    def __init__(self, storage: KeyValueStorage, name: str = "storefront-writer"):
        self.storage = storage
        self.name = name
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def submit(self, key: str, value: str) -> None:
        """Queue a write and return immediately. Starts the thread on first use."""
        self.start()
        self._queue.put((key, value))

    def flush(self) -> None:
        """Block until every queued write has been attempted."""
        if self.is_running:
            self._queue.join()

    def close(self) -> None:
        """Drain the queue and stop the thread."""
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is None or not thread.is_alive():
            return
        self._queue.put(_STOP)
        thread.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(*item)
            finally:
                self._queue.task_done()

    def _write(self, key: str, value: str) -> None:
        try:
            self.storage.set_item(key, value)
        except PersistenceError as exc:
            logger.error("persistence.write_failed", key=key, error=str(exc))
        except Exception:
            # unexpected adapter errors are logged the same way
            logger.exception("persistence.write_crashed", key=key)
        else:
            logger.debug("persistence.written", key=key, size=len(value))
