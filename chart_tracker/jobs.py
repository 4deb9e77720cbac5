"""Per repository job queue shared by a scheduler and a worker."""

import queue
import threading

from chart_tracker.models import Job

_CLOSED = object()


class JobQueue:
    """FIFO of jobs that the producer closes once it is done.

    After ``close()`` the buffered jobs are still delivered; once they are
    drained ``get`` returns None.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = False

    def put(self, job: Job) -> None:
        """Enqueue a job.

        Raises:
            RuntimeError: If the queue has been closed
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("put on closed job queue")
            self._queue.put(job)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_CLOSED)

    def get(self, timeout: float | None = None) -> Job | None:
        """Dequeue the next job, or None once the queue is closed and drained.

        Raises:
            queue.Empty: If no job arrived within ``timeout`` seconds
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Keep the marker so later readers also see the closed queue
            self._queue.put(_CLOSED)
            return None
        return item

