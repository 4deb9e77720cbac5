"""Collector of non-fatal errors raised while tracking repositories."""

import threading


class ErrorCollector:
    """Accumulates errors per repository during one tracking run.

    Safe for concurrent use by the workers of different repositories.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._errors: dict[str, list[Exception]] = {}

    def append(self, repository_id: str, err: Exception) -> None:
        with self._lock:
            self._errors.setdefault(repository_id, []).append(err)

    def list(self) -> dict[str, list[Exception]]:
        """Return a snapshot of the collected errors keyed by repository id."""
        with self._lock:
            return {repository_id: list(errs) for repository_id, errs in self._errors.items()}

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()
