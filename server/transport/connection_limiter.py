"""Optional cap on concurrently handled connections."""

import threading


class ConnectionLimiter:
    """Counts active connections against ``max_connections`` (0 means unlimited)."""

    def __init__(self, max_connections: int) -> None:
        self._max_connections = max(0, max_connections)
        self._lock = threading.Lock()
        self._active = 0

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    def acquire(self) -> bool:
        """Reserve a slot; False when the cap is already reached."""
        with self._lock:
            if self._max_connections and self._active >= self._max_connections:
                return False
            self._active += 1
            return True

    def release(self) -> None:
        with self._lock:
            if self._active > 0:
                self._active -= 1
