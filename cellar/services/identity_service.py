# cellar/services/identity_service.py
import threading


class IdentityAllocator:
    """
    Hands out container ids from a watermark.

    `next_id()` only peeks; the watermark moves when `commit()` is called after
    the id has been durably consumed, so a failed creation can retry the same id.
    The watermark never goes down.
    """

    def __init__(self, watermark: int = 0):
        self._watermark = watermark
        self._lock = threading.Lock()

    @property
    def watermark(self) -> int:
        return self._watermark

    def next_id(self) -> int:
        return self._watermark + 1

    def commit(self) -> int:
        with self._lock:
            self._watermark += 1
            return self._watermark

    def observe(self, container_id: int):
        """Raises the watermark to an id seen on disk."""
        with self._lock:
            self._watermark = max(self._watermark, container_id)
