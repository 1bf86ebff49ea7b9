"""Admission control in front of the worker pool."""

import threading


class AdmissionLimiter:
    """Caps connections that are either running on a worker or waiting for one.

    Capacity is the worker count plus ``queue_limit``; a ``queue_limit`` of 0
    disables the cap so excess connections simply queue.
    """

    def __init__(self, worker_count: int, queue_limit: int) -> None:
        self._capacity = (
            max(1, worker_count) + queue_limit if queue_limit > 0 else 0
        )
        self._lock = threading.Lock()
        self._active = 0

    @property
    def capacity(self) -> int:
        """Return the admission cap, 0 when unbounded."""
        return self._capacity

    def acquire(self) -> bool:
        """Attempt to reserve a slot for a newly accepted connection."""
        with self._lock:
            if self._capacity and self._active >= self._capacity:
                return False
            self._active += 1
            return True

    def release(self) -> None:
        """Release a previously acquired slot."""
        with self._lock:
            if self._active > 0:
                self._active -= 1

    def active(self) -> int:
        """Return the number of admitted connections still holding a slot."""
        with self._lock:
            return self._active
