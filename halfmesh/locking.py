"""
Writer Guard
============

Single-writer guard shared by the mutable mesh types. Mutations take the
guard without blocking; a second mutation (or a read-only export) that
arrives while one is in flight fails fast instead of observing a half
updated structure.
"""

import threading
from contextlib import contextmanager

from .errors import ConcurrentMutationError


class WriterGuard:
    """Non-blocking exclusive guard for one mesh instance."""

    def __init__(self, owner: str):
        self.owner = owner
        self._lock = threading.Lock()

    @contextmanager
    def write(self, operation: str):
        """Hold the guard for the duration of a mutating operation."""
        if not self._lock.acquire(blocking=False):
            raise ConcurrentMutationError(
                f"{self.owner}: '{operation}' called while another mutation is running"
            )
        try:
            yield
        finally:
            self._lock.release()

    def check_readable(self, operation: str):
        """Fail if a mutation currently holds the guard."""
        if self._lock.locked():
            raise ConcurrentMutationError(
                f"{self.owner}: '{operation}' called during a mutation"
            )

    @property
    def busy(self) -> bool:
        return self._lock.locked()
