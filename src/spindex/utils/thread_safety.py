"""Thread safety utilities for spindex.

This module provides the locking primitives used by spatial indices to keep
their structure consistent when shared between threads.
"""

import threading
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Reader/writer lock with writer preference.

    Any number of readers may hold the lock at once; a writer holds it
    exclusively. Waiting writers block new readers so a stream of queries
    cannot starve a mutation.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self):
        """Acquire the shared (read) side."""
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        """Release the shared (read) side."""
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read called without a matching acquire_read")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        """Acquire the exclusive (write) side."""
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self):
        """Release the exclusive (write) side."""
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write called without a matching acquire_write")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        """Context manager holding the read side."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        """Context manager holding the write side."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Number of threads currently holding the read side."""
        with self._cond:
            return self._readers

    @property
    def write_held(self) -> bool:
        with self._cond:
            return self._writer


class ThreadSafeCounter:
    """Thread-safe counter implementation."""

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """Increment counter and return new value."""
        if amount < 0:
            raise ValueError("Counter increments must be non-negative")
        with self._lock:
            self._value += amount
            return self._value

    def get(self) -> int:
        """Get current value."""
        with self._lock:
            return self._value

    def reset(self, value: int = 0):
        """Reset counter to specified value."""
        with self._lock:
            logger.debug(f"Resetting counter from {self._value} to {value}")
            self._value = value
