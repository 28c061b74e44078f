"""Utility functions for spindex"""

from spindex.utils.thread_safety import ReadWriteLock, ThreadSafeCounter

__all__ = [
    "ReadWriteLock",
    "ThreadSafeCounter",
]
