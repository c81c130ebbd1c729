# ABOUTME: Reader/writer lock guarding the Novella table set.
# ABOUTME: Many concurrent readers, or exactly one writer; waiting writers block new readers.

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """A non-reentrant reader/writer lock built on threading.Condition.

    Writers are preferred: once a writer is waiting, new readers queue
    behind it so a steady stream of reads cannot starve mutations.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        """Hold the lock in shared (read) mode for the duration of the block."""
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the lock in exclusive (write) mode for the duration of the block."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()
