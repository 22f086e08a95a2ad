"""
Thread synchronisation primitives shared by the loader and query callers.

The loader runs on its own thread (with its own event loop) while queries may
arrive from any thread, so both primitives here are built on `threading`.
"""

from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager
from typing import Generator, Optional


class ReadWriteLock:
    """
    Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together; a writer holds it alone.
    Once a writer is waiting, new readers queue behind it, so a steady stream
    of readers cannot starve writes. Not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Generator[None, None, None]:
        with self._cond:
            while self._writer_active or self._writers_waiting:
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
    def write_locked(self) -> Generator[None, None, None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()


class ReadinessSignal:
    """
    One-way latch broadcast to any number of readers.

    Observing the signal never consumes it. `fire` flips it at most once; later
    calls are no-ops.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def fire(self) -> bool:
        """Open the latch. Returns True only for the call that opened it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the latch opens or `timeout` elapses; returns its state."""
        return self._event.wait(timeout)

    async def wait_async(self, timeout: Optional[float] = None, poll_interval: float = 0.05) -> bool:
        """
        Awaitable variant of `wait`.

        Polls on the calling event loop rather than parking a worker thread, so
        cancelling the awaiting task leaves nothing behind.
        """
        try:
            async with asyncio.timeout(timeout):
                while not self._event.is_set():
                    await asyncio.sleep(poll_interval)
        except TimeoutError:
            return self._event.is_set()
        return True


__all__ = ["ReadWriteLock", "ReadinessSignal"]
