from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Protocol

from .exceptions import LockAcquireTimeout


class LockBackend(Protocol):
    """
    Protocol describing the minimal per-key lock interface.

    A store is handed a backend at construction; nothing here keeps a global
    default, so two stores never share locks unless they share a backend.
    """
    def acquire(self, key: str, timeout: float | None) -> bool: ...
    def release(self, key: str) -> None: ...


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Holder plus waiters. The entry is dropped when this reaches zero.
        self.users = 0


class LocalLockBackend:
    """
    In-process lock backend: one mutex per key, created on demand.

    Key properties
    --------------
    - Keys are independent: holding "product:a" never delays "product:b".
    - The registry guard is held only while looking up or dropping an entry,
      never while waiting for a key.
    - Entries are removed once no thread holds or waits on them, so the
      registry does not grow with the number of products ever touched.

    Limitations
    -----------
    - Scope is a single process. Stores shared across processes must rely on
      their database for mutual exclusion.
    - Not reentrant: a thread acquiring a key it already holds will wait on
      itself until the timeout expires.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    def acquire(self, key: str, timeout: float | None) -> bool:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1

        acquired = entry.lock.acquire(timeout=-1 if timeout is None else max(timeout, 0))

        if not acquired:
            with self._guard:
                self._forget(key, entry)
        return acquired

    def release(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                raise RuntimeError(f"release of unlocked key '{key}'")
            entry.lock.release()
            self._forget(key, entry)

    def _forget(self, key: str, entry: _KeyLock) -> None:
        entry.users -= 1
        if entry.users == 0:
            del self._locks[key]


@contextmanager
def lock(
    key: str,
    backend: LockBackend,
    timeout: float | None = 3.0,
) -> Iterator[None]:
    """
    Acquire a lock for the given key on the given backend.

    Only one caller holding the same key may be inside the protected block at
    a time.

    Parameters
    ----------
    key : str
        Lock identifier, e.g. "product:<id>".

    backend : LockBackend
        Where the lock lives.

    timeout : float | None, default=3.0
        Maximum time (in seconds) to wait for acquisition.

        - None: block indefinitely.
        - float: raise LockAcquireTimeout if exceeded.

    Raises
    ------
    LockAcquireTimeout
        If the lock cannot be acquired within the timeout.

    Example
    -------
    >>> with lock("product:42", backend):
    ...     adjust()
    """
    acquired = backend.acquire(key, timeout)

    if not acquired:
        raise LockAcquireTimeout(
            f"Failed to acquire lock for key='{key}' within timeout={timeout}s"
        )

    try:
        yield
    finally:
        backend.release(key)
