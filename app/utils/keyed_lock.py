from contextlib import contextmanager
from threading import Lock
from typing import Dict


class KeyedLock:
    """One mutex per key, created on first use.

    Holders of the same key run one at a time; different keys never wait on
    each other. Only serializes work inside this process.
    """

    def __init__(self):
        self._locks: Dict[str, Lock] = {}
        self._guard = Lock()

    def _lock_for(self, key: str) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key):
        lock = self._lock_for(str(key))
        with lock:
            yield


# Per-car critical section around the overlap check and the booking write
car_locks = KeyedLock()
