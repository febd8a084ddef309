"""
Per-schedule write locks.

Every request that rewrites a stored schedule (round submissions of any
category, regenerate, publish, unpublish, delete) runs under the lock of
its (event, schedule) pair, so writes to one schedule happen one at a
time in this process. Across processes the store's version check rejects
stale writes instead.

Registry entries are never dropped: a lock may still be held, or about to
be acquired, by a request racing a delete.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

_registry_lock = threading.Lock()
_schedule_locks: Dict[Tuple[str, str], threading.Lock] = {}


def lock_for(event_id: str, schedule_id: str) -> threading.Lock:
    key = (event_id, schedule_id)
    with _registry_lock:
        lock = _schedule_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _schedule_locks[key] = lock
        return lock


@contextmanager
def schedule_lock(event_id: str, schedule_id: str) -> Iterator[None]:
    with lock_for(event_id, schedule_id):
        yield
