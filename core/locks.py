# core/locks.py

import threading
from contextlib import contextmanager

_registry_guard = threading.Lock()
_local_locks = {}


@contextmanager
def keyed_lock(key):
    """
    Process-local mutual exclusion per hashable key. Re-entrant for the holding
    thread; the entry is dropped once no thread holds or waits on it.
    """
    with _registry_guard:
        entry = _local_locks.setdefault(key, [threading.RLock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _registry_guard:
            entry[1] -= 1
            if entry[1] == 0:
                _local_locks.pop(key, None)
