from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator


class KeyedLocks:
    """One mutex per key (user id) so admissions for the same user run one at a time.

    Locks are never evicted; the key space is the set of employees.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[object, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        with self._guard:
            lock = self._locks[key]
        with lock:
            yield
