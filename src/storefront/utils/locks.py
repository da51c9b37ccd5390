"""Keyed mutual exclusion for stock and order mutations.

Each key (a product id, an order id) gets its own re-entrant lock, so
mutations on one key are serialized while different keys proceed in
parallel. Multi-key acquisition always happens in sorted key order, which
rules out lock-order deadlocks between callers sharing keys, and every
acquisition shares one deadline so no caller waits forever.
"""

import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

import structlog

from storefront.errors import Busy

logger = structlog.get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class KeyedLocks:
    """Registry of re-entrant locks indexed by string key.

    A key's entry lives only while some thread holds or waits on it.
    """

    def __init__(self, name: str, timeout: float = 2.0) -> None:
        self.name = name
        self.timeout = timeout
        self._locks: dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _Entry()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def active_keys(self) -> list[str]:
        with self._guard:
            return sorted(self._locks)

    @contextmanager
    def hold(self, keys: Iterable, timeout: float | None = None) -> Iterator[list[str]]:
        """Acquire the locks for ``keys`` in sorted order, or raise ``Busy``.

        The caller's thread may already own some of the locks; re-entry is
        immediate.
        """
        ordered = sorted({str(key) for key in keys})
        wait = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait
        acquired = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not entry.lock.acquire(timeout=remaining):
                    self._checkin(key, entry)
                    logger.warning("Lock acquisition timed out", registry=self.name, key=key, timeout=wait)
                    raise Busy(ordered, wait)
                acquired.append((key, entry))
            yield ordered
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._checkin(key, entry)
