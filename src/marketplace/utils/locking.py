"""In-process row locks keyed by ``<kind>:<id>``.

Checkout and cancellation read a row, check it and write it back inside one
Unit of Work. The lock for every row involved is taken before the handler
runs and released only after the Unit of Work has committed, so two such
check-then-write sequences on the same row never interleave within one
process. Across worker processes the aggregate version check on update is
what rejects the second writer (see ``marketplace.checkout.placement``).

Keys are always acquired in sorted order and with a bounded wait. A key's
entry lives only while some thread holds or waits on it.
"""

import threading
import time
from contextlib import contextmanager

from marketplace.shared.errors import CheckoutError, CheckoutErrorKind
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class RowLocks:
    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._registry: dict[str, _Entry] = {}
        self._registry_guard = threading.Lock()

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._registry_guard:
            return len(self._registry)

    def _check_out(self, key: str) -> threading.Lock:
        with self._registry_guard:
            entry = self._registry.get(key)
            if entry is None:
                entry = self._registry[key] = _Entry()
            entry.users += 1
            return entry.lock

    def _check_in(self, key: str) -> None:
        with self._registry_guard:
            entry = self._registry[key]
            entry.users -= 1
            if entry.users == 0:
                del self._registry[key]

    @contextmanager
    def hold(self, *keys: str, timeout: float | None = None):
        """Hold every lock in ``keys`` for the duration of the block.

        Raises ``CheckoutError(CHECKOUT_BUSY)`` when the locks cannot all be
        taken within ``timeout`` seconds. Locks already taken are released.
        """
        wait = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait
        checked_out: list[str] = []
        acquired: list[threading.Lock] = []

        try:
            for key in sorted(set(keys)):
                lock = self._check_out(key)
                checked_out.append(key)
                remaining = max(deadline - time.monotonic(), 0)
                if not lock.acquire(timeout=remaining):
                    logger.warning("row_lock_timeout", key=key, timeout=wait)
                    raise CheckoutError(
                        CheckoutErrorKind.CHECKOUT_BUSY,
                        "Another checkout is in progress for these items, please try again",
                        key=key,
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._check_in(key)

    def is_locked(self, key: str) -> bool:
        with self._registry_guard:
            entry = self._registry.get(key)
        return entry is not None and entry.lock.locked()


row_locks = RowLocks()
