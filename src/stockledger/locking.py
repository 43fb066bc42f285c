"""Per-row pessimistic locks for ledger writers.

Writers against the same supplier order, inventory balance, picking list or
finished-goods product are serialized; readers never take a lock. Locks are
acquired before a command's Unit of Work opens and released after it has
committed or rolled back, so a writer always reads the previous writer's
committed state.

Keys are acquired in sorted order, which keeps two writers that need
overlapping key sets from deadlocking each other.
"""

import os
import threading
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 30.0


class RowLockTimeout(Exception):
    """A writer gave up waiting for a row lock. Nothing was written."""

    def __init__(self, key: str, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock on {key}")


def lock_timeout() -> float:
    return float(os.getenv("STOCKLEDGER_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))


class RowLocks:
    """A registry of named, non-reentrant locks."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def is_locked(self, key: str) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @contextmanager
    def hold(self, *keys: str, timeout: float | None = None):
        """Hold every lock in ``keys`` for the duration of the block.

        Raises ``RowLockTimeout`` if any lock cannot be acquired within
        ``timeout`` seconds; locks already taken are released first.
        """
        if timeout is None:
            timeout = lock_timeout()

        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if not lock.acquire(timeout=timeout):
                    logger.error("Row lock timed out", key=key, timeout=timeout)
                    raise RowLockTimeout(key, timeout)
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


row_locks = RowLocks()


def supplier_order_key(supplier_order_id) -> str:
    return f"supplier_order:{supplier_order_id}"


def balance_key(component_id) -> str:
    return f"inventory_balance:{component_id}"


def picking_list_key(pending_issuance_id) -> str:
    return f"pending_issuance:{pending_issuance_id}"


def issuance_key(issuance_id) -> str:
    return f"stock_issuance:{issuance_id}"


def finished_goods_key(product_id) -> str:
    return f"finished_goods:{product_id}"


def customer_order_key(order_id) -> str:
    return f"customer_order:{order_id}"


def supplier_return_key(return_id) -> str:
    return f"supplier_return:{return_id}"


def return_batch_key(batch_id) -> str:
    return f"return_batch:{batch_id}"
