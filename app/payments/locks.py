"""
Concurrency control utilities for money-moving operations.

This module provides three complementary mechanisms:

1. **Row locks** (lock_for_update)
   - select_for_update() re-read of the row a transition starts from
   - Every write path validates the current state after taking the lock

2. **Serializable transactions** (run_serializable)
   - SERIALIZABLE isolation on PostgreSQL with bounded retry on
     serialization failures (SQLSTATE 40001)
   - Use for read-aggregate-then-write operations (payout requests)

3. **Distributed locks** (DistributedLock)
   - Redis-based mutual exclusion across processes/servers
   - Use for: periodic jobs that must not overlap

Usage:
    from payments.locks import lock_for_update, run_serializable

    with transaction.atomic():
        escrow = lock_for_update(Escrow, escrow_id, "Escrow not found")
        escrow.release()
        escrow.save()

    payout = run_serializable(lambda: _insert_payout(...), retries=3)
"""

from __future__ import annotations

import logging
import time
import uuid as uuid_module
from typing import TYPE_CHECKING, TypeVar

from django.db import OperationalError, connections, models, transaction
from django_redis import get_redis_connection

from core.exceptions import NotFoundError
from payments.exceptions import LockAcquisitionError, SerializationConflictError

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from redis import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=models.Model)
R = TypeVar("R")

# SQLSTATE codes PostgreSQL raises when a serializable transaction must be retried
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


# =============================================================================
# Row Locks
# =============================================================================


def lock_for_update(model_class: type[T], pk: Any, not_found_message: str) -> T:
    """
    Re-read a row with a row-level lock held until the transaction ends.

    Must be called inside transaction.atomic().

    Raises:
        NotFoundError: If the row does not exist
    """
    instance = model_class.objects.select_for_update().filter(pk=pk).first()
    if instance is None:
        raise NotFoundError(
            not_found_message,
            details={"id": str(pk)},
        )
    return instance


# =============================================================================
# Serializable Transactions
# =============================================================================


def is_serialization_failure(error: BaseException) -> bool:
    """True when the database asked us to retry the transaction."""
    for candidate in (error, error.__cause__):
        if candidate is None:
            continue
        sqlstate = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if sqlstate in RETRYABLE_SQLSTATES:
            return True
    return False


def run_serializable(
    func: Callable[[], R],
    retries: int = 3,
    using: str = "default",
) -> R:
    """
    Run func inside one SERIALIZABLE transaction, retrying on conflicts.

    On PostgreSQL the isolation level is raised for the outermost
    transaction only. When already inside an atomic block (for example a
    test wrapped in a transaction) the caller's transaction is reused and
    no retry is possible, since the outer transaction is aborted by the
    failure. Other backends run func in a plain atomic block.

    Args:
        func: Zero-argument callable doing the reads and writes
        retries: Total attempts before giving up
        using: Database alias

    Returns:
        Whatever func returned

    Raises:
        SerializationConflictError: Every attempt hit a serialization failure
    """
    connection = connections[using]
    outermost = not connection.in_atomic_block
    raise_isolation = outermost and connection.vendor == "postgresql"

    attempt = 0
    while True:
        attempt += 1
        try:
            with transaction.atomic(using=using):
                if raise_isolation:
                    with connection.cursor() as cursor:
                        cursor.execute("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE")
                return func()
        except OperationalError as e:
            if not outermost or not is_serialization_failure(e):
                raise
            if attempt >= retries:
                logger.warning(
                    "Serializable transaction gave up after retries",
                    extra={"attempts": attempt},
                )
                raise SerializationConflictError(
                    "The request conflicted with a concurrent update. Please try again.",
                    details={"attempts": attempt},
                ) from e
            logger.info(
                "Retrying serializable transaction",
                extra={"attempt": attempt},
            )


# =============================================================================
# Distributed Locks
# =============================================================================


class DistributedLock:
    """
    Redis-based distributed lock with TTL.

    Features:
        - Automatic TTL prevents deadlocks from crashed processes
        - Token-based ownership prevents accidental release by other processes
        - Blocking and non-blocking acquisition modes
        - Context manager support

    Example:
        try:
            with DistributedLock("disputes:auto-sweep", ttl=600, blocking=False):
                run_sweep()
        except LockAcquisitionError:
            logger.info("Sweep already running elsewhere")

    Args:
        key: Lock identifier (will be prefixed with "lock:")
        ttl: Lock TTL in seconds (auto-releases after this time)
        blocking: If True, acquire() waits until lock is available
        timeout: Maximum wait time in seconds (only if blocking=True)
    """

    # Lua script for atomic check-and-delete (release)
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Raises:
            LockAcquisitionError: If the lock is held elsewhere (non-blocking)
                or could not be acquired within timeout (blocking)
        """
        self._token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if self.blocking:
            end_time = time.time() + self.timeout
            while time.time() < end_time:
                if self._try_acquire(redis):
                    return True
                time.sleep(0.05)
            self._token = None
            raise LockAcquisitionError(
                f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                details={"key": self.key, "timeout": self.timeout},
            )

        if not self._try_acquire(redis):
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )
        return True

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def release(self) -> bool:
        """Release the lock if we hold it. Safe to call more than once."""
        if self._token is None:
            return False
        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False
