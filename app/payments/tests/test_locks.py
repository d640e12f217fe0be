"""
Tests for payment concurrency utilities.

Tests cover:
- lock_for_update lookups
- run_serializable retry behaviour
- DistributedLock acquisition and release against a Redis double
"""

import uuid

import pytest
from django.db import OperationalError

from core.exceptions import NotFoundError
from payments.exceptions import LockAcquisitionError, SerializationConflictError
from payments.locks import (
    DistributedLock,
    is_serialization_failure,
    lock_for_update,
    run_serializable,
)
from payments.models import Escrow
from payments.tests.factories import EscrowFactory


class FakeSerializationFailure(Exception):
    sqlstate = "40001"


def serialization_error():
    error = OperationalError("could not serialize access")
    error.__cause__ = FakeSerializationFailure()
    return error


class TestIsSerializationFailure:
    def test_detects_sqlstate_on_cause(self):
        assert is_serialization_failure(serialization_error()) is True

    def test_deadlock_is_retryable(self):
        class Deadlock(Exception):
            pgcode = "40P01"

        assert is_serialization_failure(Deadlock()) is True

    def test_other_errors(self):
        assert is_serialization_failure(OperationalError("disk full")) is False


@pytest.mark.django_db
class TestLockForUpdate:
    def test_returns_row(self):
        escrow = EscrowFactory()

        from django.db import transaction

        with transaction.atomic():
            locked = lock_for_update(Escrow, escrow.id, "Escrow not found")

        assert locked.id == escrow.id

    def test_missing_row(self):
        with pytest.raises(NotFoundError) as exc_info:
            lock_for_update(Escrow, uuid.uuid4(), "Escrow not found")

        assert exc_info.value.message == "Escrow not found"


@pytest.mark.django_db(transaction=True)
class TestRunSerializable:
    def test_returns_result(self):
        assert run_serializable(lambda: 42) == 42

    def test_retries_serialization_failures(self):
        """Should retry until the callable succeeds."""
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise serialization_error()
            return "done"

        assert run_serializable(flaky, retries=3) == "done"
        assert len(attempts) == 3

    def test_gives_up_after_retries(self):
        attempts = []

        def always_conflicts():
            attempts.append(1)
            raise serialization_error()

        with pytest.raises(SerializationConflictError) as exc_info:
            run_serializable(always_conflicts, retries=3)

        assert len(attempts) == 3
        assert exc_info.value.details == {"attempts": 3}

    def test_other_operational_errors_propagate(self):
        attempts = []

        def broken():
            attempts.append(1)
            raise OperationalError("disk full")

        with pytest.raises(OperationalError):
            run_serializable(broken, retries=3)

        assert len(attempts) == 1


class TestDistributedLock:
    def test_acquire_and_release(self, fake_redis):
        with DistributedLock("payments:test", ttl=60, blocking=False) as lock:
            assert lock.is_held
            key, token = fake_redis.set.call_args.args
            assert key == "lock:payments:test"
            assert fake_redis.set.call_args.kwargs == {"nx": True, "ex": 60}

        assert not lock.is_held
        fake_redis.eval.assert_called_once_with(
            DistributedLock.RELEASE_SCRIPT, 1, "lock:payments:test", token
        )

    def test_held_elsewhere_non_blocking(self, fake_redis):
        """Should fail immediately when another process holds the lock."""
        fake_redis.set.return_value = False

        with pytest.raises(LockAcquisitionError) as exc_info:
            DistributedLock("payments:test", blocking=False).acquire()

        assert exc_info.value.details == {"key": "lock:payments:test"}
        assert fake_redis.set.call_count == 1

    def test_blocking_waits_until_free(self, fake_redis, mocker):
        mocker.patch("payments.locks.time.sleep")
        fake_redis.set.side_effect = [False, False, True]

        lock = DistributedLock("payments:test", blocking=True, timeout=5)

        assert lock.acquire() is True
        assert fake_redis.set.call_count == 3

    def test_blocking_times_out(self, fake_redis, mocker):
        mocker.patch("payments.locks.time.sleep")
        mocker.patch("payments.locks.time.time", side_effect=[0, 0, 1, 2, 3])
        fake_redis.set.return_value = False

        with pytest.raises(LockAcquisitionError):
            DistributedLock("payments:test", blocking=True, timeout=2).acquire()

    def test_release_without_acquire(self, fake_redis):
        assert DistributedLock("payments:test").release() is False
        fake_redis.eval.assert_not_called()
