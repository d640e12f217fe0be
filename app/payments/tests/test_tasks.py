"""
Tests for payment Celery tasks.
"""

import pytest
from freezegun import freeze_time

from payments.adapters import TransactionStatus
from payments.tasks import RECONCILE_LOCK_KEY, reconcile_pending_escrows
from payments.tests.factories import EscrowFactory


@pytest.mark.django_db
class TestReconcilePendingEscrows:
    def test_funds_stale_escrows(self, fake_redis, gateway):
        with freeze_time("2024-06-10 12:00:00"):
            escrow = EscrowFactory()
        gateway.get_transaction_status.return_value = TransactionStatus(
            transaction_status="settlement"
        )

        with freeze_time("2024-06-10 12:30:00"):
            result = reconcile_pending_escrows()

        assert result == {"skipped": False, "funded_count": 1, "escrow_ids": [str(escrow.id)]}
        assert fake_redis.set.call_args.args[0] == f"lock:{RECONCILE_LOCK_KEY}"
        fake_redis.eval.assert_called_once()

    def test_skips_when_lock_held(self, fake_redis, gateway):
        """Should not poll anything while another run holds the lock."""
        fake_redis.set.return_value = False

        result = reconcile_pending_escrows()

        assert result == {"skipped": True, "funded_count": 0, "escrow_ids": []}
        gateway.get_transaction_status.assert_not_called()

    def test_nothing_to_do(self, fake_redis, gateway):
        assert reconcile_pending_escrows() == {
            "skipped": False,
            "funded_count": 0,
            "escrow_ids": [],
        }
