"""
Tests for the best-effort audit writers.
"""

import pytest

from payments.audit import log_transaction, record_admin_action
from payments.models import AdminAction, ImmutableRecordError, TransactionLog
from payments.state_machines import (
    ActorType,
    AdminActionType,
    AdminTargetType,
    ReferenceType,
    TransactionType,
)
from payments.tests.factories import PayoutFactory


@pytest.mark.django_db
class TestLogTransaction:
    def test_writes_entry(self, freelancer):
        payout = PayoutFactory(freelancer=freelancer)

        entry = log_transaction(
            TransactionType.PAYOUT_REQUESTED,
            reference_type=ReferenceType.PAYOUT,
            reference_id=payout.id,
            amount=payout.amount,
            to_status="PENDING",
            actor=freelancer,
            actor_type=ActorType.FREELANCER,
            metadata={"bank_code": "BCA"},
            ip_address="10.0.0.1",
        )

        stored = TransactionLog.objects.get(id=entry.id)
        assert stored.reference_id == str(payout.id)
        assert stored.from_status == ""
        assert stored.actor_id == freelancer.id
        assert stored.metadata == {"bank_code": "BCA"}
        assert stored.ip_address == "10.0.0.1"

    def test_insert_failure_is_swallowed(self, mocker):
        """Should log and return None instead of failing the caller."""
        mocker.patch.object(
            TransactionLog.objects, "create", side_effect=RuntimeError("db down")
        )
        logger = mocker.patch("payments.audit.logger")

        entry = log_transaction(
            TransactionType.ESCROW_FUNDED,
            reference_type=ReferenceType.ESCROW,
            reference_id="abc",
            actor_type=ActorType.SYSTEM,
        )

        assert entry is None
        logger.exception.assert_called_once()


@pytest.mark.django_db
class TestRecordAdminAction:
    def test_writes_entry(self, admin_user):
        action = record_admin_action(
            admin_user,
            AdminActionType.TIER_ADJUST,
            target_type=AdminTargetType.FREELANCER,
            target_id=42,
            details={"new_tier": "GOLD"},
        )

        stored = AdminAction.objects.get(id=action.id)
        assert stored.admin_id == admin_user.id
        assert stored.target_id == "42"
        assert stored.details == {"new_tier": "GOLD"}

    def test_insert_failure_is_swallowed(self, mocker, admin_user):
        mocker.patch.object(AdminAction.objects, "create", side_effect=RuntimeError("db down"))

        assert (
            record_admin_action(
                admin_user,
                AdminActionType.PROJECT_DELETE,
                target_type=AdminTargetType.PROJECT,
                target_id="p-1",
            )
            is None
        )


@pytest.mark.django_db
class TestAppendOnly:
    def test_existing_entry_cannot_be_saved(self):
        """Should reject updates to stored audit rows."""
        entry = log_transaction(
            TransactionType.ESCROW_FUNDED,
            reference_type=ReferenceType.ESCROW,
            reference_id="abc",
            actor_type=ActorType.SYSTEM,
        )
        entry.to_status = "RELEASED"

        with pytest.raises(ImmutableRecordError):
            entry.save()
