"""
Tests for PayoutService.

Tests cover:
- Available balance derivation
- Payout request validation (amount band, bank details, balance)
- Cancellation of pending payouts
- Admin processing: process, complete, fail
- Concurrent requests for the full balance (PostgreSQL only)
"""

import threading
import uuid

import pytest
from django.db import connection

from core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payments.exceptions import (
    BankDetailsMissingError,
    InsufficientBalanceError,
    InvalidStateTransitionError,
)
from payments.models import AdminAction, Payout, TransactionLog
from payments.services import PayoutService
from payments.state_machines import AdminActionType, PayoutStatus, TransactionType
from payments.tests.factories import EscrowFactory, PayoutFactory


def get_fresh_payout(payout_id) -> Payout:
    """
    Get a fresh Payout instance from the database.

    This is needed because django-fsm's protected FSMField doesn't allow
    direct state assignment via refresh_from_db().
    """
    return Payout.objects.get(id=payout_id)


# =============================================================================
# Balance
# =============================================================================


@pytest.mark.django_db
class TestAvailableBalance:
    def test_released_minus_reserved(self, released_escrow, freelancer_with_bank):
        """Should subtract PENDING, PROCESSING and COMPLETED payouts."""
        PayoutFactory(freelancer=freelancer_with_bank, amount=100_000)
        PayoutFactory(
            freelancer=freelancer_with_bank, amount=200_000, status=PayoutStatus.PROCESSING
        )
        PayoutFactory(
            freelancer=freelancer_with_bank, amount=300_000, status=PayoutStatus.COMPLETED
        )

        balance = PayoutService.get_available_balance(freelancer_with_bank.id)

        assert balance == 1_275_000 - 600_000

    def test_failed_payouts_return_to_balance(self, released_escrow, freelancer_with_bank):
        PayoutFactory(freelancer=freelancer_with_bank, amount=500_000, status=PayoutStatus.FAILED)

        assert PayoutService.get_available_balance(freelancer_with_bank.id) == 1_275_000

    def test_funded_escrows_do_not_count(self, freelancer):
        """Should only count RELEASED escrows."""
        EscrowFactory(project__selected_freelancer=freelancer, funded=True)

        assert PayoutService.get_available_balance(freelancer.id) == 0

    def test_never_negative(self, freelancer):
        PayoutFactory(freelancer=freelancer, amount=100_000)

        assert PayoutService.get_available_balance(freelancer.id) == 0


# =============================================================================
# Requests
# =============================================================================


@pytest.mark.django_db
class TestRequestPayout:
    def test_creates_pending_payout_with_bank_snapshot(
        self, released_escrow, freelancer_with_bank
    ):
        """Should copy the profile's bank details onto the payout."""
        payout = PayoutService.request_payout(freelancer_with_bank.id, 250_000)

        payout = get_fresh_payout(payout.id)
        assert payout.status == PayoutStatus.PENDING
        assert payout.amount == 250_000
        assert payout.escrow_id is None
        assert payout.bank_code == "BCA"
        assert payout.account_holder_name == "Budi Santoso"
        assert PayoutService.get_available_balance(freelancer_with_bank.id) == 1_025_000

    def test_writes_transaction_log(self, released_escrow, freelancer_with_bank):
        payout = PayoutService.request_payout(freelancer_with_bank.id, 250_000)

        entry = TransactionLog.objects.get(reference_id=str(payout.id))
        assert entry.type == TransactionType.PAYOUT_REQUESTED
        assert entry.metadata["available"] == 1_275_000

    def test_full_balance(self, released_escrow, freelancer_with_bank):
        PayoutService.request_payout(freelancer_with_bank.id, 1_275_000)

        assert PayoutService.get_available_balance(freelancer_with_bank.id) == 0

    def test_insufficient_balance(self, released_escrow, freelancer_with_bank):
        """Should report the available and requested amounts."""
        with pytest.raises(InsufficientBalanceError) as exc_info:
            PayoutService.request_payout(freelancer_with_bank.id, 1_275_001)

        assert exc_info.value.details == {"available": 1_275_000, "requested": 1_275_001}
        assert not Payout.objects.exists()

    @pytest.mark.parametrize("amount", [0, -5, 9_999, 50_000_001])
    def test_amount_outside_band(self, freelancer_with_bank, amount):
        """Should enforce the minimum and maximum payout amounts."""
        with pytest.raises(BusinessRuleError):
            PayoutService.request_payout(freelancer_with_bank.id, amount)

    def test_minimum_is_inclusive(self, released_escrow, freelancer_with_bank):
        payout = PayoutService.request_payout(freelancer_with_bank.id, 10_000)

        assert payout.amount == 10_000

    def test_bank_details_missing(self, freelancer):
        with pytest.raises(BankDetailsMissingError) as exc_info:
            PayoutService.request_payout(freelancer.id, 50_000)

        assert exc_info.value.error_code == "BANK_DETAILS_MISSING"

    def test_user_without_profile(self, client_user):
        with pytest.raises(NotFoundError):
            PayoutService.request_payout(client_user.id, 50_000)


@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="Serializable isolation needs PostgreSQL (set DATABASE_URL)",
)
class TestConcurrentRequests:
    def test_only_one_full_balance_request_succeeds(self, released_escrow, freelancer_with_bank):
        """Should let one request through and reject the rest for balance."""
        barrier = threading.Barrier(4)
        results = []

        def request():
            barrier.wait()
            try:
                PayoutService.request_payout(freelancer_with_bank.id, 1_275_000)
                results.append("ok")
            except Exception as e:
                results.append(type(e).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=request) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(results) == ["InsufficientBalanceError"] * 3 + ["ok"]
        assert Payout.objects.filter(freelancer=freelancer_with_bank).count() == 1
        assert PayoutService.get_available_balance(freelancer_with_bank.id) == 0


# =============================================================================
# Cancellation and History
# =============================================================================


@pytest.mark.django_db
class TestCancelPayout:
    def test_deletes_pending_payout(self, freelancer):
        payout = PayoutFactory(freelancer=freelancer)

        PayoutService.cancel_payout(payout.id, freelancer.id)

        assert not Payout.objects.filter(id=payout.id).exists()
        assert TransactionLog.objects.filter(
            reference_id=str(payout.id),
            type=TransactionType.PAYOUT_CANCELLED,
        ).exists()

    def test_release_payout_can_be_cancelled(self, freelancer):
        """Should allow cancelling payouts created by an escrow release."""
        escrow = EscrowFactory(project__selected_freelancer=freelancer, released=True)
        payout = PayoutFactory(freelancer=freelancer, escrow=escrow, amount=escrow.freelancer_amount)

        PayoutService.cancel_payout(payout.id, freelancer.id)

        assert not Payout.objects.filter(id=payout.id).exists()

    def test_processing_payout_cannot_be_cancelled(self, freelancer):
        payout = PayoutFactory(freelancer=freelancer, status=PayoutStatus.PROCESSING)

        with pytest.raises(InvalidStateTransitionError):
            PayoutService.cancel_payout(payout.id, freelancer.id)

    def test_someone_elses_payout(self, freelancer):
        payout = PayoutFactory()

        with pytest.raises(PermissionDeniedError):
            PayoutService.cancel_payout(payout.id, freelancer.id)

    def test_missing_payout(self, freelancer):
        with pytest.raises(NotFoundError):
            PayoutService.cancel_payout(uuid.uuid4(), freelancer.id)


@pytest.mark.django_db
class TestGetHistory:
    def test_paginates_own_payouts(self, freelancer):
        PayoutFactory.create_batch(3, freelancer=freelancer)
        PayoutFactory()

        page = PayoutService.get_history(freelancer.id, page=1, page_size=2)

        assert page.paginator.count == 3
        assert len(page.object_list) == 2


# =============================================================================
# Admin Processing
# =============================================================================


@pytest.mark.django_db
class TestAdminProcessing:
    def test_full_lifecycle(self, admin_user, freelancer):
        """Should move PENDING -> PROCESSING -> COMPLETED and audit each step."""
        payout = PayoutFactory(freelancer=freelancer)

        PayoutService.process_payout(payout.id, admin_user)
        processing = get_fresh_payout(payout.id)
        PayoutService.complete_payout(payout.id, admin_user)
        completed = get_fresh_payout(payout.id)

        assert processing.status == PayoutStatus.PROCESSING
        assert processing.processed_by_id == admin_user.id
        assert processing.processed_at is not None
        assert completed.status == PayoutStatus.COMPLETED
        assert completed.completed_at is not None
        assert list(
            AdminAction.objects.filter(target_id=str(payout.id))
            .order_by("created_at")
            .values_list("action", flat=True)
        ) == [AdminActionType.PROCESS_PAYOUT, AdminActionType.COMPLETE_PAYOUT]

    def test_complete_requires_processing(self, admin_user):
        payout = PayoutFactory()

        with pytest.raises(InvalidStateTransitionError):
            PayoutService.complete_payout(payout.id, admin_user)

    def test_process_twice(self, admin_user):
        payout = PayoutFactory()
        PayoutService.process_payout(payout.id, admin_user)

        with pytest.raises(InvalidStateTransitionError):
            PayoutService.process_payout(payout.id, admin_user)

    @pytest.mark.parametrize("status", [PayoutStatus.PENDING, PayoutStatus.PROCESSING])
    def test_fail_from_open_states(self, admin_user, status):
        payout = PayoutFactory(status=status)

        PayoutService.fail_payout(payout.id, admin_user, "  Account closed  ")

        failed = get_fresh_payout(payout.id)
        assert failed.status == PayoutStatus.FAILED
        assert failed.failed_reason == "Account closed"
        assert failed.failed_at is not None
        action = AdminAction.objects.get(target_id=str(payout.id))
        assert action.details["reason"] == "Account closed"

    def test_fail_requires_reason(self, admin_user):
        payout = PayoutFactory()

        with pytest.raises(ValidationError):
            PayoutService.fail_payout(payout.id, admin_user, "   ")

    def test_completed_payout_cannot_fail(self, admin_user):
        payout = PayoutFactory(status=PayoutStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionError):
            PayoutService.fail_payout(payout.id, admin_user, "Too late")

    def test_failed_payout_frees_balance(self, admin_user, released_escrow, freelancer_with_bank):
        """Should return a failed payout's amount to the available balance."""
        payout = PayoutService.request_payout(freelancer_with_bank.id, 1_275_000)

        PayoutService.fail_payout(payout.id, admin_user, "Bank rejected transfer")

        assert PayoutService.get_available_balance(freelancer_with_bank.id) == 1_275_000
