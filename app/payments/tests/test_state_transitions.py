"""
Tests for the Escrow and Payout state machines.

These exercise the django-fsm transitions directly: allowed sources,
conditions, and the timestamps each transition sets.
"""

import pytest
from django_fsm import TransitionNotAllowed

from payments.state_machines import EscrowStatus, PayoutStatus
from payments.tests.factories import EscrowFactory, PayoutFactory


@pytest.mark.django_db
class TestEscrowTransitions:
    def test_fund(self):
        escrow = EscrowFactory()

        escrow.fund()

        assert escrow.status == EscrowStatus.FUNDED
        assert escrow.funded_at is not None

    def test_fund_twice_not_allowed(self):
        escrow = EscrowFactory(funded=True)

        with pytest.raises(TransitionNotAllowed):
            escrow.fund()

    def test_reset_checkout_stays_pending(self):
        escrow = EscrowFactory()

        escrow.reset_checkout(order_id="esc-aaaaaaaaaaaa-1", session_token="new")

        assert escrow.status == EscrowStatus.PENDING
        assert escrow.gateway_order_id == "esc-aaaaaaaaaaaa-1"
        assert escrow.session_token == "new"

    def test_release_requires_funded(self):
        escrow = EscrowFactory()

        with pytest.raises(TransitionNotAllowed):
            escrow.release()

    @pytest.mark.parametrize("funded", [False, True])
    def test_open_dispute_from_pending_or_funded(self, funded):
        escrow = EscrowFactory(funded=funded)

        escrow.open_dispute()

        assert escrow.status == EscrowStatus.DISPUTED
        assert escrow.disputed_at is not None

    def test_released_escrow_cannot_be_disputed(self):
        escrow = EscrowFactory(released=True)

        with pytest.raises(TransitionNotAllowed):
            escrow.open_dispute()

    def test_release_by_resolution_needs_money(self):
        """Should refuse to release a disputed escrow that was never funded."""
        escrow = EscrowFactory(status=EscrowStatus.DISPUTED)

        with pytest.raises(TransitionNotAllowed):
            escrow.release_by_resolution()

    def test_late_funding_then_release_by_resolution(self):
        escrow = EscrowFactory(status=EscrowStatus.DISPUTED)

        escrow.record_late_funding()
        escrow.release_by_resolution()

        assert escrow.status == EscrowStatus.RELEASED
        assert escrow.released_at is not None

    def test_late_funding_only_once(self):
        escrow = EscrowFactory(status=EscrowStatus.DISPUTED)
        escrow.record_late_funding()

        with pytest.raises(TransitionNotAllowed):
            escrow.record_late_funding()

    @pytest.mark.parametrize(
        "status",
        [EscrowStatus.PENDING, EscrowStatus.FUNDED, EscrowStatus.DISPUTED],
    )
    def test_refund_sources(self, status):
        escrow = EscrowFactory(status=status)

        escrow.refund()

        assert escrow.status == EscrowStatus.REFUNDED
        assert escrow.refunded_at is not None

    def test_refund_after_release_not_allowed(self):
        escrow = EscrowFactory(released=True)

        with pytest.raises(TransitionNotAllowed):
            escrow.refund()

    def test_status_is_protected(self):
        escrow = EscrowFactory()

        with pytest.raises(AttributeError):
            escrow.status = EscrowStatus.RELEASED


@pytest.mark.django_db
class TestReceivedPayment:
    def test_pending_received_nothing(self):
        assert EscrowFactory().received_payment is False

    def test_funded(self):
        assert EscrowFactory(funded=True).received_payment is True

    def test_released_keeps_the_record(self):
        assert EscrowFactory(released=True).received_payment is True

    def test_refunded_before_payment(self):
        assert EscrowFactory(status=EscrowStatus.REFUNDED).received_payment is False


@pytest.mark.django_db
class TestPayoutTransitions:
    def test_process_complete(self, admin_user):
        payout = PayoutFactory()

        payout.process(admin_user)
        payout.complete()

        assert payout.status == PayoutStatus.COMPLETED
        assert payout.processed_by == admin_user

    def test_complete_requires_processing(self):
        payout = PayoutFactory()

        with pytest.raises(TransitionNotAllowed):
            payout.complete()

    def test_failed_is_terminal(self):
        payout = PayoutFactory()
        payout.fail("Closed account")

        with pytest.raises(TransitionNotAllowed):
            payout.process(None)
