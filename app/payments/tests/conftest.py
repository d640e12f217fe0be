"""
Pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data.
Fixtures are designed to provide objects in various states for testing
state transitions and business logic.

Usage:
    def test_release(funded_delivered_escrow, gateway):
        EscrowService.release(funded_delivered_escrow.id, funded_delivered_escrow.client_id)
"""

import pytest

from marketplace.models import BidStatus, FreelancerProfile, ProjectStatus
from marketplace.tests.factories import BidFactory, ProjectFactory
from payments.adapters import (
    CheckoutSession,
    MidtransAdapter,
    TransactionStatus,
    is_payment_expired_or_cancelled,
    is_payment_success,
)
from payments.services import EscrowService
from payments.tests.factories import EscrowFactory

BANK_DETAILS = {
    "bank_code": "BCA",
    "bank_name": "Bank Central Asia",
    "account_number": "1234567890",
    "account_holder_name": "Budi Santoso",
}


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def gateway(mocker):
    """
    Autospecced MidtransAdapter installed on EscrowService.

    Status helpers keep their real behaviour; network calls are stubbed.
    """
    double = mocker.create_autospec(MidtransAdapter, instance=True)
    double.create_transaction.return_value = CheckoutSession(
        token="snap-token-123",
        redirect_url="https://app.sandbox.midtrans.com/snap/v4/redirection/snap-token-123",
    )
    double.get_transaction_status.return_value = TransactionStatus(transaction_status="pending")
    double.verify_signature.return_value = True
    double.is_payment_success.side_effect = is_payment_success
    double.is_payment_expired_or_cancelled.side_effect = is_payment_expired_or_cancelled

    EscrowService.set_gateway(double)
    yield double
    EscrowService.set_gateway(None)


@pytest.fixture
def real_gateway(settings):
    """Real adapter with the test server key, for signature checks."""
    adapter = MidtransAdapter(server_key=settings.MIDTRANS_SERVER_KEY)
    EscrowService.set_gateway(adapter)
    yield adapter
    EscrowService.set_gateway(None)


# =============================================================================
# Project and Escrow Fixtures
# =============================================================================


@pytest.fixture
def accepted_project(db, client_user, freelancer):
    """IN_PROGRESS project with an ACCEPTED bid of 1,500,000."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.IN_PROGRESS,
    )
    BidFactory(
        project=project,
        freelancer=freelancer,
        amount=1_500_000,
        status=BidStatus.ACCEPTED,
    )
    return project


@pytest.fixture
def pending_escrow(db, client_user, freelancer):
    """PENDING escrow for an in-progress project."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.IN_PROGRESS,
    )
    return EscrowFactory(project=project)


@pytest.fixture
def funded_delivered_escrow(db, client_user, freelancer):
    """FUNDED escrow whose project has been DELIVERED."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.DELIVERED,
    )
    return EscrowFactory(project=project, funded=True)


# =============================================================================
# Freelancer Balance Fixtures
# =============================================================================


@pytest.fixture
def freelancer_with_bank(db, freelancer):
    """Freelancer whose profile has bank details."""
    FreelancerProfile.objects.filter(user=freelancer).update(**BANK_DETAILS)
    return freelancer


@pytest.fixture
def released_escrow(db, freelancer_with_bank):
    """
    RELEASED escrow of 1,500,000 for freelancer_with_bank.

    With the default 15% fee this puts 1,275,000 in the available balance.
    """
    project = ProjectFactory(
        selected_freelancer=freelancer_with_bank,
        status=ProjectStatus.COMPLETED,
    )
    return EscrowFactory(project=project, released=True)
