"""
Pytest fixtures for dispute tests.

Usage:
    def test_resolve(disputed_funded_escrow, admin_user):
        escrow, dispute = disputed_funded_escrow
"""

import pytest

from marketplace.models import ProjectStatus
from marketplace.tests.factories import ProjectFactory
from payments.state_machines import EscrowStatus
from payments.tests.factories import EscrowFactory

from .factories import DisputeFactory


@pytest.fixture
def active_project(db, client_user, freelancer):
    """IN_PROGRESS project between client_user and freelancer."""
    return ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.IN_PROGRESS,
    )


@pytest.fixture
def disputed_funded_escrow(db, client_user, freelancer):
    """(escrow, dispute) for a funded escrow frozen by an OPEN dispute."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.DISPUTED,
    )
    escrow = EscrowFactory(project=project, funded=True, status=EscrowStatus.DISPUTED)
    dispute = DisputeFactory(project=project, initiator=client_user)
    return escrow, dispute


@pytest.fixture
def disputed_unfunded_escrow(db, client_user, freelancer):
    """(escrow, dispute) for an escrow disputed before payment arrived."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.DISPUTED,
    )
    escrow = EscrowFactory(project=project, status=EscrowStatus.DISPUTED)
    dispute = DisputeFactory(project=project, initiator=client_user)
    return escrow, dispute
