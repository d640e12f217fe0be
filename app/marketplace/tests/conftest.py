"""
Pytest fixtures for marketplace tests.

Usage:
    def test_accept_bid(open_project, pending_bid):
        BidService.accept_bid(pending_bid.id, open_project.client_id)
"""

import pytest

from marketplace.tests.factories import BidFactory, CategoryFactory, ProjectFactory


@pytest.fixture
def category(db):
    """Category with a 500,000 minimum price."""
    return CategoryFactory(name="Web Development", min_price=500_000)


@pytest.fixture
def open_project(db, client_user):
    """OPEN project owned by client_user."""
    return ProjectFactory(client=client_user)


@pytest.fixture
def pending_bid(db, open_project, freelancer):
    """PENDING bid from freelancer on open_project, inside the budget."""
    return BidFactory(project=open_project, freelancer=freelancer, amount=1_500_000)


@pytest.fixture
def completed_project(db, client_user, freelancer):
    """COMPLETED project between client_user and freelancer."""
    return ProjectFactory(client=client_user, selected_freelancer=freelancer, status="COMPLETED")
