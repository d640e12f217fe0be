"""
Pytest fixtures for chat tests.
"""

import pytest

from chat.tests.factories import ConversationFactory
from marketplace.models import ProjectStatus
from marketplace.tests.factories import ProjectFactory


@pytest.fixture
def conversation(db, client_user, freelancer):
    """Conversation before the escrow is funded."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.IN_PROGRESS,
    )
    return ConversationFactory(project=project)


@pytest.fixture
def active_conversation(db, client_user, freelancer):
    """Conversation after the escrow is funded."""
    project = ProjectFactory(
        client=client_user,
        selected_freelancer=freelancer,
        status=ProjectStatus.IN_PROGRESS,
    )
    return ConversationFactory(project=project, escrow_active=True)
