"""
Pytest fixtures for authentication tests.

Role fixtures (client_user, freelancer, admin_user) live in the root
conftest because every app needs them.
"""

import pytest


@pytest.fixture
def superuser(db):
    """Django superuser created through the manager."""
    from authentication.models import User

    return User.objects.create_superuser(email="root@example.com", password="RootPass123!")
