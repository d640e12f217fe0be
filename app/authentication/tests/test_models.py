"""
Tests for the User model, its manager and the role permissions.
"""

import pytest
from rest_framework.test import APIRequestFactory

from authentication.models import User, UserRole
from authentication.permissions import IsClient, IsFreelancer, IsPlatformAdmin
from authentication.tests.factories import AdminFactory, ClientFactory, FreelancerFactory


@pytest.mark.django_db
class TestUserManager:
    """Tests for UserManager.create_user / create_superuser."""

    def test_create_user_normalizes_email(self):
        """Should lowercase the domain part of the email."""
        user = User.objects.create_user(email="Dev@EXAMPLE.COM", password="x" * 12)

        assert user.email == "Dev@example.com"
        assert user.check_password("x" * 12)

    def test_create_user_without_email_raises(self):
        """Should refuse to create a user without an email."""
        with pytest.raises(ValueError):
            User.objects.create_user(email="", password="secret")

    def test_create_user_without_password_is_unusable(self):
        """Should store an unusable password when none is given."""
        user = User.objects.create_user(email="nopass@example.com")

        assert not user.has_usable_password()

    def test_create_superuser_is_admin(self, superuser):
        """Should give superusers the ADMIN role and staff access."""
        assert superuser.is_staff
        assert superuser.is_superuser
        assert superuser.role == UserRole.ADMIN
        assert superuser.is_platform_admin


@pytest.mark.django_db
class TestUserRoles:
    """Tests for role helpers and the freelancer profile signal."""

    def test_role_properties(self):
        """Should expose exactly one role flag per user."""
        client = ClientFactory()
        freelancer = FreelancerFactory()
        admin = AdminFactory()

        assert client.is_client and not client.is_freelancer
        assert freelancer.is_freelancer and not freelancer.is_platform_admin
        assert admin.is_platform_admin and not admin.is_client

    def test_freelancer_gets_profile(self):
        """Should create a FreelancerProfile when a freelancer registers."""
        freelancer = FreelancerFactory()

        assert freelancer.freelancer_profile.tier == "BRONZE"

    def test_client_gets_no_profile(self):
        """Should not create a FreelancerProfile for clients."""
        from marketplace.models import FreelancerProfile

        client = ClientFactory()

        assert not FreelancerProfile.objects.filter(user=client).exists()

    def test_short_name_falls_back_to_email(self):
        """Should use the email local part when no name is set."""
        user = ClientFactory(full_name="", email="sari@example.com")

        assert user.get_short_name() == "sari"
        assert user.get_full_name() == "sari@example.com"


@pytest.mark.django_db
class TestRolePermissions:
    """Tests for the DRF role permission classes."""

    @pytest.fixture
    def request_for(self):
        factory = APIRequestFactory()

        def _build(user):
            request = factory.get("/")
            request.user = user
            return request

        return _build

    @pytest.mark.parametrize(
        "permission_class, factory_class, allowed",
        [
            (IsClient, ClientFactory, True),
            (IsClient, FreelancerFactory, False),
            (IsFreelancer, FreelancerFactory, True),
            (IsFreelancer, AdminFactory, False),
            (IsPlatformAdmin, AdminFactory, True),
            (IsPlatformAdmin, ClientFactory, False),
        ],
    )
    def test_role_permissions(self, request_for, permission_class, factory_class, allowed):
        """Should allow only users holding the matching role."""
        request = request_for(factory_class())

        assert permission_class().has_permission(request, None) is allowed
