"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Custom user model with email-based authentication, one factory per role

Usage:
    from authentication.tests.factories import ClientFactory, FreelancerFactory

    # Create a client with default values
    client = ClientFactory()

    # Create a freelancer (a FreelancerProfile is created by signal)
    freelancer = FreelancerFactory(full_name="Budi Santoso")

    # Create a platform admin
    admin = AdminFactory()
"""

import factory

from authentication.models import User, UserRole


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active CLIENT users by default.

    Examples:
        # Basic user
        user = UserFactory()

        # Staff user
        user = UserFactory(is_staff=True)

        # Inactive user (deactivated)
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Faker("name")
    role = UserRole.CLIENT
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class ClientFactory(UserFactory):
    email = factory.Sequence(lambda n: f"client{n}@example.com")
    role = UserRole.CLIENT


class FreelancerFactory(UserFactory):
    email = factory.Sequence(lambda n: f"freelancer{n}@example.com")
    role = UserRole.FREELANCER


class AdminFactory(UserFactory):
    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN
    is_staff = True
