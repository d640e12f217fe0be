"""
Authentication models.

This module defines the slim, email-based User model. Every marketplace
actor is a User distinguished by ``role``:

- CLIENT: posts projects, accepts bids, funds and releases escrows
- FREELANCER: bids, delivers, receives payouts (has a FreelancerProfile)
- ADMIN: resolves disputes, processes payouts, adjusts tiers

Related files:
    - managers.py: Custom user manager for email-based creation
    - marketplace.signals: Auto-create FreelancerProfile for freelancers
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Marketplace role of a user account."""

    CLIENT = "CLIENT", "Client"
    FREELANCER = "FREELANCER", "Freelancer"
    ADMIN = "ADMIN", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name shown to the counterparty
        role: CLIENT, FREELANCER or ADMIN
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        client = User.objects.create_user(
            email="client@example.com",
            password="securepassword",
            role=UserRole.CLIENT,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    full_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Display name",
    )
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CLIENT,
        db_index=True,
        help_text="Marketplace role of this account",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.full_name or self.email

    def get_short_name(self):
        return self.full_name.split(" ")[0] if self.full_name else self.email.split("@")[0]

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_freelancer(self) -> bool:
        return self.role == UserRole.FREELANCER

    @property
    def is_platform_admin(self) -> bool:
        """Admins are ADMIN-role accounts or Django superusers."""
        return self.role == UserRole.ADMIN or self.is_superuser
