"""
Marketplace models.

This module defines the project/bid/review side of the marketplace plus
the freelancer's reputation aggregates:

Models:
    Category: Project category with a minimum bid price
    Project: A client's job posting and its delivery lifecycle
    Bid: A freelancer's offer on a project
    Review: Post-completion rating between the two participants
    FreelancerProfile: Tier aggregates and payout bank details

Design Decisions:
    - Tier aggregates are recomputed wholesale by TierService, never
      incremented in place
    - Bank details live on the profile and are copied onto each Payout
      at request time
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import BaseModel, UUIDPrimaryKeyMixin


# =============================================================================
# Choices
# =============================================================================


class ProjectStatus(models.TextChoices):
    """
    Lifecycle of a project.

    OPEN -> IN_PROGRESS (bid accepted) -> DELIVERED -> COMPLETED (escrow released)
    IN_PROGRESS/DELIVERED -> DISPUTED -> COMPLETED | CANCELLED
    """

    OPEN = "OPEN", "Open"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    DELIVERED = "DELIVERED", "Delivered"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    DISPUTED = "DISPUTED", "Disputed"


class BidStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    ACCEPTED = "ACCEPTED", "Accepted"
    REJECTED = "REJECTED", "Rejected"
    WITHDRAWN = "WITHDRAWN", "Withdrawn"


class FreelancerTier(models.TextChoices):
    """Reputation tiers in ascending order."""

    BRONZE = "BRONZE", "Bronze"
    SILVER = "SILVER", "Silver"
    GOLD = "GOLD", "Gold"
    PLATINUM = "PLATINUM", "Platinum"
    LEGEND = "LEGEND", "Legend"


# =============================================================================
# Category
# =============================================================================


class Category(BaseModel):
    """Project category. Bids below ``min_price`` are rejected."""

    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=100, unique=True)
    min_price = models.PositiveBigIntegerField(
        default=0,
        help_text="Minimum bid amount accepted for projects in this category",
    )

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Project
# =============================================================================


class Project(UUIDPrimaryKeyMixin, BaseModel):
    """
    A client's job posting.

    Fields:
        client: Owner of the project (payer)
        selected_freelancer: Set when a bid is accepted (payee)
        category: Optional category providing the minimum bid price
        budget_min / budget_max: Accepted bid amount must fall in this range
        deadline: Overdue IN_PROGRESS projects are auto-disputed
        status: See ProjectStatus
    """

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_projects",
        help_text="Client who posted the project",
    )
    selected_freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="freelancer_projects",
        help_text="Freelancer whose bid was accepted",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects",
    )

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    budget_min = models.PositiveBigIntegerField(help_text="Lowest acceptable bid amount")
    budget_max = models.PositiveBigIntegerField(help_text="Highest acceptable bid amount")
    deadline = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Delivery deadline",
    )
    status = models.CharField(
        max_length=20,
        choices=ProjectStatus.choices,
        default=ProjectStatus.OPEN,
        db_index=True,
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "deadline"],
                name="project_status_deadline_idx",
            ),
            models.Index(
                fields=["selected_freelancer", "status"],
                name="project_freelancer_status_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(budget_max__gte=models.F("budget_min")),
                name="project_budget_range_valid",
            ),
        ]

    def __str__(self) -> str:
        return f"Project({self.title}, {self.status})"

    def is_participant(self, user_id) -> bool:
        """Client or assigned freelancer."""
        return user_id in (self.client_id, self.selected_freelancer_id)


# =============================================================================
# Bid
# =============================================================================


class Bid(UUIDPrimaryKeyMixin, BaseModel):
    """A freelancer's offer on a project. One bid per freelancer per project."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="bids",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bids",
    )
    amount = models.PositiveBigIntegerField(help_text="Offered price (whole currency units)")
    proposal = models.TextField(blank=True, default="")
    estimated_days = models.PositiveIntegerField(default=7)
    status = models.CharField(
        max_length=20,
        choices=BidStatus.choices,
        default=BidStatus.PENDING,
        db_index=True,
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "freelancer"],
                name="bid_one_per_freelancer_per_project",
            ),
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(status="ACCEPTED"),
                name="bid_one_accepted_per_project",
            ),
        ]

    def __str__(self) -> str:
        return f"Bid({self.freelancer_id} on {self.project_id}, {self.status})"


# =============================================================================
# Review
# =============================================================================


class Review(UUIDPrimaryKeyMixin, BaseModel):
    """Rating left by one participant of a COMPLETED project for the other."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_given",
    )
    reviewee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_received",
    )
    rating = models.PositiveSmallIntegerField(help_text="1 to 5 stars")
    comment = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "reviewer"],
                name="review_one_per_reviewer_per_project",
            ),
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name="review_rating_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Review({self.rating}* for {self.reviewee_id})"


# =============================================================================
# Freelancer Profile
# =============================================================================


class FreelancerProfile(BaseModel):
    """
    Reputation aggregates and payout bank details of a freelancer.

    The aggregate fields are owned by TierService.recalculate and are
    overwritten wholesale on every recalculation.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="freelancer_profile",
    )
    headline = models.CharField(max_length=200, blank=True, default="")

    # ==========================================================================
    # Tier aggregates
    # ==========================================================================

    tier = models.CharField(
        max_length=20,
        choices=FreelancerTier.choices,
        default=FreelancerTier.BRONZE,
        db_index=True,
    )
    completed_projects = models.PositiveIntegerField(default=0)
    avg_rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    completion_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=100,
        help_text="Percentage of finished projects that completed",
    )
    dispute_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        help_text="Percentage of finished projects that were disputed",
    )
    exp_points = models.PositiveIntegerField(default=0)

    # ==========================================================================
    # Bank details (snapshotted onto payouts)
    # ==========================================================================

    bank_code = models.CharField(max_length=20, blank=True, default="")
    bank_name = models.CharField(max_length=100, blank=True, default="")
    account_number = models.CharField(max_length=50, blank=True, default="")
    account_holder_name = models.CharField(max_length=150, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"FreelancerProfile({self.user_id}, {self.tier})"

    @property
    def has_bank_details(self) -> bool:
        return all((self.bank_code, self.account_number, self.account_holder_name))

    def bank_snapshot(self) -> dict[str, str]:
        return {
            "bank_code": self.bank_code,
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "account_holder_name": self.account_holder_name,
        }
