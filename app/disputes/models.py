"""
Dispute model.

A project has at most one active (OPEN or UNDER_REVIEW) dispute at a time,
enforced by a partial unique constraint. Resolution is terminal.

Usage:
    from disputes.models import Dispute

    dispute.start_review()  # open -> under_review
    dispute.save()

    dispute.resolve(admin, DisputeOutcome.FULL_REFUND, "Work never delivered")
    dispute.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel, UUIDPrimaryKeyMixin


class DisputeStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    UNDER_REVIEW = "UNDER_REVIEW", "Under Review"
    RESOLVED = "RESOLVED", "Resolved"


ACTIVE_DISPUTE_STATUSES = (DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW)


class DisputeOutcome(models.TextChoices):
    """
    What resolution does to the escrow.

    FULL_REFUND: escrow REFUNDED, project CANCELLED
    NO_REFUND: escrow RELEASED, project COMPLETED
    PARTIAL_REFUND: same as NO_REFUND; the split is settled by an admin
    """

    FULL_REFUND = "FULL_REFUND", "Full Refund"
    PARTIAL_REFUND = "PARTIAL_REFUND", "Partial Refund"
    NO_REFUND = "NO_REFUND", "No Refund"


class Dispute(UUIDPrimaryKeyMixin, BaseModel):
    """
    A contested project.

    State Flow:
        OPEN -> UNDER_REVIEW -> RESOLVED
        OPEN -> RESOLVED

    Fields:
        project: The disputed project
        initiator: Participant who opened it (the client for auto disputes)
        reason / description: Why
        is_auto_generated: Opened by the scheduled sweep
        outcome / resolution / resolved_by / resolved_at: Set on resolution
    """

    project = models.ForeignKey(
        "marketplace.Project",
        on_delete=models.CASCADE,
        related_name="disputes",
    )
    initiator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="disputes_opened",
    )
    reason = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    is_auto_generated = models.BooleanField(default=False)

    status = FSMField(
        default=DisputeStatus.OPEN,
        choices=DisputeStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the dispute (managed by FSM)",
    )

    outcome = models.CharField(
        max_length=20,
        choices=DisputeOutcome.choices,
        blank=True,
        default="",
    )
    resolution = models.TextField(blank=True, default="")
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="disputes_resolved",
    )
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["project", "status"], name="dispute_project_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(status__in=["OPEN", "UNDER_REVIEW"]),
                name="dispute_one_active_per_project",
            ),
        ]

    def __str__(self) -> str:
        return f"Dispute({self.project_id}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_DISPUTE_STATUSES

    @transition(
        field=status,
        source=DisputeStatus.OPEN,
        target=DisputeStatus.UNDER_REVIEW,
    )
    def start_review(self):
        """
        An admin picked the dispute up.

        Transition: OPEN -> UNDER_REVIEW
        """

    @transition(
        field=status,
        source=[DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW],
        target=DisputeStatus.RESOLVED,
    )
    def resolve(self, admin, outcome: str, resolution: str):
        """
        Close the dispute.

        Transition: OPEN/UNDER_REVIEW -> RESOLVED
        """
        self.resolved_by = admin
        self.outcome = outcome
        self.resolution = resolution
        self.resolved_at = timezone.now()
