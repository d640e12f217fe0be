"""
Payout model for money owed or paid to a freelancer's bank account.

A Payout is created automatically when an escrow is released (one per
escrow) or when a freelancer requests a withdrawal from their available
balance. Bank details are copied from the FreelancerProfile at creation
time and never re-read afterwards.

Usage:
    from payments.models import Payout

    payout.process(admin)  # pending -> processing
    payout.save()

    payout.complete()  # processing -> completed
    payout.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel, UUIDPrimaryKeyMixin
from payments.state_machines import PayoutStatus


class Payout(UUIDPrimaryKeyMixin, BaseModel):
    """
    A withdrawal to a freelancer's bank account.

    State Flow:
        PENDING -> PROCESSING -> COMPLETED
        PENDING/PROCESSING -> FAILED

    Fields:
        freelancer: Recipient
        escrow: Source escrow for release payouts, null for voluntary requests
        amount: Whole currency units
        status: Current FSM state
        bank_code / bank_name / account_number / account_holder_name:
            Snapshot of the profile's bank details at request time
        processed_by / processed_at: Admin who started the transfer
        completed_at / failed_at / failed_reason: Outcome
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payouts",
        help_text="Freelancer receiving the payout",
    )
    escrow = models.ForeignKey(
        "payments.Escrow",
        on_delete=models.PROTECT,
        related_name="payouts",
        null=True,
        blank=True,
        help_text="Escrow whose release created this payout. Null for requested withdrawals.",
    )

    amount = models.PositiveBigIntegerField(help_text="Payout amount")

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PayoutStatus.PENDING,
        choices=PayoutStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the payout (managed by FSM)",
    )

    # ==========================================================================
    # Bank Snapshot
    # ==========================================================================

    bank_code = models.CharField(max_length=20, blank=True, default="")
    bank_name = models.CharField(max_length=100, blank=True, default="")
    account_number = models.CharField(max_length=50, blank=True, default="")
    account_holder_name = models.CharField(max_length=150, blank=True, default="")

    # ==========================================================================
    # Processing
    # ==========================================================================

    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payouts_processed",
        help_text="Admin who started processing this payout",
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failed_reason = models.TextField(blank=True, default="")

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout"
        verbose_name_plural = "Payouts"
        indexes = [
            models.Index(fields=["freelancer", "status"], name="payout_freelancer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payout_amount_positive",
            ),
            models.UniqueConstraint(
                fields=["escrow"],
                condition=models.Q(escrow__isnull=False),
                name="payout_one_per_escrow",
            ),
        ]

    def __str__(self) -> str:
        return f"Payout({self.id}, {self.status}, {self.amount})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PayoutStatus.PENDING,
        target=PayoutStatus.PROCESSING,
    )
    def process(self, admin):
        """
        Begin the bank transfer.

        Transition: PENDING -> PROCESSING
        """
        self.processed_by = admin
        self.processed_at = timezone.now()

    @transition(
        field=status,
        source=PayoutStatus.PROCESSING,
        target=PayoutStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark the transfer as done.

        Transition: PROCESSING -> COMPLETED
        """
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutStatus.PENDING, PayoutStatus.PROCESSING],
        target=PayoutStatus.FAILED,
    )
    def fail(self, reason: str):
        """
        Mark the transfer as failed. The amount returns to the available balance.

        Transition: PENDING/PROCESSING -> FAILED
        """
        self.failed_at = timezone.now()
        self.failed_reason = reason

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_pending(self) -> bool:
        return self.status == PayoutStatus.PENDING
