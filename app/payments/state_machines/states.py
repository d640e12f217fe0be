"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm,
plus the vocabularies of the audit trail. These are Django TextChoices for
database storage and admin integration.

State Machines Overview:

Escrow States:
    pending → funded → released (client release)
    pending/funded → disputed → released | refunded (dispute resolution)
    pending → pending (checkout expired or renewed)

Payout States:
    pending → processing → completed
    pending/processing → failed
    pending → (deleted when cancelled by the freelancer)
"""

from django.db import models


class EscrowStatus(models.TextChoices):
    """
    States for the Escrow model lifecycle.

    Terminal states: RELEASED, REFUNDED

    State Flow (normal):
        PENDING → FUNDED → RELEASED

    State Flow (dispute):
        PENDING/FUNDED → DISPUTED → RELEASED | REFUNDED
    """

    PENDING = "PENDING", "Pending"
    FUNDED = "FUNDED", "Funded"
    RELEASED = "RELEASED", "Released"
    REFUNDED = "REFUNDED", "Refunded"
    DISPUTED = "DISPUTED", "Disputed"


class PayoutStatus(models.TextChoices):
    """
    States for the Payout model lifecycle.

    Terminal states: COMPLETED, FAILED

    State Flow:
        PENDING → PROCESSING → COMPLETED
        PENDING/PROCESSING → FAILED
    """

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"


# Payout statuses that count against a freelancer's available balance
BALANCE_RESERVING_PAYOUT_STATUSES = (
    PayoutStatus.PENDING,
    PayoutStatus.PROCESSING,
    PayoutStatus.COMPLETED,
)


class TransactionType(models.TextChoices):
    """Kinds of financial state transition recorded in the TransactionLog."""

    ESCROW_CREATED = "ESCROW_CREATED", "Escrow Created"
    ESCROW_FUNDED = "ESCROW_FUNDED", "Escrow Funded"
    ESCROW_RELEASED = "ESCROW_RELEASED", "Escrow Released"
    ESCROW_REFUNDED = "ESCROW_REFUNDED", "Escrow Refunded"
    ESCROW_DISPUTED = "ESCROW_DISPUTED", "Escrow Disputed"
    PAYOUT_REQUESTED = "PAYOUT_REQUESTED", "Payout Requested"
    PAYOUT_PROCESSING = "PAYOUT_PROCESSING", "Payout Processing"
    PAYOUT_COMPLETED = "PAYOUT_COMPLETED", "Payout Completed"
    PAYOUT_FAILED = "PAYOUT_FAILED", "Payout Failed"
    PAYOUT_CANCELLED = "PAYOUT_CANCELLED", "Payout Cancelled"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED", "Dispute Resolved"


class ReferenceType(models.TextChoices):
    """Entity a TransactionLog entry points at."""

    ESCROW = "ESCROW", "Escrow"
    PAYOUT = "PAYOUT", "Payout"
    DISPUTE = "DISPUTE", "Dispute"


class ActorType(models.TextChoices):
    """Who caused a logged transition."""

    CLIENT = "CLIENT", "Client"
    FREELANCER = "FREELANCER", "Freelancer"
    ADMIN = "ADMIN", "Admin"
    SYSTEM = "SYSTEM", "System"


class AdminActionType(models.TextChoices):
    """Admin-initiated operations recorded in AdminAction."""

    PROCESS_PAYOUT = "PROCESS_PAYOUT", "Process Payout"
    COMPLETE_PAYOUT = "COMPLETE_PAYOUT", "Complete Payout"
    FAIL_PAYOUT = "FAIL_PAYOUT", "Fail Payout"
    DISPUTE_REVIEW = "DISPUTE_REVIEW", "Review Dispute"
    DISPUTE_RESOLVE = "DISPUTE_RESOLVE", "Resolve Dispute"
    TIER_ADJUST = "TIER_ADJUST", "Adjust Tier"
    PROJECT_DELETE = "PROJECT_DELETE", "Delete Project"


class AdminTargetType(models.TextChoices):
    """Entity an AdminAction was performed on."""

    PAYOUT = "PAYOUT", "Payout"
    DISPUTE = "DISPUTE", "Dispute"
    FREELANCER = "FREELANCER", "Freelancer"
    PROJECT = "PROJECT", "Project"
