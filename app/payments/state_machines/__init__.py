"""
State machine enums for payment models.

This module defines the state enums used by payment models with django-fsm
and the vocabularies of the audit trail.
"""

from payments.state_machines.states import (
    BALANCE_RESERVING_PAYOUT_STATUSES,
    ActorType,
    AdminActionType,
    AdminTargetType,
    EscrowStatus,
    PayoutStatus,
    ReferenceType,
    TransactionType,
)

__all__ = [
    "BALANCE_RESERVING_PAYOUT_STATUSES",
    "ActorType",
    "AdminActionType",
    "AdminTargetType",
    "EscrowStatus",
    "PayoutStatus",
    "ReferenceType",
    "TransactionType",
]
