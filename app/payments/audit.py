"""
Best-effort writers for the audit trail.

Every financial state transition calls log_transaction(); every admin
operation calls record_admin_action(). Inserts run in a savepoint so a
failure rolls back only the audit row: the enclosing transaction stays
usable and the primary operation still commits. Failures are logged,
never raised.

Usage:
    from payments.audit import log_transaction, record_admin_action

    log_transaction(
        TransactionType.PAYOUT_REQUESTED,
        reference_type=ReferenceType.PAYOUT,
        reference_id=payout.id,
        amount=payout.amount,
        to_status=PayoutStatus.PENDING,
        actor=freelancer,
        actor_type=ActorType.FREELANCER,
        metadata={"bank_code": payout.bank_code},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from payments.models import AdminAction, TransactionLog

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def log_transaction(
    type: str,
    reference_type: str,
    reference_id: Any,
    actor_type: str,
    amount: int | None = None,
    from_status: str = "",
    to_status: str = "",
    actor: Any = None,
    metadata: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> TransactionLog | None:
    """
    Append one TransactionLog entry.

    Returns:
        The created entry, or None if the insert failed
    """
    try:
        with transaction.atomic():
            return TransactionLog.objects.create(
                type=type,
                reference_type=reference_type,
                reference_id=str(reference_id),
                amount=amount,
                from_status=from_status or "",
                to_status=to_status or "",
                actor=actor,
                actor_type=actor_type,
                metadata=metadata or {},
                ip_address=ip_address,
            )
    except Exception:
        logger.exception(
            "Failed to write transaction log",
            extra={
                "transaction_type": type,
                "reference_type": reference_type,
                "reference_id": str(reference_id),
            },
        )
        return None


def record_admin_action(
    admin: Any,
    action: str,
    target_type: str,
    target_id: Any,
    details: dict[str, Any] | None = None,
) -> AdminAction | None:
    """
    Append one AdminAction entry.

    Returns:
        The created entry, or None if the insert failed
    """
    try:
        with transaction.atomic():
            return AdminAction.objects.create(
                admin=admin,
                action=action,
                target_type=target_type,
                target_id=str(target_id),
                details=details or {},
            )
    except Exception:
        logger.exception(
            "Failed to write admin action",
            extra={
                "action": action,
                "target_type": target_type,
                "target_id": str(target_id),
            },
        )
        return None
