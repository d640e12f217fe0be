"""
Celery tasks for payment processing.

This module provides async tasks for:
- Reconciling PENDING escrows against the gateway when webhooks are missed

Usage:
    from payments.tasks import reconcile_pending_escrows

    # Typically via celery-beat
    reconcile_pending_escrows.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock
from payments.services import EscrowService

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RECONCILE_LOCK_KEY = "payments:reconcile-escrows"
RECONCILE_LOCK_TTL = 300

# Give the webhook a chance to arrive before polling
RECONCILE_MIN_AGE_MINUTES = 15
RECONCILE_BATCH_SIZE = 100


# =============================================================================
# Periodic Task: Escrow Reconciliation
# =============================================================================


@shared_task(bind=True)
def reconcile_pending_escrows(self) -> dict:
    """
    Poll the gateway for escrows still PENDING after the webhook window.

    Returns:
        Dict with:
        - skipped: True if another run held the lock
        - funded_count: Escrows funded by this run
        - escrow_ids: Their ids
    """
    try:
        with DistributedLock(RECONCILE_LOCK_KEY, ttl=RECONCILE_LOCK_TTL, blocking=False):
            funded = EscrowService.reconcile_pending(
                older_than_minutes=RECONCILE_MIN_AGE_MINUTES,
                limit=RECONCILE_BATCH_SIZE,
            )
    except LockAcquisitionError:
        logger.info(
            "Escrow reconciliation already running, skipping",
            extra={"lock_key": RECONCILE_LOCK_KEY},
        )
        return {"skipped": True, "funded_count": 0, "escrow_ids": []}

    if funded:
        logger.info(
            "Escrow reconciliation funded escrows",
            extra={"funded_count": len(funded)},
        )

    return {"skipped": False, "funded_count": len(funded), "escrow_ids": funded}
