"""
Celery tasks for disputes.

Scheduled via django-celery-beat (see the disputes migrations for the
crontab entry, daily at 00:00 UTC).

Usage:
    from disputes.tasks import run_auto_dispute_sweep

    run_auto_dispute_sweep.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from disputes.services import DisputeService
from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SWEEP_LOCK_KEY = "disputes:auto-sweep"

# Longer than any realistic sweep; a crashed worker frees the lock after this
SWEEP_LOCK_TTL = 600


# =============================================================================
# Periodic Task: Auto-dispute Sweep
# =============================================================================


@shared_task(bind=True)
def run_auto_dispute_sweep(self) -> dict:
    """
    Open system disputes for ghosted and overdue projects.

    Skips the run when another sweep still holds the lock.

    Returns:
        Dict with:
        - skipped: True if another sweep was running
        - created_count: Number of disputes opened
        - dispute_ids: Their ids
    """
    try:
        with DistributedLock(SWEEP_LOCK_KEY, ttl=SWEEP_LOCK_TTL, blocking=False):
            disputes = DisputeService.run_auto_sweep()
    except LockAcquisitionError:
        logger.info(
            "Auto-dispute sweep already running, skipping",
            extra={"lock_key": SWEEP_LOCK_KEY},
        )
        return {"skipped": True, "created_count": 0, "dispute_ids": []}

    return {
        "skipped": False,
        "created_count": len(disputes),
        "dispute_ids": [str(dispute.id) for dispute in disputes],
    }
