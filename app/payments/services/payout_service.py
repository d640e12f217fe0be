"""
Payout service for freelancer withdrawals.

This module provides the PayoutService class which handles:
- Available balance derivation
- Freelancer payout requests (serializable balance check + insert)
- Cancellation of payouts that have not started processing
- Admin-side processing: PENDING -> PROCESSING -> COMPLETED / FAILED

Available balance:
    sum(RELEASED escrow freelancer_amount)
    - sum(payout amount where status in PENDING/PROCESSING/COMPLETED)

FAILED payouts return their amount to the balance; cancelled payouts are
deleted and so never count.

Usage:
    from payments.services import PayoutService

    balance = PayoutService.get_available_balance(freelancer_id)
    payout = PayoutService.request_payout(freelancer_id, amount=250_000)

    PayoutService.process_payout(payout.id, admin)
    PayoutService.complete_payout(payout.id, admin)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Sum

from core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from payments.audit import log_transaction, record_admin_action
from payments.exceptions import (
    BankDetailsMissingError,
    InsufficientBalanceError,
    InvalidStateTransitionError,
)
from payments.locks import lock_for_update, run_serializable
from payments.models import Escrow, Payout
from payments.state_machines import (
    BALANCE_RESERVING_PAYOUT_STATUSES,
    ActorType,
    AdminActionType,
    AdminTargetType,
    EscrowStatus,
    PayoutStatus,
    ReferenceType,
    TransactionType,
)

if TYPE_CHECKING:
    from django.core.paginator import Page


class PayoutService(BaseService):
    """
    Service for payout requests and their admin-side processing.

    request_payout runs in a SERIALIZABLE transaction and re-derives the
    balance inside it while holding the freelancer profile row lock, so N
    concurrent requests for the full balance produce exactly one payout.
    """

    # =========================================================================
    # Balance
    # =========================================================================

    @classmethod
    def get_available_balance(cls, freelancer_id) -> int:
        """Available balance for withdrawal, never negative."""
        released = Escrow.objects.filter(
            freelancer_id=freelancer_id,
            status=EscrowStatus.RELEASED,
        ).aggregate(total=Sum("freelancer_amount"))["total"] or 0
        reserved = Payout.objects.filter(
            freelancer_id=freelancer_id,
            status__in=BALANCE_RESERVING_PAYOUT_STATUSES,
        ).aggregate(total=Sum("amount"))["total"] or 0
        return max(0, released - reserved)

    # =========================================================================
    # Freelancer Operations
    # =========================================================================

    @classmethod
    def request_payout(cls, freelancer_id, amount: int) -> Payout:
        """
        Request a withdrawal from the available balance.

        Bank details are copied from the freelancer profile at request time.

        Raises:
            BusinessRuleError: Amount outside the allowed band
            NotFoundError: Freelancer has no profile
            BankDetailsMissingError: Profile lacks bank details
            InsufficientBalanceError: Amount exceeds the available balance
            SerializationConflictError: Concurrent updates kept conflicting
        """
        from marketplace.models import FreelancerProfile

        cls._validate_amount(amount)

        profile = FreelancerProfile.objects.filter(user_id=freelancer_id).first()
        if profile is None:
            raise NotFoundError("Freelancer profile not found")
        if not profile.has_bank_details:
            raise BankDetailsMissingError(
                "Please set up your bank account details before requesting a payout"
            )

        def _create() -> Payout:
            # Serializes requests from the same freelancer on the profile row
            locked_profile = lock_for_update(
                FreelancerProfile, profile.pk, "Freelancer profile not found"
            )
            available = cls.get_available_balance(freelancer_id)
            if amount > available:
                raise InsufficientBalanceError(
                    f"Insufficient balance. Available: {available}, Requested: {amount}",
                    details={"available": available, "requested": amount},
                )

            payout = Payout.objects.create(
                freelancer_id=freelancer_id,
                amount=amount,
                **locked_profile.bank_snapshot(),
            )
            log_transaction(
                TransactionType.PAYOUT_REQUESTED,
                reference_type=ReferenceType.PAYOUT,
                reference_id=payout.id,
                amount=amount,
                to_status=PayoutStatus.PENDING,
                actor=locked_profile.user,
                actor_type=ActorType.FREELANCER,
                metadata={
                    "bank_code": locked_profile.bank_code,
                    "bank_name": locked_profile.bank_name,
                    "available": available,
                },
            )
            return payout

        payout = run_serializable(_create, retries=settings.PAYOUT_SERIALIZATION_RETRIES)

        cls.get_logger().info(
            "Payout requested",
            extra={
                "payout_id": str(payout.id),
                "freelancer_id": str(freelancer_id),
                "amount": amount,
            },
        )
        return payout

    @classmethod
    def cancel_payout(cls, payout_id, freelancer_id) -> None:
        """
        Cancel a PENDING payout by deleting it.

        Raises:
            NotFoundError: Payout does not exist
            PermissionDeniedError: Payout belongs to someone else
            InvalidStateTransitionError: Payout is no longer PENDING
        """
        with cls.atomic():
            payout = lock_for_update(Payout, payout_id, "Payout not found")
            if payout.freelancer_id != freelancer_id:
                raise PermissionDeniedError("Not your payout")
            if not payout.is_pending:
                raise InvalidStateTransitionError(
                    "Only pending payouts can be cancelled",
                    details={"current_status": payout.status},
                )
            amount = payout.amount
            payout.delete()

            log_transaction(
                TransactionType.PAYOUT_CANCELLED,
                reference_type=ReferenceType.PAYOUT,
                reference_id=payout_id,
                amount=amount,
                from_status=PayoutStatus.PENDING,
                to_status="CANCELLED",
                actor_type=ActorType.FREELANCER,
                metadata={"freelancer_id": str(freelancer_id)},
            )

        cls.get_logger().info(
            "Payout cancelled",
            extra={"payout_id": str(payout_id), "freelancer_id": str(freelancer_id)},
        )

    @classmethod
    def get_history(cls, freelancer_id, page: int = 1, page_size: int = 20) -> Page:
        """Newest-first page of a freelancer's payouts."""
        queryset = Payout.objects.filter(freelancer_id=freelancer_id).order_by("-created_at")
        return Paginator(queryset, page_size).get_page(page)

    # =========================================================================
    # Admin Operations
    # =========================================================================

    @classmethod
    def process_payout(cls, payout_id, admin) -> Payout:
        """
        Start the bank transfer for a PENDING payout.

        Raises:
            InvalidStateTransitionError: Payout is not PENDING
        """
        with cls.atomic():
            payout = lock_for_update(Payout, payout_id, "Payout not found")
            if payout.status != PayoutStatus.PENDING:
                raise InvalidStateTransitionError(
                    f"Cannot process payout with status {payout.status}",
                    details={"current_status": payout.status},
                )
            payout.process(admin)
            payout.save()
            cls._audit(
                payout,
                admin,
                AdminActionType.PROCESS_PAYOUT,
                TransactionType.PAYOUT_PROCESSING,
                from_status=PayoutStatus.PENDING,
            )
        return payout

    @classmethod
    def complete_payout(cls, payout_id, admin) -> Payout:
        """
        Confirm the bank transfer for a PROCESSING payout.

        Raises:
            InvalidStateTransitionError: Payout is not PROCESSING
        """
        with cls.atomic():
            payout = lock_for_update(Payout, payout_id, "Payout not found")
            if payout.status != PayoutStatus.PROCESSING:
                raise InvalidStateTransitionError(
                    f"Cannot complete payout with status {payout.status}",
                    details={"current_status": payout.status},
                )
            payout.complete()
            payout.save()
            cls._audit(
                payout,
                admin,
                AdminActionType.COMPLETE_PAYOUT,
                TransactionType.PAYOUT_COMPLETED,
                from_status=PayoutStatus.PROCESSING,
            )
        return payout

    @classmethod
    def fail_payout(cls, payout_id, admin, reason: str) -> Payout:
        """
        Mark a PENDING or PROCESSING payout as failed.

        The amount returns to the freelancer's available balance.

        Raises:
            ValidationError: Empty reason
            InvalidStateTransitionError: Payout already COMPLETED or FAILED
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A failure reason is required", details={"field": "reason"})

        with cls.atomic():
            payout = lock_for_update(Payout, payout_id, "Payout not found")
            if payout.status not in (PayoutStatus.PENDING, PayoutStatus.PROCESSING):
                raise InvalidStateTransitionError(
                    f"Cannot fail payout with status {payout.status}",
                    details={"current_status": payout.status},
                )
            from_status = payout.status
            payout.fail(reason)
            payout.save()
            cls._audit(
                payout,
                admin,
                AdminActionType.FAIL_PAYOUT,
                TransactionType.PAYOUT_FAILED,
                from_status=from_status,
                extra={"reason": reason},
            )
        return payout

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _validate_amount(amount) -> None:
        if amount is None or amount <= 0:
            raise BusinessRuleError(
                "Payout amount must be greater than zero",
                details={"field": "amount"},
            )
        if amount < settings.PAYOUT_MIN_AMOUNT:
            raise BusinessRuleError(
                f"Minimum payout amount is Rp {settings.PAYOUT_MIN_AMOUNT:,}",
                details={"field": "amount", "minimum": settings.PAYOUT_MIN_AMOUNT},
            )
        if amount > settings.PAYOUT_MAX_AMOUNT:
            raise BusinessRuleError(
                f"Maximum payout amount is Rp {settings.PAYOUT_MAX_AMOUNT:,}",
                details={"field": "amount", "maximum": settings.PAYOUT_MAX_AMOUNT},
            )

    @classmethod
    def _audit(
        cls,
        payout: Payout,
        admin,
        action: str,
        transaction_type: str,
        from_status: str,
        extra: dict | None = None,
    ) -> None:
        details = {"amount": payout.amount, "freelancer_id": str(payout.freelancer_id)}
        details.update(extra or {})

        record_admin_action(
            admin,
            action,
            target_type=AdminTargetType.PAYOUT,
            target_id=payout.id,
            details=details,
        )
        log_transaction(
            transaction_type,
            reference_type=ReferenceType.PAYOUT,
            reference_id=payout.id,
            amount=payout.amount,
            from_status=from_status,
            to_status=payout.status,
            actor=admin,
            actor_type=ActorType.ADMIN,
            metadata=details,
        )
        cls.get_logger().info(
            "Payout status changed",
            extra={
                "payout_id": str(payout.id),
                "from_status": from_status,
                "to_status": payout.status,
                "admin_id": str(admin.id),
            },
        )
