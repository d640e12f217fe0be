"""
Escrow service owning the funds-holding lifecycle of a project.

This module provides the EscrowService class which handles:
- Escrow creation with a hosted checkout session
- Funding confirmation from gateway webhooks
- Funding reconciliation by polling the gateway
- Release of funds to the freelancer (creates the Payout)
- Earnings aggregation for freelancers

The gateway is always called OUTSIDE database transactions: a slow or
failing gateway never holds row locks, and a rolled-back transaction
never leaves a half-recorded gateway call behind.

Usage:
    from payments.services import EscrowService

    checkout = EscrowService.create_escrow(project_id, client_id)
    checkout.session_token  # hand to the checkout widget

    EscrowService.handle_webhook(notification)

    result = EscrowService.check_payment_status(escrow_id, user_id)
    result.updated  # True only when this call funded the escrow

    escrow = EscrowService.release(escrow_id, client_id)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.db.models import Sum
from django.utils import timezone

from core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from core.services import BaseService
from payments.adapters import MidtransAdapter
from payments.audit import log_transaction
from payments.exceptions import GatewayError, InvalidStateTransitionError
from payments.locks import lock_for_update
from payments.models import ORDER_ID_PREFIX, Escrow, GatewayOrder, Payout
from payments.state_machines import (
    ActorType,
    EscrowStatus,
    PayoutStatus,
    ReferenceType,
    TransactionType,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class EscrowCheckout:
    """
    Result of creating an escrow.

    Attributes:
        escrow: The PENDING escrow
        session_token: Token for the client-side checkout widget
        redirect_url: Hosted payment page URL
    """

    escrow: Escrow
    session_token: str
    redirect_url: str = ""


@dataclass
class PaymentStatusResult:
    """
    Result of polling the gateway for an escrow.

    Attributes:
        status: Escrow status after the call
        updated: True only if this call moved the escrow to FUNDED
        transaction_status: Gateway status, None when the gateway was not asked
    """

    status: str
    updated: bool
    transaction_status: str | None = None


class WebhookOutcome:
    """What handle_webhook did with a notification."""

    IGNORED_ORDER = "ignored_order"
    INVALID_SIGNATURE = "invalid_signature"
    UNKNOWN_ORDER = "unknown_order"
    FUNDED = "funded"
    LATE_FUNDING = "late_funding"
    ALREADY_PROCESSED = "already_processed"
    CHECKOUT_RESET = "checkout_reset"
    IGNORED_STATUS = "ignored_status"


@dataclass
class Earnings:
    """Freelancer earnings summary."""

    total_earned: int
    in_escrow: int
    this_month: int
    available_balance: int
    recent_payouts: list = field(default_factory=list)
    recent_escrows: list = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================

# Gateway statuses that leave no money in flight; an unknown order polls as pending
RENEWABLE_STATUSES = ("pending", "failure")


def build_order_id(project_id: uuid.UUID | str) -> str:
    """
    Gateway order id: ``esc-<12 hex chars of project id>-<unix millis>``.

    Short enough for the gateway's order id limit; the millisecond
    suffix keeps renewed checkouts for the same project unique.
    """
    project_hex = uuid.UUID(str(project_id)).hex[:12]
    millis = int(timezone.now().timestamp() * 1000)
    return f"{ORDER_ID_PREFIX}{project_hex}-{millis}"


def split_amount(total_amount: int, fee_percent: int | None = None) -> tuple[int, int]:
    """
    Split a total into (platform_fee, freelancer_amount).

    The fee is total * percent / 100 rounded half-up to a whole unit,
    and the two parts always add back up to the total.
    """
    if fee_percent is None:
        fee_percent = settings.PLATFORM_FEE_PERCENT
    platform_fee = (total_amount * fee_percent + 50) // 100
    return platform_fee, total_amount - platform_fee


# =============================================================================
# Escrow Service
# =============================================================================


class EscrowService(BaseService):
    """
    Service for the escrow lifecycle.

    State Flow:
        create_escrow: -> PENDING
        handle_webhook / check_payment_status: PENDING -> FUNDED
        release: FUNDED -> RELEASED (+ Payout, project COMPLETED)

    Gateway Injection:
        The gateway is held at class level. Tests call
        EscrowService.set_gateway(double) and reset it with
        EscrowService.set_gateway(None).
    """

    _gateway: Any = None

    @classmethod
    def get_gateway(cls):
        """Get the payment gateway client."""
        if cls._gateway is None:
            cls._gateway = MidtransAdapter.from_settings()
        return cls._gateway

    @classmethod
    def set_gateway(cls, gateway) -> None:
        """Set the payment gateway client (for testing)."""
        cls._gateway = gateway

    # =========================================================================
    # Creation
    # =========================================================================

    @classmethod
    def create_escrow(cls, project_id, client_id) -> EscrowCheckout:
        """
        Create the escrow for a project and open a checkout session.

        Preconditions:
            - caller owns the project
            - no escrow exists yet for the project
            - the project has exactly one ACCEPTED bid

        Raises:
            NotFoundError: Project does not exist
            PermissionDeniedError: Caller is not the project's client
            ConflictError: Escrow already exists
            BusinessRuleError: No accepted bid
            GatewayError: Checkout session could not be created
        """
        from marketplace.models import BidStatus, Project

        project = Project.objects.select_related("client").filter(id=project_id).first()
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": str(project_id)})
        if project.client_id != client_id:
            raise PermissionDeniedError("Not your project")
        if Escrow.objects.filter(project_id=project.id).exists():
            raise ConflictError(
                "Escrow already exists for this project",
                error_code="ESCROW_EXISTS",
            )

        accepted_bids = list(project.bids.filter(status=BidStatus.ACCEPTED)[:2])
        if len(accepted_bids) != 1:
            raise BusinessRuleError(
                "Project has no accepted bid",
                error_code="NO_ACCEPTED_BID",
            )
        bid = accepted_bids[0]

        total_amount = int(round(bid.amount))
        platform_fee, freelancer_amount = split_amount(total_amount)
        order_id = build_order_id(project.id)

        # Gateway call happens before any write
        session = cls.get_gateway().create_transaction(
            order_id=order_id,
            amount=total_amount,
            payer_email=project.client.email,
            description=project.title,
        )

        try:
            with cls.atomic():
                escrow = Escrow.objects.create(
                    project=project,
                    client_id=project.client_id,
                    freelancer_id=bid.freelancer_id,
                    total_amount=total_amount,
                    platform_fee=platform_fee,
                    freelancer_amount=freelancer_amount,
                    gateway_order_id=order_id,
                    session_token=session.token,
                )
                GatewayOrder.objects.create(escrow=escrow, order_id=order_id)
        except IntegrityError as e:
            raise ConflictError(
                "Escrow already exists for this project",
                error_code="ESCROW_EXISTS",
            ) from e

        log_transaction(
            TransactionType.ESCROW_CREATED,
            reference_type=ReferenceType.ESCROW,
            reference_id=escrow.id,
            amount=total_amount,
            to_status=EscrowStatus.PENDING,
            actor=project.client,
            actor_type=ActorType.CLIENT,
            metadata={"order_id": order_id, "platform_fee": platform_fee},
        )
        cls.get_logger().info(
            "Escrow created",
            extra={
                "escrow_id": str(escrow.id),
                "project_id": str(project.id),
                "order_id": order_id,
                "total_amount": total_amount,
            },
        )
        return EscrowCheckout(
            escrow=escrow,
            session_token=session.token,
            redirect_url=session.redirect_url,
        )

    @classmethod
    def renew_checkout(cls, escrow_id, client_id) -> EscrowCheckout:
        """
        Issue a fresh checkout session for a PENDING escrow.

        Used after the previous session expired or was cancelled. While
        the previous session is still open the gateway is asked about it
        first: a payment that already landed funds the escrow instead of
        opening a second checkout, and a payment still being processed
        blocks the renewal. The superseded order id stays routable for
        webhooks and polls.

        Returns:
            EscrowCheckout; session_token is empty when the previous
            order turned out to be paid

        Raises:
            InvalidStateTransitionError: Escrow is no longer PENDING
            BusinessRuleError: Previous payment still being processed (409)
            GatewayError: Gateway could not be reached
        """
        escrow = cls._get_for_client(escrow_id, client_id)
        if escrow.status != EscrowStatus.PENDING:
            raise InvalidStateTransitionError(
                "Only pending escrows can start a new checkout",
                details={"current_status": escrow.status},
            )

        gateway = cls.get_gateway()
        # An expiry notification already cleared the token of a dead session
        if escrow.session_token:
            previous_order_id = escrow.gateway_order_id
            previous = gateway.get_transaction_status(previous_order_id)
            if gateway.is_payment_success(previous.transaction_status, previous.fraud_status):
                cls._apply_funding(escrow.id, source="renew", order_id=previous_order_id)
                return EscrowCheckout(escrow=Escrow.objects.get(id=escrow.id), session_token="")
            if not (
                previous.transaction_status in RENEWABLE_STATUSES
                or gateway.is_payment_expired_or_cancelled(previous.transaction_status)
            ):
                raise BusinessRuleError(
                    "The previous payment is still being processed",
                    error_code="PAYMENT_IN_PROGRESS",
                    status_code=409,
                    details={"transaction_status": previous.transaction_status},
                )

        order_id = build_order_id(escrow.project_id)
        session = gateway.create_transaction(
            order_id=order_id,
            amount=escrow.total_amount,
            payer_email=escrow.client.email,
            description=escrow.project.title,
        )

        with cls.atomic():
            escrow = lock_for_update(Escrow, escrow.id, "Escrow not found")
            if escrow.status != EscrowStatus.PENDING:
                raise InvalidStateTransitionError(
                    "Only pending escrows can start a new checkout",
                    details={"current_status": escrow.status},
                )
            previous_order_id = escrow.gateway_order_id
            escrow.reset_checkout(order_id=order_id, session_token=session.token)
            escrow.save()
            GatewayOrder.objects.create(escrow=escrow, order_id=order_id)

        cls.get_logger().info(
            "Escrow checkout renewed",
            extra={
                "escrow_id": str(escrow.id),
                "order_id": order_id,
                "previous_order_id": previous_order_id,
            },
        )
        return EscrowCheckout(
            escrow=escrow,
            session_token=session.token,
            redirect_url=session.redirect_url,
        )

    # =========================================================================
    # Funding Confirmation
    # =========================================================================

    @classmethod
    def handle_webhook(cls, notification: dict[str, Any]) -> str:
        """
        Apply a gateway payment notification.

        Never raises for bad input: notifications with a foreign order id,
        a bad signature, or an unknown order are logged and discarded.

        Args:
            notification: Parsed webhook body

        Returns:
            One of the WebhookOutcome values
        """
        logger = cls.get_logger()
        order_id = str(notification.get("order_id") or "")
        transaction_status = str(notification.get("transaction_status") or "")
        fraud_status = notification.get("fraud_status")
        log_context = {"order_id": order_id, "transaction_status": transaction_status}

        if not order_id.startswith(ORDER_ID_PREFIX):
            logger.warning("Webhook for foreign order id discarded", extra=log_context)
            return WebhookOutcome.IGNORED_ORDER

        gateway = cls.get_gateway()
        if not gateway.verify_signature(notification):
            logger.warning("Webhook with invalid signature discarded", extra=log_context)
            return WebhookOutcome.INVALID_SIGNATURE

        escrow = cls._find_by_order_id(order_id)
        if escrow is None:
            logger.warning("Webhook for unknown order discarded", extra=log_context)
            return WebhookOutcome.UNKNOWN_ORDER

        if gateway.is_payment_success(transaction_status, fraud_status):
            return cls._apply_funding(escrow.id, source="webhook", order_id=order_id)

        if gateway.is_payment_expired_or_cancelled(transaction_status):
            return cls._apply_checkout_reset(escrow.id, order_id=order_id)

        logger.info("Webhook status needs no action", extra=log_context)
        return WebhookOutcome.IGNORED_STATUS

    @classmethod
    def check_payment_status(cls, escrow_id, user_id) -> PaymentStatusResult:
        """
        Poll the gateway for an escrow still waiting on payment.

        Reconciliation fallback for missed webhooks. Safe to call any
        number of times: a non-PENDING escrow returns immediately with
        ``updated=False`` and the gateway is not contacted.

        Raises:
            NotFoundError: Escrow does not exist
            PermissionDeniedError: Caller is neither client nor freelancer
            BusinessRuleError: Escrow has no gateway order
            GatewayError: Gateway poll failed
        """
        escrow = Escrow.objects.filter(id=escrow_id).first()
        if escrow is None:
            raise NotFoundError("Escrow not found", details={"escrow_id": str(escrow_id)})
        if not escrow.is_participant(user_id):
            raise PermissionDeniedError("Not a participant of this escrow")

        if escrow.status != EscrowStatus.PENDING:
            return PaymentStatusResult(status=escrow.status, updated=False)
        if not escrow.gateway_order_id:
            raise BusinessRuleError("No payment gateway order linked to this escrow")

        return cls._poll(escrow, source="poll")

    @classmethod
    def reconcile_pending(cls, older_than_minutes: int = 15, limit: int = 100) -> list[str]:
        """
        Poll the gateway for PENDING escrows that should have paid by now.

        Used by the periodic reconciliation task. Each escrow is polled
        independently; a gateway failure for one is logged and the rest
        continue.

        Returns:
            Ids of escrows this run moved to FUNDED
        """
        cutoff = timezone.now() - timedelta(minutes=older_than_minutes)
        candidates = list(
            Escrow.objects.filter(
                status=EscrowStatus.PENDING,
                created_at__lte=cutoff,
            )
            .exclude(gateway_order_id="")
            .order_by("created_at")[:limit]
        )

        funded = []
        for escrow in candidates:
            try:
                result = cls._poll(escrow, source="reconcile")
            except GatewayError:
                cls.get_logger().warning(
                    "Reconciliation poll failed",
                    extra={"escrow_id": str(escrow.id), "order_id": escrow.gateway_order_id},
                    exc_info=True,
                )
                continue
            if result.updated:
                funded.append(str(escrow.id))
        return funded

    @staticmethod
    def _find_by_order_id(order_id: str) -> Escrow | None:
        """Resolve the current order id, then any order a renewal superseded."""
        escrow = Escrow.objects.filter(gateway_order_id=order_id).first()
        if escrow is not None:
            return escrow
        order = GatewayOrder.objects.select_related("escrow").filter(order_id=order_id).first()
        return order.escrow if order is not None else None

    @classmethod
    def _poll(cls, escrow: Escrow, source: str) -> PaymentStatusResult:
        """
        Ask the gateway about the current order, then superseded ones.

        Stops at the first order the gateway reports as paid.
        """
        gateway = cls.get_gateway()
        gateway_status = gateway.get_transaction_status(escrow.gateway_order_id)
        paid_order_id = None
        if gateway.is_payment_success(
            gateway_status.transaction_status, gateway_status.fraud_status
        ):
            paid_order_id = escrow.gateway_order_id
        else:
            superseded = (
                GatewayOrder.objects.filter(escrow_id=escrow.id)
                .exclude(order_id=escrow.gateway_order_id)
                .order_by("-created_at")
                .values_list("order_id", flat=True)
            )
            for order_id in superseded:
                previous = gateway.get_transaction_status(order_id)
                if gateway.is_payment_success(previous.transaction_status, previous.fraud_status):
                    gateway_status = previous
                    paid_order_id = order_id
                    break

        updated = False
        if paid_order_id is not None:
            outcome = cls._apply_funding(escrow.id, source=source, order_id=paid_order_id)
            updated = outcome == WebhookOutcome.FUNDED

        current_status = Escrow.objects.values_list("status", flat=True).get(id=escrow.id)
        return PaymentStatusResult(
            status=current_status,
            updated=updated,
            transaction_status=gateway_status.transaction_status,
        )

    @classmethod
    def _apply_funding(cls, escrow_id, source: str, order_id: str | None = None) -> str:
        """
        Mark the escrow FUNDED and unlock the project's chat in one transaction.

        order_id is the gateway order that was paid. It differs from the
        escrow's current order when a superseded checkout got paid.
        """
        from chat.models import Conversation

        with cls.atomic():
            escrow = lock_for_update(Escrow, escrow_id, "Escrow not found")
            paid_order_id = order_id or escrow.gateway_order_id

            from_status = escrow.status
            if escrow.status == EscrowStatus.PENDING:
                escrow.fund()
                outcome = WebhookOutcome.FUNDED
            elif escrow.status == EscrowStatus.DISPUTED and escrow.funded_at is None:
                escrow.record_late_funding()
                outcome = WebhookOutcome.LATE_FUNDING
            else:
                cls.get_logger().info(
                    "Funding confirmation already applied",
                    extra={"escrow_id": str(escrow.id), "status": escrow.status},
                )
                return WebhookOutcome.ALREADY_PROCESSED

            escrow.save()
            Conversation.objects.update_or_create(
                project_id=escrow.project_id,
                defaults={"escrow_active": True},
            )

        log_transaction(
            TransactionType.ESCROW_FUNDED,
            reference_type=ReferenceType.ESCROW,
            reference_id=escrow.id,
            amount=escrow.total_amount,
            from_status=from_status,
            to_status=escrow.status,
            actor_type=ActorType.SYSTEM,
            metadata={"source": source, "order_id": paid_order_id},
        )
        cls.get_logger().info(
            "Escrow funded",
            extra={
                "escrow_id": str(escrow.id),
                "order_id": paid_order_id,
                "source": source,
                "outcome": outcome,
            },
        )
        return outcome

    @classmethod
    def _apply_checkout_reset(cls, escrow_id, order_id: str) -> str:
        """Keep a PENDING escrow retryable after its checkout expired."""
        with cls.atomic():
            escrow = lock_for_update(Escrow, escrow_id, "Escrow not found")
            if escrow.status != EscrowStatus.PENDING:
                cls.get_logger().warning(
                    "Expiry notification for non-pending escrow ignored",
                    extra={"escrow_id": str(escrow.id), "status": escrow.status},
                )
                return WebhookOutcome.ALREADY_PROCESSED
            if escrow.gateway_order_id != order_id:
                cls.get_logger().info(
                    "Expiry notification for superseded order ignored",
                    extra={"escrow_id": str(escrow.id), "order_id": order_id},
                )
                return WebhookOutcome.IGNORED_STATUS
            escrow.reset_checkout()
            escrow.save()

        cls.get_logger().info(
            "Escrow checkout expired, awaiting a new checkout",
            extra={"escrow_id": str(escrow.id), "order_id": escrow.gateway_order_id},
        )
        return WebhookOutcome.CHECKOUT_RESET

    # =========================================================================
    # Release
    # =========================================================================

    @classmethod
    def release(cls, escrow_id, client_id) -> Escrow:
        """
        Release a funded escrow to the freelancer.

        Inside one transaction: create the PENDING Payout for the
        freelancer amount, mark the escrow RELEASED and the project
        COMPLETED. The tier recalculation afterwards is best-effort.

        Raises:
            NotFoundError: Escrow does not exist
            PermissionDeniedError: Caller is not the escrow's client
            InvalidStateTransitionError: Escrow not FUNDED, or work not delivered
        """
        from marketplace.models import Project, ProjectStatus
        from marketplace.services import TierService

        with cls.atomic():
            escrow = lock_for_update(Escrow, escrow_id, "Escrow not found")
            if escrow.client_id != client_id:
                raise PermissionDeniedError("Only the client can release this escrow")
            if escrow.status != EscrowStatus.FUNDED:
                raise InvalidStateTransitionError(
                    "Escrow is not funded",
                    error_code="ESCROW_NOT_FUNDED",
                    details={"current_status": escrow.status},
                )

            project = lock_for_update(Project, escrow.project_id, "Project not found")
            if project.status not in (ProjectStatus.DELIVERED, ProjectStatus.COMPLETED):
                raise InvalidStateTransitionError(
                    "Work must be delivered before release",
                    error_code="WORK_NOT_DELIVERED",
                    details={"project_status": project.status},
                )

            payout = Payout.objects.create(
                freelancer_id=escrow.freelancer_id,
                escrow=escrow,
                amount=escrow.freelancer_amount,
                **cls._bank_snapshot(escrow.freelancer_id),
            )
            escrow.release()
            escrow.save()
            project.status = ProjectStatus.COMPLETED
            project.save(update_fields=["status", "updated_at"])

            log_transaction(
                TransactionType.ESCROW_RELEASED,
                reference_type=ReferenceType.ESCROW,
                reference_id=escrow.id,
                amount=escrow.freelancer_amount,
                from_status=EscrowStatus.FUNDED,
                to_status=EscrowStatus.RELEASED,
                actor=escrow.client,
                actor_type=ActorType.CLIENT,
                metadata={"payout_id": str(payout.id)},
            )

        cls.get_logger().info(
            "Escrow released",
            extra={
                "escrow_id": str(escrow.id),
                "payout_id": str(payout.id),
                "freelancer_amount": escrow.freelancer_amount,
            },
        )

        cls.run_best_effort("tier recalculation", TierService.recalculate, escrow.freelancer_id)
        return escrow

    @staticmethod
    def _bank_snapshot(freelancer_id) -> dict[str, str]:
        from marketplace.models import FreelancerProfile

        profile = FreelancerProfile.objects.filter(user_id=freelancer_id).first()
        return profile.bank_snapshot() if profile else {}

    # =========================================================================
    # Queries
    # =========================================================================

    @classmethod
    def get_escrow(cls, escrow_id, user) -> Escrow:
        """Return an escrow visible to its participants and admins."""
        escrow = (
            Escrow.objects.select_related("project", "client", "freelancer")
            .filter(id=escrow_id)
            .first()
        )
        if escrow is None:
            raise NotFoundError("Escrow not found", details={"escrow_id": str(escrow_id)})
        if not (escrow.is_participant(user.id) or user.is_platform_admin):
            raise PermissionDeniedError("Not a participant of this escrow")
        return escrow

    @classmethod
    def get_earnings(cls, freelancer_id, recent_limit: int = 10) -> Earnings:
        """
        Aggregate a freelancer's earnings with database sums.

        total_earned: RELEASED freelancer amounts
        in_escrow: FUNDED freelancer amounts
        this_month: RELEASED since the start of the current month (UTC)
        """
        from payments.services.payout_service import PayoutService

        escrows = Escrow.objects.filter(freelancer_id=freelancer_id)
        month_start = timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total_earned = escrows.filter(status=EscrowStatus.RELEASED).aggregate(
            total=Sum("freelancer_amount")
        )["total"] or 0
        in_escrow = escrows.filter(status=EscrowStatus.FUNDED).aggregate(
            total=Sum("freelancer_amount")
        )["total"] or 0
        this_month = escrows.filter(
            status=EscrowStatus.RELEASED,
            released_at__gte=month_start,
        ).aggregate(total=Sum("freelancer_amount"))["total"] or 0

        return Earnings(
            total_earned=total_earned,
            in_escrow=in_escrow,
            this_month=this_month,
            available_balance=PayoutService.get_available_balance(freelancer_id),
            recent_payouts=list(
                Payout.objects.filter(freelancer_id=freelancer_id)
                .exclude(status=PayoutStatus.FAILED)[:recent_limit]
            ),
            recent_escrows=list(escrows.select_related("project")[:recent_limit]),
        )

    @classmethod
    def _get_for_client(cls, escrow_id, client_id) -> Escrow:
        escrow = (
            Escrow.objects.select_related("project", "client").filter(id=escrow_id).first()
        )
        if escrow is None:
            raise NotFoundError("Escrow not found", details={"escrow_id": str(escrow_id)})
        if escrow.client_id != client_id:
            raise PermissionDeniedError("Only the client can manage this escrow")
        return escrow
