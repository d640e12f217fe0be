"""
Escrow model holding a project's payment between checkout and release.

One Escrow exists per Project. It is created PENDING together with a
gateway checkout session, moves to FUNDED when the gateway confirms the
payment (webhook or status poll), and ends RELEASED (payable to the
freelancer) or REFUNDED (returned to the client).

Usage:
    from payments.models import Escrow

    escrow = Escrow.objects.select_for_update().get(id=escrow_id)
    escrow.fund()  # pending -> funded
    escrow.save()

    escrow.release()  # funded -> released
    escrow.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel, UUIDPrimaryKeyMixin
from payments.state_machines import EscrowStatus

# Gateway order ids start with this prefix; webhooks for anything else are ignored.
ORDER_ID_PREFIX = "esc-"


class Escrow(UUIDPrimaryKeyMixin, BaseModel):
    """
    Funds held by the platform for one project.

    State Flow:
        PENDING -> FUNDED -> RELEASED
        PENDING/FUNDED -> DISPUTED -> RELEASED | REFUNDED

    Fields:
        project: The project this escrow pays for (1:1)
        client: Payer
        freelancer: Payee (the accepted bidder)
        total_amount: Amount charged to the client
        platform_fee: round(total_amount * fee percent / 100)
        freelancer_amount: total_amount - platform_fee
        status: Current FSM state
        gateway_order_id: Order id sent to the payment gateway
        session_token: Checkout token handed to the client widget
        funded_at: When the gateway confirmed payment. Stays set even
            when the escrow is disputed, and is the only reliable record
            that money actually arrived.
        released_at / refunded_at / disputed_at: Transition timestamps
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    project = models.OneToOneField(
        "marketplace.Project",
        on_delete=models.CASCADE,
        related_name="escrow",
        help_text="Project this escrow pays for",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_paid",
        help_text="Client funding the escrow",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_earned",
        help_text="Freelancer receiving the funds on release",
    )

    # ==========================================================================
    # Amounts (whole currency units, the gateway does not accept subunits)
    # ==========================================================================

    total_amount = models.PositiveBigIntegerField(
        help_text="Amount charged to the client",
    )
    platform_fee = models.PositiveBigIntegerField(
        help_text="Platform fee kept on release",
    )
    freelancer_amount = models.PositiveBigIntegerField(
        help_text="Amount payable to the freelancer on release",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=EscrowStatus.PENDING,
        choices=EscrowStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the escrow (managed by FSM)",
    )

    # ==========================================================================
    # Gateway Integration
    # ==========================================================================

    gateway_order_id = models.CharField(
        max_length=50,
        unique=True,
        help_text="Order id registered with the payment gateway",
    )
    session_token = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Hosted checkout session token",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    funded_at = models.DateTimeField(null=True, blank=True, db_index=True)
    released_at = models.DateTimeField(null=True, blank=True, db_index=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    disputed_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow"
        verbose_name_plural = "Escrows"
        indexes = [
            models.Index(fields=["freelancer", "status"], name="escrow_freelancer_status_idx"),
            models.Index(fields=["status", "funded_at"], name="escrow_status_funded_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gt=0),
                name="escrow_total_positive",
            ),
            models.CheckConstraint(
                condition=Q(total_amount=F("platform_fee") + F("freelancer_amount")),
                name="escrow_amounts_balance",
            ),
        ]

    def __str__(self) -> str:
        return f"Escrow({self.id}, {self.status}, {self.total_amount})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=EscrowStatus.PENDING,
        target=EscrowStatus.PENDING,
    )
    def reset_checkout(self, order_id: str | None = None, session_token: str = ""):
        """
        Keep the escrow retryable after an expired or cancelled checkout.

        Transition: PENDING -> PENDING

        Args:
            order_id: New gateway order id when a fresh checkout is issued
            session_token: Token of the fresh checkout session
        """
        if order_id:
            self.gateway_order_id = order_id
        self.session_token = session_token

    @transition(
        field=status,
        source=EscrowStatus.PENDING,
        target=EscrowStatus.FUNDED,
    )
    def fund(self):
        """
        Record the gateway's payment confirmation.

        Transition: PENDING -> FUNDED
        """
        self.funded_at = timezone.now()

    @transition(
        field=status,
        source=EscrowStatus.DISPUTED,
        target=EscrowStatus.DISPUTED,
        conditions=[lambda escrow: escrow.funded_at is None],
    )
    def record_late_funding(self):
        """
        Record a payment that landed after the escrow was disputed.

        Transition: DISPUTED -> DISPUTED (sets funded_at only)
        """
        self.funded_at = timezone.now()

    @transition(
        field=status,
        source=EscrowStatus.FUNDED,
        target=EscrowStatus.RELEASED,
    )
    def release(self):
        """
        Release funds to the freelancer at the client's request.

        Transition: FUNDED -> RELEASED
        """
        self.released_at = timezone.now()

    @transition(
        field=status,
        source=[EscrowStatus.PENDING, EscrowStatus.FUNDED],
        target=EscrowStatus.DISPUTED,
    )
    def open_dispute(self):
        """
        Freeze the escrow while a dispute is open.

        Transition: PENDING/FUNDED -> DISPUTED
        """
        self.disputed_at = timezone.now()

    @transition(
        field=status,
        source=[EscrowStatus.FUNDED, EscrowStatus.DISPUTED],
        target=EscrowStatus.RELEASED,
        conditions=[lambda escrow: escrow.funded_at is not None],
    )
    def release_by_resolution(self):
        """
        Release funds to the freelancer as a dispute outcome.

        Transition: FUNDED/DISPUTED -> RELEASED (only if money arrived)
        """
        self.released_at = timezone.now()

    @transition(
        field=status,
        source=[EscrowStatus.PENDING, EscrowStatus.FUNDED, EscrowStatus.DISPUTED],
        target=EscrowStatus.REFUNDED,
    )
    def refund(self):
        """
        Return funds to the client as a dispute outcome.

        Transition: PENDING/FUNDED/DISPUTED -> REFUNDED
        """
        self.refunded_at = timezone.now()

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def received_payment(self) -> bool:
        """Money reached the platform at some point, whatever happened to it since."""
        return self.funded_at is not None or self.status == EscrowStatus.RELEASED

    def is_participant(self, user_id) -> bool:
        return user_id in (self.client_id, self.freelancer_id)


class GatewayOrder(BaseModel):
    """
    An order id issued to the payment gateway for an escrow.

    Renewing a checkout replaces Escrow.gateway_order_id, but the client
    may still pay the previous order. Every issued id is kept here so
    webhooks and polls for a superseded order still reach the escrow.
    """

    escrow = models.ForeignKey(
        Escrow,
        on_delete=models.CASCADE,
        related_name="gateway_orders",
        help_text="Escrow the order was issued for",
    )
    order_id = models.CharField(
        max_length=50,
        unique=True,
        help_text="Order id registered with the payment gateway",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Gateway order"
        verbose_name_plural = "Gateway orders"

    def __str__(self) -> str:
        return self.order_id
