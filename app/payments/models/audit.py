"""
Append-only audit trail models.

TransactionLog records every financial state transition. AdminAction
records every admin-initiated operation. Both are written through
payments.audit, which isolates failures from the primary operation.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import UUIDPrimaryKeyMixin
from payments.state_machines import (
    ActorType,
    AdminActionType,
    AdminTargetType,
    ReferenceType,
    TransactionType,
)


class ImmutableRecordError(Exception):
    """Raised when code tries to modify an existing audit record."""


class AppendOnlyModel(models.Model):
    """Rejects updates to rows that already exist."""

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(
                f"{self.__class__.__name__} records cannot be modified"
            )
        super().save(*args, **kwargs)


class TransactionLog(UUIDPrimaryKeyMixin, AppendOnlyModel):
    """
    One financial state transition.

    Fields:
        type: What happened (see TransactionType)
        reference_type / reference_id: Escrow, payout or dispute affected
        amount: Money involved, when applicable
        from_status / to_status: Transition endpoints
        actor / actor_type: Who caused it (actor is null for SYSTEM)
        metadata: Free-form context (bank code, available balance, ...)
        ip_address: Origin of the request when known
    """

    type = models.CharField(max_length=30, choices=TransactionType.choices, db_index=True)
    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_id = models.CharField(max_length=64, db_index=True)
    amount = models.BigIntegerField(null=True, blank=True)
    from_status = models.CharField(max_length=20, blank=True, default="")
    to_status = models.CharField(max_length=20, blank=True, default="")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transaction_logs",
    )
    actor_type = models.CharField(max_length=20, choices=ActorType.choices)
    metadata = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    class Meta(AppendOnlyModel.Meta):
        verbose_name = "Transaction log entry"
        verbose_name_plural = "Transaction log"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="txlog_reference_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type} {self.reference_type}:{self.reference_id}"


class AdminAction(UUIDPrimaryKeyMixin, AppendOnlyModel):
    """One admin-initiated operation."""

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="admin_actions",
    )
    action = models.CharField(max_length=30, choices=AdminActionType.choices, db_index=True)
    target_type = models.CharField(max_length=20, choices=AdminTargetType.choices)
    target_id = models.CharField(max_length=64, db_index=True)
    details = models.JSONField(default=dict, blank=True)

    class Meta(AppendOnlyModel.Meta):
        verbose_name = "Admin action"
        verbose_name_plural = "Admin actions"

    def __str__(self) -> str:
        return f"{self.action} {self.target_type}:{self.target_id}"
