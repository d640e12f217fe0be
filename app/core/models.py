"""
Abstract base models shared by every domain app.

Base Classes:
    UUIDPrimaryKeyMixin: UUID primary key (money-bearing and audited records)
    BaseModel: created_at / updated_at timestamps, newest-first ordering

Usage:
    from core.models import BaseModel, UUIDPrimaryKeyMixin

    class Escrow(UUIDPrimaryKeyMixin, BaseModel):
        total_amount = models.PositiveBigIntegerField()

Note:
    Always list mixins before BaseModel in inheritance.
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Ids of escrows, payouts and disputes appear in URLs and gateway
    metadata, so they must not reveal record counts or ordering.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Set when the object is first created
        updated_at: Updated whenever the object is saved
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"

