"""
Abstract base model.

All payment tables carry creation and modification timestamps; the
ledger, payouts and webhooks rely on them for ordering, reporting
windows and stuck-event detection.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class PayoutRequest(UUIDPrimaryKeyMixin, BaseModel):
        amount = models.DecimalField(max_digits=12, decimal_places=2)

List mixins before BaseModel.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Timestamped abstract model.

    Fields:
        created_at: Set once on insert (indexed for date-range queries)
        updated_at: Refreshed on every save
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When this record was last saved",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
