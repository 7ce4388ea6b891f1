"""
Abstract model mixins combined with core.models.BaseModel.

    UUIDPrimaryKeyMixin  UUID primary key
    MetadataMixin        JSON metadata column with get/set helpers

Usage:
    class PaymentSource(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        source_id = models.CharField(max_length=64, unique=True)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    UUID primary key.

    Bookings and payout requests are addressed by ID in API URLs, so IDs
    must not be sequential.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    Free-form JSON metadata.

    Usage:
        source.set_meta("payment_status", "paid", save=False)
        recorded_by = txn.get_meta("recorded_by")
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Extra key-value data (gateway status, refund notes, ...)",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set_meta(self, key: str, value: Any, save: bool = True) -> None:
        """Set one key; with save=True only metadata and updated_at are written."""
        self.metadata[key] = value
        if save:
            self.save(update_fields=["metadata", "updated_at"])
