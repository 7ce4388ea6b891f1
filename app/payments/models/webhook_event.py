"""
WebhookEvent model: one row per gateway event ID.

The row is created before any effect of the event is applied, and the
unique event_id makes that creation the claim. A redelivery that finds a
PROCESSED or PROCESSING row does nothing; one that finds a FAILED row
takes it over and runs the handler again.

Usage:
    event, created = WebhookEvent.objects.get_or_create(
        event_id="evt_123",
        defaults={"event_type": "source.chargeable", "payload": payload},
    )
    if not created and not event.is_failed:
        return JsonResponse({"received": True, "skipped": True})
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    A received gateway event and how far its processing got.

    Status flow:
        PROCESSING -> PROCESSED
        PROCESSING -> FAILED -> PROCESSING (redelivery) -> ...

    Rows stuck in PROCESSING (the worker died mid-event) are moved to
    FAILED by payments.tasks.cleanup_stuck_webhooks.

    Fields:
        event_id: Gateway event ID (evt_...)
        event_type: e.g. source.chargeable, payment.paid
        payload: Verified request body
        attempts: Times a handler has been started for this event
    """

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100, db_index=True)
    payload = models.JSONField()

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PROCESSING,
        db_index=True,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    attempts = models.PositiveSmallIntegerField(default=1)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            # cleanup_stuck_webhooks scans PROCESSING rows by age
            models.Index(fields=["status", "updated_at"]),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def is_failed(self) -> bool:
        return self.status == WebhookEventStatus.FAILED

    # The mark_* helpers do not save.

    def mark_processing(self) -> None:
        """Take over a failed event for another attempt."""
        self.status = WebhookEventStatus.PROCESSING
        self.attempts += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_resource(self) -> dict:
        """The resource the event is about (data.attributes.data), or {}."""
        try:
            return self.payload["data"]["attributes"]["data"] or {}
        except (KeyError, TypeError):
            return {}
