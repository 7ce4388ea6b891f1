"""
Celery tasks for payment processing.

This module provides async tasks for:
- Delivering payment notifications to the notification service
- Awarding gamification points after a completed job
- Periodic reset of webhook events stuck in PROCESSING

Usage:
    from payments.tasks import send_payment_notification

    # Normally queued through payments.dispatch.notify()
    send_payment_notification.delay(provider_id, "Payment received", "...", {})

    # Reset stuck webhooks (typically via celery beat)
    from payments.tasks import cleanup_stuck_webhooks
    cleanup_stuck_webhooks.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_DISPATCH_RETRIES = 3
DEFAULT_STUCK_PROCESSING_MINUTES = 30


# =============================================================================
# Collaborator Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_DISPATCH_RETRIES},
)
def send_payment_notification(
    self,
    user_id: str,
    title: str,
    body: str,
    data: dict | None = None,
) -> dict:
    """
    Deliver a notification through the configured NotificationSender.

    Args:
        user_id: Recipient user ID
        title: Notification title
        body: Notification body
        data: Extra payload (type, booking ID, amounts)

    Returns:
        Dict with delivery status
    """
    from payments.dispatch import get_notification_sender

    sent = get_notification_sender().send(user_id, title, body, **(data or {}))
    logger.info(
        "Payment notification delivered" if sent else "Payment notification dropped",
        extra={"user_id": user_id, "title": title, "attempt": self.request.retries},
    )
    return {"status": "sent" if sent else "dropped", "user_id": user_id}


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_DISPATCH_RETRIES},
)
def award_completion_points(
    self,
    user_id: str,
    points: int,
    reason: str,
    data: dict | None = None,
) -> dict:
    """
    Award points through the configured PointsAwarder.

    Returns:
        Dict with award status
    """
    from payments.dispatch import get_points_awarder

    awarded = get_points_awarder().award(user_id, points, reason, **(data or {}))
    logger.info(
        "Points awarded" if awarded else "Points award dropped",
        extra={
            "user_id": user_id,
            "points": points,
            "reason": reason,
            "attempt": self.request.retries,
        },
    )
    return {"status": "awarded" if awarded else "dropped", "user_id": user_id}


# =============================================================================
# Webhook Maintenance
# =============================================================================


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Periodic task to reset stuck webhooks.

    Finds webhooks that have been in PROCESSING status for too long
    and moves them to FAILED so a gateway redelivery runs them again.

    This handles cases where the web worker died mid-processing.

    Returns:
        Dict with count of webhooks reset
    """
    minutes = getattr(
        settings,
        "WEBHOOK_STUCK_PROCESSING_MINUTES",
        DEFAULT_STUCK_PROCESSING_MINUTES,
    )
    threshold = timezone.now() - timedelta(minutes=minutes)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        stuck_since = webhook.updated_at
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "event_id": webhook.event_id,
                "stuck_since": stuck_since.isoformat(),
            },
        )

    if reset_count > 0:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}
