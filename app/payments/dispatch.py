"""
Fire-and-forget calls to the notification and points services.

Payment outcomes never depend on these collaborators. Calls are queued as
Celery tasks once the surrounding database transaction commits, so a
rolled-back settlement sends nothing and a broker outage only costs a log
line.

Usage:
    from payments.dispatch import notify, award_points

    with transaction.atomic():
        ...
        notify(booking.provider_id, "Payment received", "Your client has paid",
               type="payment_received", booking_id=str(booking.id))
        award_points(booking.provider_id, 10, "job_completed")
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings
from django.db import transaction

from toolkit.protocols import NotificationSender, PointsAwarder

logger = logging.getLogger(__name__)


# =============================================================================
# HTTP Collaborators
# =============================================================================


class HttpNotificationSender:
    """NotificationSender posting to the notification service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url if base_url is not None else settings.NOTIFICATION_SERVICE_URL
        self.timeout = timeout or settings.COLLABORATOR_TIMEOUT

    def send(self, user_id: str, title: str, body: str, **kwargs: Any) -> bool:
        if not self.base_url:
            logger.info(
                "Notification service not configured, dropping notification",
                extra={"user_id": user_id, "title": title},
            )
            return False

        response = requests.post(
            self.base_url,
            json={"userId": user_id, "title": title, "body": body, "data": kwargs},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return True


class HttpPointsAwarder:
    """PointsAwarder posting to the gamification service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url if base_url is not None else settings.POINTS_SERVICE_URL
        self.timeout = timeout or settings.COLLABORATOR_TIMEOUT

    def award(self, user_id: str, points: int, reason: str, **kwargs: Any) -> bool:
        if not self.base_url:
            logger.info(
                "Points service not configured, dropping award",
                extra={"user_id": user_id, "points": points, "reason": reason},
            )
            return False

        response = requests.post(
            self.base_url,
            json={"userId": user_id, "points": points, "reason": reason, **kwargs},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return True


# =============================================================================
# Factories
# =============================================================================


def get_notification_sender() -> NotificationSender:
    return HttpNotificationSender()


def get_points_awarder() -> PointsAwarder:
    return HttpPointsAwarder()


# =============================================================================
# Dispatch
# =============================================================================


def _enqueue(task, *args: Any, **kwargs: Any) -> None:
    try:
        task.delay(*args, **kwargs)
    except Exception:
        logger.exception(
            "Failed to queue collaborator task",
            extra={"task": task.name},
        )


def notify(user_id: str, title: str, body: str, **data: Any) -> None:
    """Queue a notification to be sent after the current transaction commits."""
    from payments.tasks import send_payment_notification

    if not user_id:
        return
    transaction.on_commit(
        lambda: _enqueue(send_payment_notification, user_id, title, body, data)
    )


def award_points(user_id: str, points: int, reason: str, **data: Any) -> None:
    """Queue a points award to be sent after the current transaction commits."""
    from payments.tasks import award_completion_points

    if not user_id or points <= 0:
        return
    transaction.on_commit(
        lambda: _enqueue(award_completion_points, user_id, points, reason, data)
    )
