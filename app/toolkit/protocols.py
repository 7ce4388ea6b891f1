"""
Protocols for the notification and points services.

Payment code only depends on these shapes; payments.dispatch supplies HTTP
implementations and tests substitute mocks.

Usage:
    from toolkit.protocols import NotificationSender

    class RecordingSender:
        def __init__(self):
            self.sent = []

        def send(self, user_id, title, body, **kwargs) -> bool:
            self.sent.append((user_id, title, body, kwargs))
            return True

    sender: NotificationSender = RecordingSender()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any


@runtime_checkable
class NotificationSender(Protocol):
    def send(self, user_id: str, title: str, body: str, **kwargs: Any) -> bool:
        """
        Deliver a notification.

        Args:
            user_id: Recipient
            title: Notification title
            body: Notification text
            **kwargs: Payload such as type, booking_id and amount

        Returns:
            True if the notification was handed off, False if dropped
        """
        ...


@runtime_checkable
class PointsAwarder(Protocol):
    def award(self, user_id: str, points: int, reason: str, **kwargs: Any) -> bool:
        """
        Credit gamification points.

        Args:
            user_id: User receiving the points
            points: Positive number of points
            reason: Machine-readable reason ('job_completed', 'booking_completed')
            **kwargs: Context such as booking_id

        Returns:
            True if the award was recorded, False if dropped
        """
        ...
