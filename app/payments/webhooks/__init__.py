"""
Webhook handling for payment events from PayMongo.

This module provides the signature verifier, the event handlers, and the
view that ties them together. Deliveries are verified, claimed
idempotently, and processed synchronously.

Usage:
    # In urls.py
    from payments.webhooks.views import paymongo_webhook

    urlpatterns = [
        path("payments/webhook", paymongo_webhook, name="paymongo_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.signature import WebhookVerifier
from payments.webhooks.views import paymongo_webhook

__all__ = [
    "WebhookVerifier",
    "dispatch_webhook",
    "paymongo_webhook",
    "register_handler",
]
