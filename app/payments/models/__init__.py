"""
Payment domain models.

This module contains all payment-related models:
- Booking: Payment-relevant view of a marketplace booking
- PaymentSource: Gateway checkout session for a booking payment
- Payment: Gateway payment charged from a source
- PayoutRequest: Provider withdrawal request
- WebhookEvent: Gateway webhook event tracking for idempotent processing
- ProviderAccount, Transaction: Ledger records (defined in payments.ledger,
  re-exported here so Django's app registry discovers them)
"""

from payments.ledger.models import ProviderAccount, Transaction
from payments.models.booking import Booking
from payments.models.payment_source import Payment, PaymentSource
from payments.models.payout import PayoutRequest
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Booking",
    "Payment",
    "PaymentSource",
    "PayoutRequest",
    "ProviderAccount",
    "Transaction",
    "WebhookEvent",
]
