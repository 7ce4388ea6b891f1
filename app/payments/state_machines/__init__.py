"""
State machine enums for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    BookingStatus,
    EscrowStatus,
    PaymentMethod,
    PaymentPreference,
    PaymentSourceStatus,
    PayoutState,
    RefundReason,
    TransactionStatus,
    TransactionType,
    WebhookEventStatus,
)

__all__ = [
    "BookingStatus",
    "EscrowStatus",
    "PaymentMethod",
    "PaymentPreference",
    "PaymentSourceStatus",
    "PayoutState",
    "RefundReason",
    "TransactionStatus",
    "TransactionType",
    "WebhookEventStatus",
]
