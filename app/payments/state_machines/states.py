"""
State enums for payment models.

This module defines all state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Booking States (payment-relevant subset):
    awaiting_payment → pending (escrow payment held)
    pending_payment/accepted/.../pending_completion → payment_received
    pending_completion → completed (escrow released)
    completed/cancelled/declined/rejected are terminal for payments

Escrow States:
    held → released | refunded

Payment Source States:
    pending → chargeable → paid
    pending/chargeable → failed

Payout States:
    pending → approved → completed
    pending/approved → failed
"""

from django.db import models


class BookingStatus(models.TextChoices):
    """
    Booking lifecycle states visible to the payments subsystem.

    The booking flow itself (accepting, travelling, starting work) is driven
    by the marketplace; payments only apply the transitions defined on
    Booking and read the rest.

    Terminal states: COMPLETED, CANCELLED, DECLINED, REJECTED
    """

    PENDING = "pending", "Pending"
    PENDING_PAYMENT = "pending_payment", "Pending Payment"
    AWAITING_PAYMENT = "awaiting_payment", "Awaiting Payment"
    ACCEPTED = "accepted", "Accepted"
    TRAVELING = "traveling", "Traveling"
    ARRIVED = "arrived", "Arrived"
    IN_PROGRESS = "in_progress", "In Progress"
    PENDING_COMPLETION = "pending_completion", "Pending Completion"
    PAYMENT_RECEIVED = "payment_received", "Payment Received"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    DECLINED = "declined", "Declined"
    REJECTED = "rejected", "Rejected"

    @classmethod
    def terminal(cls) -> list[str]:
        return [cls.COMPLETED, cls.CANCELLED, cls.DECLINED, cls.REJECTED]

    @classmethod
    def open_for_payment(cls) -> list[str]:
        """States from which a final (pay-later) payment may be received."""
        return [
            cls.PENDING,
            cls.PENDING_PAYMENT,
            cls.ACCEPTED,
            cls.TRAVELING,
            cls.ARRIVED,
            cls.IN_PROGRESS,
            cls.PENDING_COMPLETION,
        ]

    @classmethod
    def incomplete_work(cls) -> list[str]:
        """States whose provider share counts towards the pending balance."""
        return [cls.IN_PROGRESS, cls.PENDING_COMPLETION, cls.PENDING_PAYMENT]


class PaymentPreference(models.TextChoices):
    """When the client pays for a booking."""

    PAY_FIRST = "pay_first", "Pay First"
    PAY_LATER = "pay_later", "Pay Later"


class EscrowStatus(models.TextChoices):
    """
    Escrow state of a booking's upfront payment.

    State Flow:
        HELD → RELEASED (client confirmed completion, provider credited)
        HELD → REFUNDED (cancelled before release, provider never credited)
    """

    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    """Payment methods supported by the gateway plus cash."""

    GCASH = "gcash", "GCash"
    PAYMAYA = "paymaya", "Maya"
    CASH = "cash", "Cash"

    @classmethod
    def gateway_methods(cls) -> list[str]:
        return [cls.GCASH, cls.PAYMAYA]


class PaymentSourceStatus(models.TextChoices):
    """
    States for gateway payment sources.

    State Flow:
        PENDING → CHARGEABLE → PAID
        PENDING → FAILED (expired, cancelled or payment failed)
    """

    PENDING = "pending", "Pending"
    CHARGEABLE = "chargeable", "Chargeable"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


class TransactionType(models.TextChoices):
    """
    Ledger entry types.

    PAYMENT and ESCROW_PAYMENT are settlement entries; at most one of them
    exists per booking. ADDITIONAL_CHARGE records extra charges settled on
    pay-first bookings after the upfront payment.
    """

    PAYMENT = "payment", "Payment"
    ESCROW_PAYMENT = "escrow_payment", "Escrow Payment"
    ADDITIONAL_CHARGE = "additional_charge", "Additional Charge"
    REFUND = "refund", "Refund"

    @classmethod
    def settlement_types(cls) -> list[str]:
        return [cls.PAYMENT, cls.ESCROW_PAYMENT]


class TransactionStatus(models.TextChoices):
    """
    Ledger entry states.

    HELD entries are escrowed funds not yet credited to the provider.
    REFUNDED marks a held entry that was returned to the client instead.
    """

    HELD = "held", "Held"
    COMPLETED = "completed", "Completed"
    REFUNDED = "refunded", "Refunded"


class PayoutState(models.TextChoices):
    """
    States for the PayoutRequest model lifecycle.

    Terminal states: COMPLETED, FAILED

    State Flow:
        PENDING → APPROVED → COMPLETED
        PENDING → FAILED
        APPROVED → FAILED
    """

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class WebhookEventStatus(models.TextChoices):
    """
    Processing states for inbound gateway webhook events.

    A PROCESSING record is claimed before side effects are applied and
    moved to PROCESSED once they have committed.

    State Flow:
        PROCESSING → PROCESSED
        PROCESSING → FAILED → PROCESSING (redelivery)
    """

    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


class RefundReason(models.TextChoices):
    """Refund reasons accepted by the gateway."""

    DUPLICATE = "duplicate", "Duplicate"
    FRAUDULENT = "fraudulent", "Fraudulent"
    REQUESTED_BY_CUSTOMER = "requested_by_customer", "Requested by Customer"
    OTHERS = "others", "Others"
