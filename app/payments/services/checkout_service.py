"""
Checkout service for client-initiated payments.

This module provides the CheckoutService class which handles:
- Creating gateway sources (reusing a pending one for the same booking/amount)
- Charging a chargeable source
- Reading a source's live state from the gateway
- Looking up the latest payment record for a booking
- Recording cash payments

Gateway calls are made outside database transactions; rows are written
afterwards under their own short transaction.

Usage:
    from payments.services import CheckoutService

    checkout = CheckoutService.create_source(
        amount=Decimal("500.00"),
        booking_id=booking.id,
        user_id="client-1",
        method="gcash",
    )
    redirect_to(checkout.source.checkout_url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction

from core.exceptions import ConflictError
from core.services import BaseService

from payments import dispatch
from payments.adapters import PayMongoAdapter, SourceResult, normalize_source_type
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.ledger.services import LedgerAccountant
from payments.ledger.types import to_money
from payments.models import Booking, Payment, PaymentSource
from payments.state_machines import (
    PaymentMethod,
    PaymentSourceStatus,
    TransactionStatus,
    TransactionType,
)

if TYPE_CHECKING:
    import uuid

    from payments.ledger.models import Transaction


logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SourceCheckout:
    """
    Result of create_source.

    Attributes:
        source: The persisted PaymentSource
        existing: True when a pending source was reused
    """

    source: PaymentSource
    existing: bool = False


# =============================================================================
# Helpers
# =============================================================================


def get_booking(booking_id: uuid.UUID | str) -> Booking:
    """
    Look up a booking.

    Raises:
        PaymentNotFoundError: If the booking doesn't exist
    """
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise PaymentNotFoundError(
            "Booking not found",
            error_code="BOOKING_NOT_FOUND",
            details={"booking_id": str(booking_id)},
        )
    return booking


def default_redirect_urls(booking_id: uuid.UUID | str) -> dict[str, str]:
    base = settings.FRONTEND_URL.rstrip("/")
    return {
        "success": f"{base}/payment/success?bookingId={booking_id}",
        "failed": f"{base}/payment/failed?bookingId={booking_id}",
    }


# =============================================================================
# Checkout Service
# =============================================================================


class CheckoutService(BaseService):
    """
    Service for creating and charging gateway sources.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def create_source(
        cls,
        amount: Decimal,
        booking_id: uuid.UUID | str,
        user_id: str,
        method: str,
        redirect_urls: dict[str, str] | None = None,
    ) -> SourceCheckout:
        """
        Create a checkout source for a booking payment.

        A pending source for the same booking and amount is returned as-is
        instead of opening a second checkout session.

        Args:
            amount: Amount in pesos
            booking_id: Booking being paid
            user_id: Paying client
            method: gcash, paymaya or maya
            redirect_urls: Optional {"success": ..., "failed": ...} overrides

        Returns:
            SourceCheckout with the source and whether it was reused

        Raises:
            PaymentValidationError: Invalid amount or method
            PaymentNotFoundError: Unknown booking
            GatewayError: Gateway rejected the request or was unreachable
        """
        amount = to_money(amount)
        source_type = normalize_source_type(method)
        if amount <= 0:
            raise PaymentValidationError(
                "Amount must be greater than zero",
                details={"amount": str(amount)},
            )
        if source_type not in PaymentMethod.gateway_methods():
            raise PaymentValidationError(
                f"Unsupported payment method: {method}",
                error_code="UNSUPPORTED_PAYMENT_METHOD",
                details={"method": method},
            )

        booking = get_booking(booking_id)

        existing = cls._pending_source(booking, amount)
        if existing is not None:
            cls.get_logger().info(
                "Reusing pending source",
                extra={"booking_id": str(booking.pk), "source_id": existing.source_id},
            )
            return SourceCheckout(source=existing, existing=True)

        urls = default_redirect_urls(booking.pk)
        urls.update({k: v for k, v in (redirect_urls or {}).items() if v})

        result = PayMongoAdapter.create_source(
            amount,
            source_type,
            success_url=urls["success"],
            failed_url=urls["failed"],
            metadata={"bookingId": str(booking.pk), "userId": user_id},
        )

        try:
            with transaction.atomic():
                source = PaymentSource.objects.create(
                    source_id=result.id,
                    booking=booking,
                    user_id=user_id,
                    amount=amount,
                    method=source_type,
                    checkout_url=result.checkout_url,
                )
        except IntegrityError:
            # Another request opened a pending source for this booking/amount first.
            existing = cls._pending_source(booking, amount)
            if existing is None:
                raise
            cls.get_logger().warning(
                "Concurrent source creation, discarding new gateway source",
                extra={
                    "booking_id": str(booking.pk),
                    "discarded_source_id": result.id,
                    "source_id": existing.source_id,
                },
            )
            return SourceCheckout(source=existing, existing=True)

        cls.get_logger().info(
            "Payment source created",
            extra={
                "booking_id": str(booking.pk),
                "source_id": source.source_id,
                "amount": str(amount),
                "method": source_type,
            },
        )
        return SourceCheckout(source=source)

    @staticmethod
    def _pending_source(booking: Booking, amount: Decimal) -> PaymentSource | None:
        return PaymentSource.objects.filter(
            booking=booking,
            amount=amount,
            status=PaymentSourceStatus.PENDING,
        ).first()

    @classmethod
    def create_charge(cls, source_id: str, amount: Decimal | None = None) -> Payment:
        """
        Charge a source and persist the resulting payment.

        A source that was already charged returns its existing payment.

        Args:
            source_id: Gateway source ID
            amount: Amount in pesos (defaults to the source amount)

        Raises:
            PaymentNotFoundError: Unknown source
            GatewayError: Source not chargeable or gateway failure
        """
        source = PaymentSource.objects.filter(source_id=source_id).first()
        if source is None:
            raise PaymentNotFoundError(
                "Payment source not found",
                error_code="SOURCE_NOT_FOUND",
                details={"source_id": source_id},
            )

        if source.payment_id:
            payment = Payment.objects.filter(payment_id=source.payment_id).first()
            if payment is not None:
                cls.get_logger().info(
                    "Source already charged",
                    extra={"source_id": source_id, "payment_id": source.payment_id},
                )
                return payment

        amount = to_money(amount) if amount is not None else source.amount
        result = PayMongoAdapter.create_payment(
            source_id,
            amount,
            description=f"Booking {source.booking_id}",
        )

        with transaction.atomic():
            source = PaymentSource.objects.select_for_update().get(pk=source.pk)
            payment, _ = Payment.objects.get_or_create(
                payment_id=result.id,
                defaults={
                    "source": source,
                    "amount": result.amount or amount,
                    "status": result.status,
                },
            )
            source.payment_id = result.id
            source.set_meta("payment_status", result.status, save=False)
            source.save(update_fields=["payment_id", "metadata", "updated_at"])

        cls.get_logger().info(
            "Source charged",
            extra={
                "source_id": source_id,
                "payment_id": result.id,
                "status": result.status,
                "amount": str(payment.amount),
            },
        )
        return payment

    @classmethod
    def retrieve_source(cls, source_id: str) -> SourceResult:
        """Fetch a source's live state from the gateway."""
        return PayMongoAdapter.retrieve_source(source_id)

    @classmethod
    def latest_source(cls, booking_id: uuid.UUID | str) -> PaymentSource:
        """
        The most recent source for a booking.

        Raises:
            PaymentNotFoundError: The booking has no payment records
        """
        source = (
            PaymentSource.objects.filter(booking_id=booking_id)
            .order_by("-created_at")
            .first()
        )
        if source is None:
            raise PaymentNotFoundError(
                "No payment found for this booking",
                details={"booking_id": str(booking_id)},
            )
        return source

    @classmethod
    def record_cash_payment(
        cls,
        booking_id: uuid.UUID | str,
        amount: Decimal,
        user_id: str = "",
    ) -> Transaction:
        """
        Record a cash payment collected by the provider.

        The booking's status is left alone; it is marked paid and its
        settlement is written and credited like any gateway payment.

        Raises:
            PaymentValidationError: Non-positive amount
            PaymentNotFoundError: Unknown booking
            ConflictError: Booking already settled
        """
        amount = to_money(amount)
        if amount <= 0:
            raise PaymentValidationError(
                "Amount must be greater than zero",
                details={"amount": str(amount)},
            )

        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
            if booking is None:
                raise PaymentNotFoundError(
                    "Booking not found",
                    error_code="BOOKING_NOT_FOUND",
                    details={"booking_id": str(booking_id)},
                )

            split = LedgerAccountant.settle(booking, amount)
            txn = LedgerAccountant.record_settlement(
                booking,
                TransactionType.PAYMENT,
                split,
                status=TransactionStatus.COMPLETED,
                payment_method=PaymentMethod.CASH,
                metadata={"recorded_by": user_id} if user_id else None,
            )
            if txn is None:
                raise ConflictError(
                    "Booking already has a settled payment",
                    error_code="ALREADY_SETTLED",
                    details={"booking_id": str(booking.pk)},
                )

            booking.mark_paid_in_cash(amount)
            booking.save()
            LedgerAccountant.apply_credit(booking.provider_id, split.provider_share)

            dispatch.notify(
                booking.provider_id,
                "Cash payment recorded",
                f"Cash payment of PHP {amount} recorded",
                type="cash_payment",
                booking_id=str(booking.pk),
                amount=str(amount),
            )

        cls.get_logger().info(
            "Cash payment recorded",
            extra={
                "booking_id": str(booking.pk),
                "amount": str(amount),
                "provider_share": str(split.provider_share),
                "platform_commission": str(split.platform_commission),
            },
        )
        return txn
