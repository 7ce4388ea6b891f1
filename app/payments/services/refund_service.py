"""
Refund service for returning client payments.

This module provides the RefundService class which handles:
- Automatic refunds when a paid booking is cancelled
- Manual refunds of a known gateway payment

The gateway refund is requested outside any database transaction. When it
fails the booking is flagged refund_pending for manual follow-up; the
system never retries on its own.

Provider balances on refund:
    escrow still held  -> provider was never credited, nothing is debited;
                          the held escrow entry becomes refunded
    otherwise          -> the settlement's provider_share is debited,
                          clamped at zero

Usage:
    from payments.services import RefundService

    outcome = RefundService.auto_refund(booking.id, reason="Schedule conflict",
                                        cancelled_by="client")
    if not outcome.refunded:
        ...  # nothing was paid through the gateway
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction

from core.services import BaseService

from payments import dispatch
from payments.adapters import PayMongoAdapter
from payments.exceptions import GatewayError, PaymentNotFoundError, PaymentValidationError
from payments.ledger.services import LedgerAccountant, held_escrow_entry
from payments.ledger.types import to_money
from payments.models import Booking, Payment, PaymentSource
from payments.state_machines import (
    PaymentSourceStatus,
    RefundReason,
    TransactionStatus,
    TransactionType,
)

if TYPE_CHECKING:
    import uuid


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class RefundOutcome:
    """
    Result of a refund attempt.

    Attributes:
        refunded: Whether money was returned through the gateway
        amount: Amount refunded
        refund_id: Gateway refund ID
        status: Gateway refund status
        provider_debited: Amount taken back from the provider's balance
    """

    refunded: bool
    amount: Decimal = ZERO
    refund_id: str = ""
    status: str = ""
    provider_debited: Decimal = ZERO


# =============================================================================
# Helpers
# =============================================================================


def map_refund_reason(reason: str | None, cancelled_by: str | None = None) -> str:
    """
    Map a free-text cancellation reason onto the gateway's refund reasons.

    The original text is kept separately as the refund note.
    """
    text = (reason or "").lower()
    if text in RefundReason.values:
        return text
    if "duplicate" in text:
        return RefundReason.DUPLICATE
    if "fraud" in text:
        return RefundReason.FRAUDULENT
    if (cancelled_by or "").lower() == "client":
        return RefundReason.REQUESTED_BY_CUSTOMER
    return RefundReason.OTHERS


# =============================================================================
# Refund Service
# =============================================================================


class RefundService(BaseService):
    """
    Service for refunding booking payments.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def auto_refund(
        cls,
        booking_id: uuid.UUID | str,
        reason: str = "",
        cancelled_by: str = "",
    ) -> RefundOutcome:
        """
        Refund a cancelled booking's gateway payment.

        No-op (refunded=False) when the booking was never paid, was already
        refunded, is being refunded by another request, or was not paid
        through the gateway.

        The booking is claimed (refund_in_progress) under its row lock
        before the gateway is called, so only one request per booking ever
        reaches the gateway. The claim is released by the ledger step or by
        a gateway failure.

        Args:
            booking_id: Booking to refund
            reason: Free-text cancellation reason
            cancelled_by: Who cancelled (client, provider, admin)

        Returns:
            RefundOutcome

        Raises:
            PaymentNotFoundError: Unknown booking
            GatewayError: Gateway refused the refund (booking flagged refund_pending)
        """
        log_extra = {"booking_id": str(booking_id), "cancelled_by": cancelled_by}

        claim = cls._claim_refund(booking_id, log_extra)
        if claim is None:
            return RefundOutcome(refunded=False)
        booking, source, payment, amount = claim

        gateway_reason = map_refund_reason(reason, cancelled_by)

        try:
            result = PayMongoAdapter.create_refund(
                source.payment_id,
                amount,
                gateway_reason,
                notes=reason,
            )
        except GatewayError as exc:
            cls._flag_refund_pending(booking, exc.message)
            cls.get_logger().error(
                "Automatic refund failed, flagged for manual handling",
                extra={**log_extra, "payment_id": source.payment_id, "error": exc.message},
            )
            raise

        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking.pk)
            source = PaymentSource.objects.select_for_update().get(pk=source.pk)
            if booking.refunded or source.refunded:
                cls.get_logger().error(
                    "Refund already recorded, ledger left untouched",
                    extra={**log_extra, "refund_id": result.id},
                )
                return RefundOutcome(refunded=False, refund_id=result.id, status=result.status)

            escrow_held = booking.is_escrow_held

            booking.mark_refunded(amount, result.id)
            if cancelled_by and not booking.cancelled_by:
                booking.cancelled_by = cancelled_by
            if reason and not booking.cancellation_reason:
                booking.cancellation_reason = reason
            booking.save()

            source.refunded = True
            source.save(update_fields=["refunded", "updated_at"])
            if payment is not None:
                payment.refunded = True
                payment.save(update_fields=["refunded", "updated_at"])

            split = LedgerAccountant.settle(booking, amount)
            LedgerAccountant.record_transaction(
                booking,
                TransactionType.REFUND,
                split,
                status=TransactionStatus.COMPLETED,
                payment_method=source.method,
                reference=result.id,
                metadata={
                    "reason": reason,
                    "gateway_reason": gateway_reason,
                    "cancelled_by": cancelled_by,
                    "payment_id": source.payment_id,
                },
            )

            if escrow_held:
                entry = held_escrow_entry(booking)
                if entry is not None:
                    entry.status = TransactionStatus.REFUNDED
                    entry.save(update_fields=["status", "updated_at"])
                debited = ZERO
            else:
                settlement = LedgerAccountant.get_settlement(booking)
                share = settlement.provider_share if settlement is not None else split.provider_share
                debited = LedgerAccountant.apply_debit(booking.provider_id, share)

            dispatch.notify(
                booking.client_id,
                "Refund processed",
                f"PHP {amount} is being refunded to your account",
                type="refund_processed",
                booking_id=str(booking.pk),
                amount=str(amount),
            )
            dispatch.notify(
                booking.provider_id,
                "Booking refunded",
                "A cancelled booking was refunded to the client",
                type="booking_refunded",
                booking_id=str(booking.pk),
                amount=str(amount),
            )

        cls.get_logger().info(
            "Automatic refund processed",
            extra={
                **log_extra,
                "refund_id": result.id,
                "amount": str(amount),
                "escrow_held": escrow_held,
                "provider_debited": str(debited),
            },
        )
        return RefundOutcome(
            refunded=True,
            amount=amount,
            refund_id=result.id,
            status=result.status,
            provider_debited=debited,
        )

    @classmethod
    def refund_payment(
        cls,
        payment_id: str,
        amount: Decimal | None = None,
        reason: str = "",
    ) -> RefundOutcome:
        """
        Refund a known gateway payment directly.

        Used by support staff; booking and ledger adjustments are left to
        whoever issues the refund.

        Raises:
            PaymentNotFoundError: Unknown payment
            PaymentValidationError: Amount exceeds the payment
            GatewayError: Gateway refused the refund
        """
        payment = Payment.objects.filter(payment_id=payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(
                "Payment not found",
                details={"payment_id": payment_id},
            )

        amount = to_money(amount) if amount is not None else payment.amount
        if amount <= 0 or amount > payment.amount:
            raise PaymentValidationError(
                "Refund amount must be positive and no more than the payment amount",
                details={"amount": str(amount), "payment_amount": str(payment.amount)},
            )

        result = PayMongoAdapter.create_refund(
            payment_id,
            amount,
            map_refund_reason(reason or RefundReason.REQUESTED_BY_CUSTOMER),
            notes=reason,
        )

        if amount == payment.amount:
            payment.refunded = True
            payment.save(update_fields=["refunded", "updated_at"])

        cls.get_logger().info(
            "Manual refund processed",
            extra={"payment_id": payment_id, "refund_id": result.id, "amount": str(amount)},
        )
        return RefundOutcome(
            refunded=True,
            amount=result.amount or amount,
            refund_id=result.id,
            status=result.status,
        )

    @classmethod
    def _claim_refund(
        cls,
        booking_id: uuid.UUID | str,
        log_extra: dict,
    ) -> tuple[Booking, PaymentSource, Payment | None, Decimal] | None:
        """
        Lock the booking, decide what to refund and mark it refund_in_progress.

        Returns None when there is nothing to refund.
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
            if booking is None:
                raise PaymentNotFoundError(
                    "Booking not found",
                    error_code="BOOKING_NOT_FOUND",
                    details={"booking_id": str(booking_id)},
                )

            if booking.refunded or booking.refund_in_progress or not booking.was_paid:
                cls.get_logger().info(
                    "Nothing to refund",
                    extra={
                        **log_extra,
                        "refunded": booking.refunded,
                        "in_progress": booking.refund_in_progress,
                        "paid": booking.was_paid,
                    },
                )
                return None

            source = (
                PaymentSource.objects.select_for_update()
                .filter(
                    booking=booking,
                    status=PaymentSourceStatus.PAID,
                    refunded=False,
                )
                .exclude(payment_id="")
                .order_by("-paid_at", "-created_at")
                .first()
            )
            if source is None:
                cls.get_logger().info("No gateway payment to refund", extra=log_extra)
                return None

            payment = Payment.objects.filter(payment_id=source.payment_id).first()
            paid_amount = payment.amount if payment is not None else source.amount

            amount = booking.upfront_paid_amount
            if amount is None:
                amount = booking.total_amount
            if amount is None:
                amount = paid_amount
            amount = min(to_money(amount), paid_amount)
            if amount <= 0:
                cls.get_logger().info(
                    "Booking amount is zero, nothing to refund",
                    extra={**log_extra, "payment_id": source.payment_id},
                )
                return None

            booking.refund_in_progress = True
            booking.save(update_fields=["refund_in_progress", "updated_at"])

        return booking, source, payment, amount

    @staticmethod
    def _flag_refund_pending(booking: Booking, message: str) -> None:
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            locked.mark_refund_pending(message)
            locked.save(
                update_fields=["refund_pending", "refund_in_progress", "refund_error", "updated_at"]
            )
