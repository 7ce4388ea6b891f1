"""
Settlement service: applies a paid source to its booking and the ledger.

This is the single place where a gateway payment turns into booking state
and provider balance changes. The webhook handlers and the manual
reconcile endpoint both call SettlementService.settle_source, so a missed
webhook recovered by reconcile produces exactly the same effects.

Settlement table (evaluated under the booking row lock):

    awaiting_payment                       -> pending, escrow held, no credit
    pay_first, not yet paid upfront        -> status unchanged, escrow held, no credit
    pay_first, paid upfront, status in
      {pending_payment, pending_completion} -> payment_received, additional
                                              charge credited at gross / 1.05
    otherwise                              -> payment_received, payment credited

Usage:
    from payments.services import SettlementService

    outcome = SettlementService.settle_source(source)
    if outcome.skipped:
        ...  # booking was already settled
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.services import BaseService

from payments import dispatch
from payments.exceptions import InvalidStateTransitionError
from payments.ledger.models import Transaction
from payments.ledger.services import LedgerAccountant
from payments.models import Booking, PaymentSource
from payments.state_machines import (
    BookingStatus,
    PaymentPreference,
    PaymentSourceStatus,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ESCROW_HOLD = "escrow_hold"
UPFRONT_HOLD = "upfront_hold"
ADDITIONAL_CHARGE = "additional_charge"
PAYMENT = "payment"

ADDITIONAL_CHARGE_STATES = (
    BookingStatus.PENDING_PAYMENT,
    BookingStatus.PENDING_COMPLETION,
)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SettlementOutcome:
    """
    Result of settling a source.

    Attributes:
        booking: The booking after settlement
        branch: Which row of the settlement table applied
        transaction: Journal entry written (None when already settled)
        credited: Amount credited to the provider's available balance
    """

    booking: Booking
    branch: str
    transaction: Transaction | None = None
    credited: Decimal = Decimal("0.00")

    @property
    def skipped(self) -> bool:
        return self.transaction is None


# =============================================================================
# Settlement Service
# =============================================================================


class SettlementService(BaseService):
    """
    Drives the booking state machine for a paid source.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def select_branch(cls, booking: Booking) -> str:
        """Pick the settlement table row for the booking's current state."""
        if booking.status == BookingStatus.AWAITING_PAYMENT:
            return ESCROW_HOLD
        if booking.payment_preference == PaymentPreference.PAY_FIRST:
            if not booking.is_paid_upfront:
                return UPFRONT_HOLD
            if booking.status in ADDITIONAL_CHARGE_STATES:
                return ADDITIONAL_CHARGE
        return PAYMENT

    @classmethod
    def settle_source(cls, source: PaymentSource, payment_id: str = "") -> SettlementOutcome:
        """
        Mark a source paid and apply its settlement to the booking.

        Safe to call repeatedly for the same source: the booking's existing
        settlement (or, for additional charges, the gateway reference) turns
        repeats into no-ops.

        Args:
            source: The source that was charged
            payment_id: Gateway payment ID, if the caller just charged it

        Returns:
            SettlementOutcome describing what was applied

        Raises:
            InvalidStateTransitionError: Booking is in a terminal state. The
                source is still recorded as paid so it can be refunded.
        """
        rejected_status = None

        with transaction.atomic():
            source = PaymentSource.objects.select_for_update().get(pk=source.pk)
            booking = Booking.objects.select_for_update().get(pk=source.booking_id)

            was_paid = source.status == PaymentSourceStatus.PAID
            if not was_paid:
                source.mark_paid(payment_id or source.payment_id)
                source.save()
            elif payment_id and not source.payment_id:
                source.payment_id = payment_id
                source.save(update_fields=["payment_id", "updated_at"])

            if booking.is_terminal:
                if was_paid and LedgerAccountant.has_settlement(booking):
                    return SettlementOutcome(booking=booking, branch=PAYMENT)
                rejected_status = booking.status
            else:
                outcome = cls._apply(booking, source)

        if rejected_status is not None:
            logger.warning(
                "Payment received for booking in terminal state",
                extra={
                    "booking_id": str(source.booking_id),
                    "source_id": source.source_id,
                    "booking_status": rejected_status,
                },
            )
            raise InvalidStateTransitionError(
                f"Booking is already {rejected_status}",
                details={
                    "booking_id": str(source.booking_id),
                    "current_state": rejected_status,
                    "source_id": source.source_id,
                },
            )

        return outcome

    @classmethod
    def _apply(cls, booking: Booking, source: PaymentSource) -> SettlementOutcome:
        """Apply one settlement table row. Caller holds the booking lock."""
        branch = cls.select_branch(booking)
        amount = source.amount
        method = source.method
        reference = source.payment_id or source.source_id
        log_extra = {
            "booking_id": str(booking.pk),
            "source_id": source.source_id,
            "branch": branch,
            "amount": str(amount),
        }

        if branch == ADDITIONAL_CHARGE:
            split = LedgerAccountant.settle(None, amount)
            txn = LedgerAccountant.record_additional_charge(
                booking,
                split,
                reference=reference,
                payment_method=method,
            )
        else:
            if LedgerAccountant.has_settlement(booking):
                logger.info("Booking already settled, skipping", extra=log_extra)
                return SettlementOutcome(booking=booking, branch=branch)
            split = LedgerAccountant.settle(booking, amount)
            txn = None

        if branch == ADDITIONAL_CHARGE and txn is None:
            return SettlementOutcome(booking=booking, branch=branch)

        cls._transition(booking, branch, amount, method)
        booking.save()

        if branch in (ESCROW_HOLD, UPFRONT_HOLD):
            txn = LedgerAccountant.record_settlement(
                booking,
                TransactionType.ESCROW_PAYMENT,
                split,
                status=TransactionStatus.HELD,
                payment_method=method,
                reference=reference,
            )
            credited = Decimal("0.00")
        else:
            if branch == PAYMENT:
                txn = LedgerAccountant.record_settlement(
                    booking,
                    TransactionType.PAYMENT,
                    split,
                    status=TransactionStatus.COMPLETED,
                    payment_method=method,
                    reference=reference,
                )
            credited = Decimal("0.00")
            if txn is not None:
                LedgerAccountant.apply_credit(booking.provider_id, split.provider_share)
                credited = split.provider_share

        logger.info(
            "Source settled",
            extra={**log_extra, "credited": str(credited), "booking_status": booking.status},
        )

        dispatch.notify(
            booking.provider_id,
            "Payment received",
            f"Payment of PHP {amount} received for {booking.service_name or 'your booking'}",
            type="payment_received",
            booking_id=str(booking.pk),
            amount=str(amount),
            escrow=branch in (ESCROW_HOLD, UPFRONT_HOLD),
        )

        return SettlementOutcome(booking=booking, branch=branch, transaction=txn, credited=credited)

    @staticmethod
    def _transition(booking: Booking, branch: str, amount: Decimal, method: str) -> None:
        transitions = {
            ESCROW_HOLD: booking.hold_escrow_payment,
            UPFRONT_HOLD: booking.hold_upfront_payment,
            ADDITIONAL_CHARGE: booking.receive_payment,
            PAYMENT: booking.receive_payment,
        }
        try:
            transitions[branch](amount, method)
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot apply {branch.replace('_', ' ')} to booking in '{booking.status}' state",
                details={
                    "booking_id": str(booking.pk),
                    "current_state": booking.status,
                    "transition": branch,
                },
            )
