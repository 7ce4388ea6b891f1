"""
Reconciliation service for missed gateway webhooks.

When a source.chargeable webhook never arrives, the client app can ask the
backend to check the booking's latest source directly with the gateway.
Reconciliation replays the exact settlement the webhook path would have
applied, so running it after the webhook did arrive changes nothing.

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService.reconcile_booking(booking_id)
    # result.status in {"completed", "pending", "failed"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.services import BaseService

from payments.adapters import PayMongoAdapter
from payments.models import Booking, PaymentSource
from payments.services.checkout_service import CheckoutService
from payments.services.settlement_service import SettlementService
from payments.state_machines import PaymentSourceStatus

if TYPE_CHECKING:
    import uuid


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

GATEWAY_CHARGEABLE = "chargeable"
GATEWAY_PAID = "paid"
GATEWAY_DEAD_STATES = ("expired", "cancelled", "failed")


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class ReconcileResult:
    """
    Outcome of a reconcile call.

    Attributes:
        status: completed, pending or failed
        message: Human-readable summary
        booking_status: Booking status after reconciliation
    """

    status: str
    message: str
    booking_status: str


# =============================================================================
# Reconciliation Service
# =============================================================================


class ReconciliationService(BaseService):
    """
    Heals bookings whose payment webhook was missed.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def reconcile_booking(cls, booking_id: uuid.UUID | str) -> ReconcileResult:
        """
        Verify the booking's latest source with the gateway and settle it.

        Raises:
            PaymentNotFoundError: The booking has no payment records
            InvalidStateTransitionError: Booking is terminal and unsettled
            GatewayError: Gateway lookup or charge failed
        """
        source = CheckoutService.latest_source(booking_id)
        log_extra = {"booking_id": str(booking_id), "source_id": source.source_id}

        if source.status == PaymentSourceStatus.PAID:
            outcome = SettlementService.settle_source(source)
            cls.get_logger().info(
                "Reconcile found paid source",
                extra={**log_extra, "reapplied": not outcome.skipped},
            )
            return ReconcileResult(
                status="completed",
                message="Payment already processed",
                booking_status=outcome.booking.status,
            )

        if source.status == PaymentSourceStatus.FAILED:
            return cls._result(source, "failed", "Payment failed or expired")

        gateway_source = PayMongoAdapter.retrieve_source(source.source_id)
        log_extra["gateway_status"] = gateway_source.status

        if gateway_source.status == GATEWAY_CHARGEABLE:
            payment = CheckoutService.create_charge(source.source_id)
            outcome = SettlementService.settle_source(source, payment_id=payment.payment_id)
            cls.get_logger().info("Reconcile charged and settled source", extra=log_extra)
            return ReconcileResult(
                status="completed",
                message="Payment processed successfully",
                booking_status=outcome.booking.status,
            )

        if gateway_source.status == GATEWAY_PAID:
            outcome = SettlementService.settle_source(source)
            cls.get_logger().info("Reconcile settled paid source", extra=log_extra)
            return ReconcileResult(
                status="completed",
                message="Payment processed successfully",
                booking_status=outcome.booking.status,
            )

        if gateway_source.status in GATEWAY_DEAD_STATES:
            with transaction.atomic():
                locked = PaymentSource.objects.select_for_update().get(pk=source.pk)
                try:
                    locked.mark_failed(f"Source {gateway_source.status}")
                    locked.save()
                except TransitionNotAllowed:
                    logger.info(
                        "Source already closed, leaving status as-is",
                        extra={**log_extra, "source_status": locked.status},
                    )
            cls.get_logger().info("Reconcile marked source failed", extra=log_extra)
            return cls._result(source, "failed", f"Payment {gateway_source.status}")

        cls.get_logger().info("Reconcile found source still pending", extra=log_extra)
        return cls._result(source, "pending", "Payment not yet completed")

    @staticmethod
    def _result(source: PaymentSource, status: str, message: str) -> ReconcileResult:
        booking_status = (
            Booking.objects.filter(pk=source.booking_id)
            .values_list("status", flat=True)
            .first()
        )
        return ReconcileResult(status=status, message=message, booking_status=booking_status or "")
