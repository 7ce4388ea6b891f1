"""
Escrow service for releasing held booking payments.

Escrowed funds are captured from the client when a pay-first or escrow
booking is paid, but the provider is only credited once the client
confirms the job is done.

Usage:
    from payments.services import EscrowService

    release = EscrowService.release(booking_id, client_id="client-1")
    release.amount_released  # provider share credited
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

from core.exceptions import ConflictError
from core.services import BaseService

from payments import dispatch
from payments.exceptions import (
    EscrowReleaseDenied,
    InvalidStateTransitionError,
    PaymentNotFoundError,
)
from payments.ledger.services import LedgerAccountant, held_escrow_entry
from payments.models import Booking
from payments.state_machines import BookingStatus, TransactionStatus

if TYPE_CHECKING:
    import uuid


logger = logging.getLogger(__name__)


# Points awarded to each side of a completed job
PROVIDER_COMPLETION_POINTS = 100
CLIENT_COMPLETION_POINTS = 50


@dataclass
class EscrowRelease:
    booking: Booking
    amount_released: Decimal


class EscrowService(BaseService):
    """
    Service for escrow release.

    Release preconditions:
        - booking.payment_status == held
        - booking.status == pending_completion
        - the releasing actor is the booking's client
    """

    @classmethod
    def release(cls, booking_id: uuid.UUID | str, client_id: str) -> EscrowRelease:
        """
        Release a booking's escrow to its provider.

        Effects (one transaction):
            booking -> completed, payment_status=released
            held escrow_payment transaction -> completed
            provider credited with the entry's provider_share

        Raises:
            PaymentNotFoundError: Unknown booking
            EscrowReleaseDenied: Actor is not the booking's client
            ConflictError: Escrow not held or booking not awaiting completion
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
            if booking is None:
                raise PaymentNotFoundError(
                    "Booking not found",
                    error_code="BOOKING_NOT_FOUND",
                    details={"booking_id": str(booking_id)},
                )

            if booking.client_id != client_id:
                raise EscrowReleaseDenied(
                    "Only the booking's client can release escrow",
                    details={"booking_id": str(booking.pk)},
                )

            if not booking.is_escrow_held:
                raise ConflictError(
                    "No escrow payment is held for this booking",
                    error_code="ESCROW_NOT_HELD",
                    details={
                        "booking_id": str(booking.pk),
                        "payment_status": booking.payment_status,
                    },
                )

            if booking.status != BookingStatus.PENDING_COMPLETION:
                raise InvalidStateTransitionError(
                    f"Cannot release escrow for booking in '{booking.status}' state",
                    details={
                        "booking_id": str(booking.pk),
                        "current_state": booking.status,
                        "transition": "release_escrow",
                    },
                )

            booking.release_escrow()
            booking.save()

            entry = held_escrow_entry(booking)
            if entry is not None:
                entry.status = TransactionStatus.COMPLETED
                entry.released_at = timezone.now()
                entry.save(update_fields=["status", "released_at", "updated_at"])
                amount = entry.provider_share
            else:
                logger.warning(
                    "Held escrow entry missing, crediting from booking price",
                    extra={"booking_id": str(booking.pk)},
                )
                amount = LedgerAccountant.settle(
                    booking, booking.upfront_paid_amount or booking.total_amount or 0
                ).provider_share

            LedgerAccountant.apply_credit(booking.provider_id, amount)

            dispatch.award_points(
                booking.provider_id,
                PROVIDER_COMPLETION_POINTS,
                "job_completed",
                booking_id=str(booking.pk),
            )
            dispatch.award_points(
                booking.client_id,
                CLIENT_COMPLETION_POINTS,
                "booking_completed",
                booking_id=str(booking.pk),
            )
            dispatch.notify(
                booking.provider_id,
                "Payment released",
                f"PHP {amount} has been added to your balance",
                type="escrow_released",
                booking_id=str(booking.pk),
                amount=str(amount),
            )

        cls.get_logger().info(
            "Escrow released",
            extra={
                "booking_id": str(booking.pk),
                "provider_id": booking.provider_id,
                "amount_released": str(amount),
            },
        )
        return EscrowRelease(booking=booking, amount_released=amount)
