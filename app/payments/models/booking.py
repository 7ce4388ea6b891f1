"""
Booking model: the payment-relevant view of a marketplace booking.

Bookings are created and moved through their service flow (accepting,
travelling, starting work) by the marketplace. The payments app owns the
payment fields below and the transitions triggered by money movement:

    AWAITING_PAYMENT -> PENDING              (escrow payment held)
    open states      -> PAYMENT_RECEIVED     (final payment settled)
    PENDING_COMPLETION -> COMPLETED          (escrow released)

Terminal states (completed, cancelled, declined, rejected) accept no
payment transitions; only refunds apply to them.

Usage:
    from payments.models import Booking

    booking = Booking.objects.select_for_update().get(pk=booking_id)
    booking.receive_payment(amount=Decimal("525.00"), method="gcash")
    booking.save()
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import (
    BookingStatus,
    EscrowStatus,
    PaymentMethod,
    PaymentPreference,
)


def _escrow_is_held(instance: Booking) -> bool:
    return instance.payment_status == EscrowStatus.HELD


def _not_paid_upfront(instance: Booking) -> bool:
    return not instance.is_paid_upfront


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A client's booking of a provider's service.

    Fields:
        client_id: Client user ID (owned by the accounts service)
        provider_id: Provider user ID
        status: Booking lifecycle state
        payment_preference: pay_first or pay_later
        is_paid_upfront: Whether the upfront/escrow payment was received
        upfront_paid_amount: Amount paid upfront
        payment_status: Escrow state (held/released/refunded) if escrowed
        provider_price / provider_fixed_price / offered_price: Quoted
            prices, in order of precedence, used for the provider share
        total_amount: Total amount the client is charged
        paid / paid_at / payment_method: Settlement information
        refunded / refund_*: Refund bookkeeping
        refund_pending / refund_error: Manual remediation flag after a
            failed automatic refund
    """

    # ==========================================================================
    # Parties
    # ==========================================================================

    client_id = models.CharField(
        max_length=128,
        db_index=True,
        help_text="Client user ID",
    )

    provider_id = models.CharField(
        max_length=128,
        db_index=True,
        help_text="Provider user ID",
    )

    service_name = models.CharField(
        max_length=200,
        blank=True,
        default="",
        help_text="Service title used in payment descriptions",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=BookingStatus.PENDING,
        choices=BookingStatus.choices,
        db_index=True,
        help_text="Current booking state",
    )

    payment_preference = models.CharField(
        max_length=20,
        choices=PaymentPreference.choices,
        default=PaymentPreference.PAY_LATER,
        help_text="Whether the client pays before or after the work",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=EscrowStatus.choices,
        null=True,
        blank=True,
        db_index=True,
        help_text="Escrow state of the upfront payment",
    )

    is_paid_upfront = models.BooleanField(default=False)

    upfront_paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )

    # ==========================================================================
    # Pricing
    # ==========================================================================

    provider_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    provider_fixed_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    offered_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    # ==========================================================================
    # Settlement
    # ==========================================================================

    paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, blank=True, default="")

    client_confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Cancellation & Refund
    # ==========================================================================

    cancelled_by = models.CharField(max_length=20, blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")

    refunded = models.BooleanField(default=False)
    refund_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    refund_id = models.CharField(max_length=64, blank=True, default="")
    refunded_at = models.DateTimeField(null=True, blank=True)
    refund_pending = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Automatic refund failed; needs manual follow-up",
    )
    refund_error = models.TextField(blank=True, default="")
    refund_in_progress = models.BooleanField(
        default=False,
        help_text="An automatic refund holds this booking while the gateway is called",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["provider_id", "status"]),
            models.Index(fields=["client_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, {self.status})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def quoted_provider_price(self) -> Decimal | None:
        """The provider's quoted price, by precedence, if any was set."""
        for price in (self.provider_price, self.provider_fixed_price, self.offered_price):
            if price is not None:
                return price
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status in BookingStatus.terminal()

    @property
    def is_escrow_held(self) -> bool:
        return self.payment_status == EscrowStatus.HELD

    @property
    def was_paid(self) -> bool:
        return self.paid or self.is_paid_upfront

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    def _record_upfront(self, amount: Decimal, method: str) -> None:
        now = timezone.now()
        self.is_paid_upfront = True
        self.upfront_paid_amount = amount
        self.payment_status = EscrowStatus.HELD
        self.paid = True
        self.paid_at = now
        self.payment_method = method

    @transition(
        field=status,
        source=BookingStatus.AWAITING_PAYMENT,
        target=BookingStatus.PENDING,
    )
    def hold_escrow_payment(self, amount: Decimal, method: str = "") -> None:
        """
        Hold the client's escrow payment; the booking awaits approval.

        Transition: AWAITING_PAYMENT -> PENDING
        """
        self._record_upfront(amount, method)

    @transition(
        field=status,
        source=BookingStatus.open_for_payment(),
        target=None,
        conditions=[_not_paid_upfront],
    )
    def hold_upfront_payment(self, amount: Decimal, method: str = "") -> None:
        """
        Hold a pay-first booking's upfront payment without changing status.

        The booking stays where it is until an administrator approves it.
        """
        self._record_upfront(amount, method)

    @transition(
        field=status,
        source=BookingStatus.open_for_payment(),
        target=BookingStatus.PAYMENT_RECEIVED,
    )
    def receive_payment(self, amount: Decimal, method: str = "") -> None:
        """
        Record a settled payment for the booking.

        Transition: any open state -> PAYMENT_RECEIVED
        """
        self.paid = True
        self.paid_at = timezone.now()
        self.payment_method = method
        if self.total_amount is None:
            self.total_amount = amount

    @transition(
        field=status,
        source=BookingStatus.PENDING_COMPLETION,
        target=BookingStatus.COMPLETED,
        conditions=[_escrow_is_held],
    )
    def release_escrow(self) -> None:
        """
        Release escrowed funds after the client confirms completion.

        Transition: PENDING_COMPLETION -> COMPLETED
        """
        now = timezone.now()
        self.payment_status = EscrowStatus.RELEASED
        self.client_confirmed_at = now
        self.completed_at = now

    # ==========================================================================
    # Refund Bookkeeping
    # ==========================================================================

    def mark_paid_in_cash(self, amount: Decimal) -> None:
        """
        Record a cash payment without moving the booking's status.

        Note: Does not save - caller must save after calling.
        """
        self.paid = True
        self.paid_at = timezone.now()
        self.payment_method = PaymentMethod.CASH
        if self.total_amount is None:
            self.total_amount = amount

    def mark_refunded(self, amount: Decimal, refund_id: str) -> None:
        """
        Record a successful refund.

        Note: Does not save - caller must save after calling.
        """
        self.refunded = True
        self.refund_amount = amount
        self.refund_id = refund_id
        self.refunded_at = timezone.now()
        self.refund_pending = False
        self.refund_error = ""
        self.refund_in_progress = False
        if self.payment_status is not None:
            self.payment_status = EscrowStatus.REFUNDED

    def mark_refund_pending(self, error_message: str) -> None:
        """
        Flag the booking for manual refund handling.

        Note: Does not save - caller must save after calling.
        """
        self.refund_pending = True
        self.refund_error = error_message
        self.refund_in_progress = False
