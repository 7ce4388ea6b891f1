"""
Tests for payment models and their state transitions.

Tests cover:
- Booking payment transitions and their guards
- PaymentSource lifecycle and the one-pending-source constraint
- PayoutRequest transitions and protected status
- WebhookEvent helpers
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError
from django_fsm import TransitionNotAllowed

from payments.models import PayoutRequest, WebhookEvent
from payments.state_machines import (
    BookingStatus,
    EscrowStatus,
    PaymentMethod,
    PaymentSourceStatus,
    PayoutState,
    WebhookEventStatus,
)
from payments.tests.factories import (
    BookingFactory,
    EscrowBookingFactory,
    PaymentSourceFactory,
    PayoutRequestFactory,
    WebhookEventFactory,
)


# =============================================================================
# Booking
# =============================================================================


@pytest.mark.django_db
class TestBookingTransitions:
    """Tests for Booking payment transitions."""

    def test_hold_escrow_payment(self):
        """AWAITING_PAYMENT -> PENDING with the escrow held."""
        booking = EscrowBookingFactory()

        booking.hold_escrow_payment(Decimal("525.00"), PaymentMethod.GCASH)

        assert booking.status == BookingStatus.PENDING
        assert booking.is_paid_upfront is True
        assert booking.upfront_paid_amount == Decimal("525.00")
        assert booking.payment_status == EscrowStatus.HELD
        assert booking.paid is True
        assert booking.paid_at is not None

    def test_hold_escrow_payment_requires_awaiting_payment(self):
        booking = BookingFactory(status=BookingStatus.ACCEPTED)

        with pytest.raises(TransitionNotAllowed):
            booking.hold_escrow_payment(Decimal("525.00"))

    def test_hold_upfront_payment_keeps_status(self):
        booking = BookingFactory(status=BookingStatus.ACCEPTED)

        booking.hold_upfront_payment(Decimal("525.00"), PaymentMethod.PAYMAYA)

        assert booking.status == BookingStatus.ACCEPTED
        assert booking.is_escrow_held is True
        assert booking.payment_method == PaymentMethod.PAYMAYA

    def test_hold_upfront_payment_only_once(self):
        booking = BookingFactory(status=BookingStatus.ACCEPTED, is_paid_upfront=True)

        with pytest.raises(TransitionNotAllowed):
            booking.hold_upfront_payment(Decimal("525.00"))

    @pytest.mark.parametrize("status", BookingStatus.open_for_payment())
    def test_receive_payment_from_open_states(self, status):
        booking = BookingFactory(status=status)

        booking.receive_payment(Decimal("500.00"), PaymentMethod.GCASH)

        assert booking.status == BookingStatus.PAYMENT_RECEIVED
        assert booking.paid is True

    @pytest.mark.parametrize("status", BookingStatus.terminal())
    def test_receive_payment_rejected_in_terminal_states(self, status):
        booking = BookingFactory(status=status)

        with pytest.raises(TransitionNotAllowed):
            booking.receive_payment(Decimal("500.00"))

    def test_receive_payment_fills_missing_total(self):
        booking = BookingFactory(total_amount=None)

        booking.receive_payment(Decimal("300.00"))

        assert booking.total_amount == Decimal("300.00")

    def test_release_escrow(self, escrow_held_booking):
        escrow_held_booking.release_escrow()

        assert escrow_held_booking.status == BookingStatus.COMPLETED
        assert escrow_held_booking.payment_status == EscrowStatus.RELEASED
        assert escrow_held_booking.completed_at is not None

    def test_release_escrow_requires_held_escrow(self):
        booking = BookingFactory(status=BookingStatus.PENDING_COMPLETION)

        with pytest.raises(TransitionNotAllowed):
            booking.release_escrow()


@pytest.mark.django_db
class TestBookingHelpers:
    """Tests for Booking properties and bookkeeping helpers."""

    def test_quoted_price_precedence(self):
        booking = BookingFactory(
            provider_price=None,
            provider_fixed_price=Decimal("450.00"),
            offered_price=Decimal("400.00"),
        )

        assert booking.quoted_provider_price == Decimal("450.00")

    def test_no_quoted_price(self):
        assert BookingFactory().quoted_provider_price is None

    def test_mark_paid_in_cash_keeps_status(self):
        booking = BookingFactory()

        booking.mark_paid_in_cash(Decimal("500.00"))

        assert booking.status == BookingStatus.IN_PROGRESS
        assert booking.paid is True
        assert booking.payment_method == PaymentMethod.CASH

    def test_mark_refunded_clears_pending_flag(self, escrow_held_booking):
        escrow_held_booking.mark_refund_pending("Gateway down")

        escrow_held_booking.mark_refunded(Decimal("525.00"), "ref_1")

        assert escrow_held_booking.refunded is True
        assert escrow_held_booking.refund_pending is False
        assert escrow_held_booking.refund_error == ""
        assert escrow_held_booking.payment_status == EscrowStatus.REFUNDED

    def test_mark_refunded_without_escrow(self):
        booking = BookingFactory(paid=True)

        booking.mark_refunded(Decimal("500.00"), "ref_1")

        assert booking.payment_status is None


# =============================================================================
# PaymentSource
# =============================================================================


@pytest.mark.django_db
class TestPaymentSource:
    """Tests for PaymentSource transitions and constraints."""

    def test_mark_paid_records_payment(self, pending_source):
        pending_source.mark_paid("pay_1")

        assert pending_source.status == PaymentSourceStatus.PAID
        assert pending_source.payment_id == "pay_1"
        assert pending_source.paid_at is not None

    def test_mark_chargeable_then_paid(self, pending_source):
        pending_source.mark_chargeable()
        pending_source.mark_paid()

        assert pending_source.status == PaymentSourceStatus.PAID

    def test_mark_failed_stores_reason(self, pending_source):
        pending_source.mark_failed("Source expired")

        assert pending_source.status == PaymentSourceStatus.FAILED
        assert pending_source.metadata["failure_reason"] == "Source expired"

    def test_paid_source_cannot_fail(self, pending_source):
        pending_source.mark_paid("pay_1")

        with pytest.raises(TransitionNotAllowed):
            pending_source.mark_failed("late failure")

    def test_one_pending_source_per_booking_and_amount(self, pending_source):
        with pytest.raises(IntegrityError):
            PaymentSourceFactory(booking=pending_source.booking, amount=pending_source.amount)

    def test_pending_sources_for_different_amounts(self, pending_source):
        other = PaymentSourceFactory(booking=pending_source.booking, amount=Decimal("105.00"))

        assert other.status == PaymentSourceStatus.PENDING


# =============================================================================
# PayoutRequest
# =============================================================================


@pytest.mark.django_db
class TestPayoutRequest:
    """Tests for PayoutRequest transitions."""

    def test_approve(self):
        payout = PayoutRequestFactory()

        payout.approve("admin-1")

        assert payout.status == PayoutState.APPROVED
        assert payout.approved_at is not None

    def test_complete_requires_approval(self):
        payout = PayoutRequestFactory()

        with pytest.raises(TransitionNotAllowed):
            payout.complete("GC-1")

    def test_complete_stores_reference(self):
        payout = PayoutRequestFactory()
        payout.approve()

        payout.complete("GC-1")

        assert payout.status == PayoutState.COMPLETED
        assert payout.reference_number == "GC-1"
        assert payout.completed_at is not None

    @pytest.mark.parametrize("approved", [False, True])
    def test_fail_from_pending_or_approved(self, approved):
        payout = PayoutRequestFactory()
        if approved:
            payout.approve()

        payout.fail("Account closed")

        assert payout.status == PayoutState.FAILED
        assert payout.failed_at is not None

    def test_completed_payout_cannot_fail(self):
        payout = PayoutRequestFactory()
        payout.approve()
        payout.complete("GC-1")

        with pytest.raises(TransitionNotAllowed):
            payout.fail("too late")

    def test_status_is_protected(self):
        """Status only moves through transitions."""
        payout = PayoutRequestFactory()

        with pytest.raises(AttributeError):
            payout.status = PayoutState.COMPLETED

    def test_saved_transition_persists(self):
        payout = PayoutRequestFactory()
        payout.approve()
        payout.save()

        assert PayoutRequest.objects.get(pk=payout.pk).status == PayoutState.APPROVED


# =============================================================================
# WebhookEvent
# =============================================================================


@pytest.mark.django_db
class TestWebhookEvent:
    """Tests for WebhookEvent helpers."""

    def test_get_resource(self):
        event = WebhookEventFactory()

        assert event.get_resource()["id"] == "src_test"

    def test_get_resource_tolerates_bad_payload(self):
        event = WebhookEventFactory(payload={"data": None})

        assert event.get_resource() == {}

    def test_failed_then_reclaimed(self):
        event = WebhookEventFactory()
        event.mark_failed("boom")
        event.save()

        event.mark_processing()
        event.save()

        event = WebhookEvent.objects.get(pk=event.pk)
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.attempts == 2

    def test_mark_processed_clears_error(self):
        event = WebhookEventFactory(error_message="boom")

        event.mark_processed()

        assert event.status == WebhookEventStatus.PROCESSED
        assert event.error_message is None
        assert event.processed_at is not None
