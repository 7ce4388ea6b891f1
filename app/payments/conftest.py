"""
Shared pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data.
Fixtures provide bookings at the points of the payment flow the services
branch on, and a mocked gateway adapter.

Usage:
    def test_settles_pay_later_booking(in_progress_booking, paid_source):
        outcome = SettlementService.settle_source(paid_source)
        assert outcome.booking.status == BookingStatus.PAYMENT_RECEIVED
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from payments.state_machines import BookingStatus, EscrowStatus, PaymentPreference
from payments.tests.factories import (
    BookingFactory,
    EscrowBookingFactory,
    PaymentSourceFactory,
    ProviderAccountFactory,
)


# =============================================================================
# Booking Fixtures
# =============================================================================


@pytest.fixture
def in_progress_booking(db):
    """Pay-later booking with work under way and no quoted price."""
    return BookingFactory()


@pytest.fixture
def awaiting_payment_booking(db):
    """Escrow booking waiting for its upfront payment."""
    return EscrowBookingFactory()


@pytest.fixture
def pay_first_booking(db):
    """Pay-first booking accepted but not yet paid upfront."""
    return BookingFactory(
        status=BookingStatus.ACCEPTED,
        payment_preference=PaymentPreference.PAY_FIRST,
        provider_price=Decimal("500.00"),
        total_amount=Decimal("525.00"),
    )


@pytest.fixture
def escrow_held_booking(db):
    """Escrow booking whose payment is held and whose work is done."""
    return EscrowBookingFactory(
        status=BookingStatus.PENDING_COMPLETION,
        is_paid_upfront=True,
        upfront_paid_amount=Decimal("525.00"),
        payment_status=EscrowStatus.HELD,
        paid=True,
    )


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def pending_source(in_progress_booking):
    """Pending GCash source for the pay-later booking."""
    return PaymentSourceFactory(booking=in_progress_booking)


@pytest.fixture
def charged_source(in_progress_booking):
    """Source that was charged but not yet settled."""
    return PaymentSourceFactory(booking=in_progress_booking, payment_id="pay_charged")


# =============================================================================
# Ledger Fixtures
# =============================================================================


@pytest.fixture
def funded_account(db):
    """Provider with PHP 1000 available."""
    return ProviderAccountFactory(
        provider_id="provider-funded",
        available_balance=Decimal("1000.00"),
        total_earnings=Decimal("1000.00"),
    )


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def mock_gateway():
    """
    Patch the PayMongo adapter everywhere the services use it.

    Every service module imports PayMongoAdapter by name, so each import
    site is patched with the same mock.
    """
    with patch("payments.services.checkout_service.PayMongoAdapter") as adapter, patch(
        "payments.services.reconciliation_service.PayMongoAdapter", adapter
    ), patch("payments.services.refund_service.PayMongoAdapter", adapter):
        yield adapter


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def api_client() -> APIClient:
    """Return API client (authentication is handled upstream)."""
    return APIClient()
