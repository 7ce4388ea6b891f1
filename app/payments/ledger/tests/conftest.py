"""
Pytest fixtures for ledger tests.

Usage:
    def test_credit_opens_account(db, quoted_booking):
        LedgerAccountant.apply_credit(quoted_booking.provider_id, Decimal("500"))
"""

from decimal import Decimal

import pytest

from payments.tests.factories import BookingFactory, ProviderAccountFactory


@pytest.fixture
def quoted_booking(db):
    """Booking with a provider price of PHP 500 charged at PHP 525."""
    return BookingFactory(provider_price=Decimal("500.00"), total_amount=Decimal("525.00"))


@pytest.fixture
def unquoted_booking(db):
    """Booking with no quoted price."""
    return BookingFactory()


@pytest.fixture
def provider_account(db):
    """Provider with PHP 300 available and PHP 300 lifetime earnings."""
    return ProviderAccountFactory(
        provider_id="provider-ledger",
        available_balance=Decimal("300.00"),
        total_earnings=Decimal("300.00"),
    )
