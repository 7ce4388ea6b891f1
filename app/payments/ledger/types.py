"""
Data types for ledger operations.

This module defines dataclasses used throughout the ledger system
for type-safe data transfer between layers.

Types:
    RevenueSplit: Provider/platform split of a settled gross amount
    BalanceSummary: Read model of a provider's balances
    EarningsSummary: Platform-wide earnings totals for administrators

Usage:
    from payments.ledger.types import RevenueSplit

    split = RevenueSplit(
        gross_amount=Decimal("525.00"),
        provider_share=Decimal("500.00"),
        platform_commission=Decimal("25.00"),
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a number to a two-place Decimal, rounding half up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RevenueSplit:
    """
    Provider/platform split of a gross payment.

    The provider receives their full quoted price; the platform commission
    is whatever the client paid on top of it.

    Attributes:
        gross_amount: Amount the client paid
        provider_share: Amount owed to the provider
        platform_commission: gross_amount - provider_share
    """

    gross_amount: Decimal
    provider_share: Decimal
    platform_commission: Decimal

    def __post_init__(self) -> None:
        """Validate the split after initialization."""
        if self.gross_amount < 0:
            raise ValueError("gross_amount must not be negative")
        if self.provider_share + self.platform_commission != self.gross_amount:
            raise ValueError("provider_share + platform_commission must equal gross_amount")


@dataclass
class BalanceSummary:
    """
    Balances of a single provider account.

    Attributes:
        provider_id: Provider identifier
        available_balance: Withdrawable funds
        pending_payout: Funds reserved by pending payout requests
        pending_balance: Estimated share of bookings still in progress
        total_earnings: Lifetime credited earnings
        total_payouts: Lifetime approved payouts
    """

    provider_id: str
    available_balance: Decimal
    pending_payout: Decimal
    pending_balance: Decimal
    total_earnings: Decimal
    total_payouts: Decimal


@dataclass
class EarningsSummary:
    """
    Platform earnings totals over an optional date range.

    Attributes:
        total_revenue: Sum of settled gross amounts
        total_commission: Sum of platform commissions
        transaction_count: Number of settled transactions
        pending_payouts_amount: Sum of pending payout requests
        pending_payouts_count: Number of pending payout requests
        completed_payouts_amount: Sum of completed payouts
        completed_payouts_count: Number of completed payouts
    """

    total_revenue: Decimal
    total_commission: Decimal
    transaction_count: int
    pending_payouts_amount: Decimal
    pending_payouts_count: int
    completed_payouts_amount: Decimal
    completed_payouts_count: int
