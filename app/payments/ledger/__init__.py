"""
Ledger - provider balances and the transaction journal.

This package records how money moves through bookings and keeps every
provider's balances consistent with it.

Public API:
    Models (payments.ledger.models):
        ProviderAccount - Balance aggregate per provider
        Transaction - Append-only journal entry

    Service (payments.ledger.services):
        LedgerAccountant - Revenue split, settlement recording, credits,
        debits and balance reporting

    Types:
        RevenueSplit - Provider/platform split of a gross amount
        BalanceSummary - Provider balance read model
        EarningsSummary - Platform earnings read model

    Exceptions:
        LedgerError - Base exception for ledger operations
        AccountNotFound - Provider has no account
        InsufficientBalance - Withdrawal exceeds available balance

Usage:
    from payments.ledger.services import LedgerAccountant

    split = LedgerAccountant.settle(booking, Decimal("525.00"))
    with transaction.atomic():
        LedgerAccountant.apply_credit(booking.provider_id, split.provider_share)

Note:
    Models and services are not imported here: the models module is
    loaded by the app registry through payments.models, and importing the
    services at package import time would create an import cycle.
"""

from .exceptions import AccountNotFound, InsufficientBalance, LedgerError
from .types import BalanceSummary, EarningsSummary, RevenueSplit, to_money

__all__ = [
    # Types
    "BalanceSummary",
    "EarningsSummary",
    "RevenueSplit",
    "to_money",
    # Exceptions
    "AccountNotFound",
    "InsufficientBalance",
    "LedgerError",
]
