"""
Errors raised by provider balance operations.

    LedgerError            400, LEDGER_ERROR
      AccountNotFound      404, provider was never credited
      InsufficientBalance  400, withdrawal above available_balance

All serialize through BaseApplicationError.to_dict(), so the API reports
the balance that was checked:

    {"error": "Insufficient balance: requested 5000.00, available 1000.00",
     "error_code": "INSUFFICIENT_BALANCE",
     "details": {"provider_id": "...", "requested": "5000.00",
                 "available_balance": "1000.00"}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from decimal import Decimal
    from typing import Any


class LedgerError(BaseApplicationError):
    default_error_code: str = "LEDGER_ERROR"
    status_code: int = 400


class AccountNotFound(LedgerError):
    """No ProviderAccount row; accounts appear on the first credit."""

    default_error_code: str = "ACCOUNT_NOT_FOUND"
    status_code: int = 404


class InsufficientBalance(LedgerError):
    """
    A payout request larger than the provider's available balance.

    `available` is the balance read under the row lock, so the error
    reports exactly what the request was compared against.
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        provider_id: str,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.provider_id = provider_id
        self.required = required
        self.available = available

        merged = {
            "provider_id": provider_id,
            "requested": f"{required:.2f}",
            "available_balance": f"{available:.2f}",
            **(details or {}),
        }
        super().__init__(
            message=f"Insufficient balance: requested {required:.2f}, available {available:.2f}",
            error_code=error_code,
            details=merged,
        )
