"""
Payout service for provider withdrawals.

Payouts are transferred manually by an administrator; this service keeps
the provider's balances in step with each stage:

    request   available -= amount, pending_payout += amount
    approve   pending_payout -= amount, total_payouts += amount
    complete  (no balance change, stores the transfer reference)
    fail      available += amount, and undo whichever of pending_payout /
              total_payouts currently holds the amount

Every balance change runs under the provider account's row lock together
with the payout row lock, so concurrent requests cannot overdraw.

Usage:
    from payments.services import PayoutService

    payout = PayoutService.request_payout("provider-1", Decimal("250.00"))
    PayoutService.approve_payout(payout.id, admin_id="admin-1")
    PayoutService.complete_payout(payout.id, reference_number="GC-1234")
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.services import BaseService

from payments import dispatch
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.ledger.exceptions import InsufficientBalance
from payments.ledger.services import LedgerAccountant
from payments.ledger.types import to_money
from payments.models import PayoutRequest
from payments.state_machines import PayoutState

if TYPE_CHECKING:
    import uuid

    from django.db.models import QuerySet


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MINIMUM_PAYOUT = Decimal("100.00")
PROVIDER_HISTORY_LIMIT = 50
ADMIN_LIST_LIMIT = 100

ZERO = Decimal("0.00")


def minimum_payout_amount() -> Decimal:
    return to_money(getattr(settings, "MINIMUM_PAYOUT_AMOUNT", DEFAULT_MINIMUM_PAYOUT))


# =============================================================================
# Payout Service
# =============================================================================


class PayoutService(BaseService):
    """
    Service for the payout workflow.

    State machine (PayoutRequest.status):
        pending -> approved -> completed
        pending/approved -> failed

    All methods are class methods - no instance state is maintained.
    """

    # =========================================================================
    # Provider Operations
    # =========================================================================

    @classmethod
    def request_payout(
        cls,
        provider_id: str,
        amount: Decimal,
        account_method: str = "",
        account_number: str = "",
        account_name: str = "",
    ) -> PayoutRequest:
        """
        Request a withdrawal of available balance.

        The payout account is snapshotted from the request, falling back to
        the provider account's saved payout details.

        Raises:
            PaymentValidationError: Amount below the minimum payout
            AccountNotFound: Provider has no account
            InsufficientBalance: Amount exceeds the available balance
        """
        amount = to_money(amount)
        minimum = minimum_payout_amount()
        if amount < minimum:
            raise PaymentValidationError(
                f"Minimum payout amount is PHP {minimum:.2f}",
                error_code="PAYOUT_BELOW_MINIMUM",
                details={"amount": f"{amount:.2f}", "minimum": f"{minimum:.2f}"},
            )

        with transaction.atomic():
            account = LedgerAccountant.lock_account(provider_id)
            if amount > account.available_balance:
                raise InsufficientBalance(
                    provider_id=provider_id,
                    required=amount,
                    available=account.available_balance,
                )

            account.available_balance -= amount
            account.pending_payout += amount
            account.save(update_fields=["available_balance", "pending_payout", "updated_at"])

            payout = PayoutRequest.objects.create(
                provider_id=provider_id,
                amount=amount,
                account_method=account_method or account.payout_method,
                account_number=account_number or account.payout_account_number,
                account_name=account_name or account.payout_account_name,
            )

        cls.get_logger().info(
            "Payout requested",
            extra={
                "payout_id": str(payout.id),
                "provider_id": provider_id,
                "amount": str(amount),
                "available_balance": str(account.available_balance),
            },
        )
        return payout

    @classmethod
    def payout_history(cls, provider_id: str) -> QuerySet[PayoutRequest]:
        """A provider's latest payouts, newest first."""
        return PayoutRequest.objects.filter(provider_id=provider_id).order_by(
            "-requested_at"
        )[:PROVIDER_HISTORY_LIMIT]

    # =========================================================================
    # Admin Operations
    # =========================================================================

    @classmethod
    def list_payouts(cls, status: str | None = None) -> QuerySet[PayoutRequest]:
        """Latest payouts across providers, optionally filtered by status."""
        queryset = PayoutRequest.objects.all()
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-requested_at")[:ADMIN_LIST_LIMIT]

    @classmethod
    def approve_payout(cls, payout_id: uuid.UUID | str, admin_id: str = "") -> PayoutRequest:
        """
        Approve a pending payout.

        Raises:
            PaymentNotFoundError: Unknown payout
            InvalidStateTransitionError: Payout is not pending
        """
        with transaction.atomic():
            payout = cls._lock_payout(payout_id)
            cls._transition(payout, "approve", admin_id)

            account = LedgerAccountant.lock_account(payout.provider_id, create=True)
            account.pending_payout = max(account.pending_payout - payout.amount, ZERO)
            account.total_payouts += payout.amount
            account.save(update_fields=["pending_payout", "total_payouts", "updated_at"])
            payout.save()

            dispatch.notify(
                payout.provider_id,
                "Payout approved",
                f"Your payout of PHP {payout.amount} has been approved",
                type="payout_approved",
                payout_id=str(payout.id),
            )

        cls._log_transition(payout, admin_id=admin_id)
        return payout

    @classmethod
    def complete_payout(
        cls,
        payout_id: uuid.UUID | str,
        reference_number: str = "",
    ) -> PayoutRequest:
        """
        Mark an approved payout as transferred.

        Raises:
            PaymentNotFoundError: Unknown payout
            InvalidStateTransitionError: Payout is not approved
        """
        with transaction.atomic():
            payout = cls._lock_payout(payout_id)
            cls._transition(payout, "complete", reference_number)
            payout.save()

            dispatch.notify(
                payout.provider_id,
                "Payout sent",
                f"PHP {payout.amount} has been sent to your account",
                type="payout_completed",
                payout_id=str(payout.id),
                reference_number=reference_number,
            )

        cls._log_transition(payout, reference_number=reference_number)
        return payout

    @classmethod
    def fail_payout(cls, payout_id: uuid.UUID | str, reason: str = "") -> PayoutRequest:
        """
        Fail a pending or approved payout and restore the provider's balance.

        After approval the amount has already moved from pending_payout to
        total_payouts, so that is where it is taken back from; pending_payout
        is left alone, since it only holds payouts still awaiting approval.

        Raises:
            PaymentNotFoundError: Unknown payout
            InvalidStateTransitionError: Payout is completed or already failed
        """
        reason = reason or "Payout processing failed"

        with transaction.atomic():
            payout = cls._lock_payout(payout_id)
            previous_status = payout.status
            cls._transition(payout, "fail", reason)

            account = LedgerAccountant.lock_account(payout.provider_id, create=True)
            account.available_balance += payout.amount
            if previous_status == PayoutState.APPROVED:
                account.total_payouts = max(account.total_payouts - payout.amount, ZERO)
            else:
                account.pending_payout = max(account.pending_payout - payout.amount, ZERO)
            account.save(
                update_fields=[
                    "available_balance",
                    "pending_payout",
                    "total_payouts",
                    "updated_at",
                ]
            )
            payout.save()

            dispatch.notify(
                payout.provider_id,
                "Payout failed",
                f"Your payout of PHP {payout.amount} failed and was returned to your balance",
                type="payout_failed",
                payout_id=str(payout.id),
                reason=reason,
            )

        cls._log_transition(payout, previous_status=previous_status, reason=reason)
        return payout

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _lock_payout(payout_id: uuid.UUID | str) -> PayoutRequest:
        payout = PayoutRequest.objects.select_for_update().filter(pk=payout_id).first()
        if payout is None:
            raise PaymentNotFoundError(
                "Payout not found",
                error_code="PAYOUT_NOT_FOUND",
                details={"payout_id": str(payout_id)},
            )
        return payout

    @staticmethod
    def _transition(payout: PayoutRequest, name: str, *args) -> None:
        try:
            getattr(payout, name)(*args)
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot {name} payout in '{payout.status}' state",
                details={
                    "payout_id": str(payout.id),
                    "current_state": payout.status,
                    "transition": name,
                },
            )

    @classmethod
    def _log_transition(cls, payout: PayoutRequest, **context) -> None:
        cls.get_logger().info(
            f"Payout {payout.status}",
            extra={
                "payout_id": str(payout.id),
                "provider_id": payout.provider_id,
                "amount": str(payout.amount),
                **context,
            },
        )
