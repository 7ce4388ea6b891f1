"""
Ledger service layer for balance operations.

This module provides the LedgerAccountant class which encapsulates the
revenue split, the settlement journal and every change to a provider's
balances. All balance writes go through it so that:

- each ProviderAccount change runs under that account's row lock
- each booking gets at most one settlement entry
- debits on refund paths never take a balance below zero

Usage:
    from payments.ledger.services import LedgerAccountant

    split = LedgerAccountant.settle(booking, Decimal("525.00"))

    with transaction.atomic():
        txn = LedgerAccountant.record_settlement(
            booking,
            TransactionType.PAYMENT,
            split,
            status=TransactionStatus.COMPLETED,
        )
        if txn is not None:
            LedgerAccountant.apply_credit(booking.provider_id, split.provider_share)
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Sum

from payments.state_machines import BookingStatus, PayoutState, TransactionStatus, TransactionType

from .exceptions import AccountNotFound
from .models import ProviderAccount, Transaction
from .types import BalanceSummary, EarningsSummary, RevenueSplit, to_money

if TYPE_CHECKING:
    from payments.models import Booking

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def platform_fee_rate() -> Decimal:
    """Fee the platform levies on top of the provider's price."""
    return Decimal(str(getattr(settings, "PLATFORM_FEE_RATE", "0.05")))


def fallback_provider_share(gross_amount: Decimal) -> Decimal:
    """
    Provider share when the booking carries no quoted price.

    round(gross / (1 + fee)) to whole pesos, so a gross of 500 yields 476.
    """
    share = Decimal(gross_amount) / (1 + platform_fee_rate())
    return to_money(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class LedgerAccountant:
    """
    Service class for ledger operations.

    Key features:
    - Revenue split with the provider's quoted price guaranteed
    - Duplicate-settlement guard (existence check plus unique constraint)
    - Row-locked read-modify-write on provider balances
    - Clamped debits

    All methods are static - no instance state is maintained.
    """

    # =========================================================================
    # Revenue Split
    # =========================================================================

    @staticmethod
    def settle(booking: Booking | None, gross_amount: Decimal) -> RevenueSplit:
        """
        Split a gross payment between provider and platform.

        provider_share is the booking's quoted price (provider_price, then
        provider_fixed_price, then offered_price) or, when none is set,
        round(gross / 1.05). The platform commission is the remainder.

        Args:
            booking: Booking being paid for (None for ad-hoc charges)
            gross_amount: Amount the client paid

        Returns:
            RevenueSplit whose parts sum to gross_amount
        """
        gross = to_money(gross_amount)
        quoted = booking.quoted_provider_price if booking is not None else None
        provider_share = to_money(quoted) if quoted is not None else fallback_provider_share(gross)

        commission = gross - provider_share
        if commission < 0:
            logger.warning(
                "Gross amount below quoted provider price",
                extra={
                    "booking_id": str(booking.pk) if booking is not None else None,
                    "gross_amount": str(gross),
                    "provider_share": str(provider_share),
                },
            )

        return RevenueSplit(
            gross_amount=gross,
            provider_share=provider_share,
            platform_commission=commission,
        )

    # =========================================================================
    # Journal
    # =========================================================================

    @staticmethod
    def has_settlement(booking: Booking) -> bool:
        """Whether a payment/escrow_payment entry already exists for the booking."""
        return Transaction.objects.settlements().filter(booking=booking).exists()

    @staticmethod
    def get_settlement(booking: Booking) -> Transaction | None:
        return Transaction.objects.settlements().filter(booking=booking).first()

    @staticmethod
    def record_settlement(
        booking: Booking,
        txn_type: str,
        split: RevenueSplit,
        status: str,
        payment_method: str = "",
        reference: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> Transaction | None:
        """
        Write the booking's settlement entry unless one already exists.

        Callers hold the booking row lock, which serializes settlements for
        the booking; the unique constraint catches anything else.

        Returns:
            The new Transaction, or None if the booking was already settled
        """
        if LedgerAccountant.has_settlement(booking):
            logger.info(
                "Booking already settled, skipping duplicate settlement",
                extra={"booking_id": str(booking.pk), "type": txn_type},
            )
            return None

        try:
            with transaction.atomic():
                return LedgerAccountant.record_transaction(
                    booking,
                    txn_type,
                    split,
                    status=status,
                    payment_method=payment_method,
                    reference=reference,
                    metadata=metadata,
                )
        except IntegrityError:
            logger.warning(
                "Concurrent settlement detected for booking",
                extra={"booking_id": str(booking.pk), "type": txn_type},
            )
            return None

    @staticmethod
    def record_additional_charge(
        booking: Booking,
        split: RevenueSplit,
        reference: str,
        payment_method: str = "",
    ) -> Transaction | None:
        """
        Write an additional-charge entry keyed by the gateway reference.

        Returns:
            The new Transaction, or None if the reference was already recorded
        """
        exists = Transaction.objects.filter(
            type=TransactionType.ADDITIONAL_CHARGE,
            reference=reference,
        ).exists()
        if exists:
            logger.info(
                "Additional charge already recorded",
                extra={"booking_id": str(booking.pk), "reference": reference},
            )
            return None

        try:
            with transaction.atomic():
                return LedgerAccountant.record_transaction(
                    booking,
                    TransactionType.ADDITIONAL_CHARGE,
                    split,
                    status=TransactionStatus.COMPLETED,
                    payment_method=payment_method,
                    reference=reference,
                )
        except IntegrityError:
            logger.warning(
                "Concurrent additional charge detected",
                extra={"booking_id": str(booking.pk), "reference": reference},
            )
            return None

    @staticmethod
    def record_transaction(
        booking: Booking,
        txn_type: str,
        split: RevenueSplit,
        status: str,
        payment_method: str = "",
        reference: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> Transaction:
        """Append a journal entry for the booking."""
        txn = Transaction.objects.create(
            booking=booking,
            client_id=booking.client_id,
            provider_id=booking.provider_id,
            type=txn_type,
            amount=split.gross_amount,
            provider_share=split.provider_share,
            platform_commission=split.platform_commission,
            status=status,
            payment_method=payment_method,
            reference=reference,
            metadata=metadata or {},
        )
        logger.info(
            "Ledger transaction recorded",
            extra={
                "transaction_id": str(txn.id),
                "booking_id": str(booking.pk),
                "type": txn_type,
                "status": status,
                "amount": str(split.gross_amount),
                "provider_share": str(split.provider_share),
            },
        )
        return txn

    # =========================================================================
    # Balances
    # =========================================================================

    @staticmethod
    def lock_account(provider_id: str, create: bool = False) -> ProviderAccount:
        """
        Fetch a provider account with a row lock.

        Must be called inside transaction.atomic(); the lock is held until
        the surrounding transaction ends.

        Raises:
            AccountNotFound: If the account doesn't exist and create is False
        """
        queryset = ProviderAccount.objects.select_for_update()
        if create:
            account, created = queryset.get_or_create(provider_id=provider_id)
            if created:
                logger.info("Provider account opened", extra={"provider_id": provider_id})
            return account

        try:
            return queryset.get(provider_id=provider_id)
        except ProviderAccount.DoesNotExist:
            raise AccountNotFound(
                "Provider account not found",
                details={"provider_id": provider_id},
            )

    @staticmethod
    def apply_credit(provider_id: str, amount: Decimal) -> ProviderAccount:
        """
        Credit a provider's available balance and lifetime earnings.

        Opens the account on the first credit.
        """
        amount = to_money(amount)
        with transaction.atomic():
            account = LedgerAccountant.lock_account(provider_id, create=True)
            account.available_balance += amount
            account.total_earnings += amount
            account.save(update_fields=["available_balance", "total_earnings", "updated_at"])

        logger.info(
            "Provider credited",
            extra={
                "provider_id": provider_id,
                "amount": str(amount),
                "available_balance": str(account.available_balance),
            },
        )
        return account

    @staticmethod
    def apply_debit(provider_id: str, amount: Decimal) -> Decimal:
        """
        Take back a previously credited amount, clamping balances at zero.

        Returns:
            The amount actually removed from the available balance
        """
        amount = to_money(amount)
        with transaction.atomic():
            try:
                account = LedgerAccountant.lock_account(provider_id)
            except AccountNotFound:
                logger.warning(
                    "Debit skipped, provider has no account",
                    extra={"provider_id": provider_id, "amount": str(amount)},
                )
                return ZERO

            debited = min(amount, account.available_balance)
            account.available_balance -= debited
            account.total_earnings = max(account.total_earnings - amount, ZERO)
            account.save(update_fields=["available_balance", "total_earnings", "updated_at"])

        if debited < amount:
            logger.warning(
                "Provider debit clamped at zero",
                extra={
                    "provider_id": provider_id,
                    "requested": str(amount),
                    "debited": str(debited),
                },
            )
        else:
            logger.info(
                "Provider debited",
                extra={"provider_id": provider_id, "amount": str(amount)},
            )
        return debited

    # =========================================================================
    # Reporting
    # =========================================================================

    @staticmethod
    def get_balance(provider_id: str) -> BalanceSummary:
        """
        Read a provider's balances.

        pending_balance estimates the provider share of jobs still under way.

        Raises:
            AccountNotFound: If the provider has never been credited
        """
        from payments.models import Booking

        account = ProviderAccount.objects.filter(provider_id=provider_id).first()
        if account is None:
            raise AccountNotFound(
                "Provider account not found",
                details={"provider_id": provider_id},
            )

        pending_balance = ZERO
        open_jobs = Booking.objects.filter(
            provider_id=provider_id,
            status__in=BookingStatus.incomplete_work(),
        )
        for job in open_jobs:
            if job.quoted_provider_price is not None:
                pending_balance += job.quoted_provider_price
            elif job.total_amount:
                pending_balance += fallback_provider_share(job.total_amount)

        return BalanceSummary(
            provider_id=provider_id,
            available_balance=account.available_balance,
            pending_payout=account.pending_payout,
            pending_balance=to_money(pending_balance),
            total_earnings=account.total_earnings,
            total_payouts=account.total_payouts,
        )

    @staticmethod
    def earnings_summary(
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> EarningsSummary:
        """
        Platform-wide earnings, optionally restricted to a date range.

        The date range applies to settled transactions; payout totals are
        reported over all time.
        """
        from payments.models import PayoutRequest

        revenue = Transaction.objects.revenue()
        if start is not None:
            revenue = revenue.filter(created_at__gte=start)
        if end is not None:
            revenue = revenue.filter(created_at__lte=end)
        totals = revenue.aggregate(
            total_revenue=Sum("amount"),
            total_commission=Sum("platform_commission"),
            transaction_count=Count("id"),
        )

        def payout_totals(status: str) -> dict[str, Any]:
            return PayoutRequest.objects.filter(status=status).aggregate(
                amount=Sum("amount"),
                count=Count("id"),
            )

        pending = payout_totals(PayoutState.PENDING)
        completed = payout_totals(PayoutState.COMPLETED)

        return EarningsSummary(
            total_revenue=totals["total_revenue"] or ZERO,
            total_commission=totals["total_commission"] or ZERO,
            transaction_count=totals["transaction_count"],
            pending_payouts_amount=pending["amount"] or ZERO,
            pending_payouts_count=pending["count"],
            completed_payouts_amount=completed["amount"] or ZERO,
            completed_payouts_count=completed["count"],
        )


def held_escrow_entry(booking: Booking) -> Transaction | None:
    """The booking's escrow entry if it is still held."""
    return (
        Transaction.objects.filter(
            booking=booking,
            type=TransactionType.ESCROW_PAYMENT,
            status=TransactionStatus.HELD,
        )
        .select_for_update()
        .first()
    )
