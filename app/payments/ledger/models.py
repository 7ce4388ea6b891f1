"""
Ledger models: provider balances and the transaction journal.

This module defines the two records the ledger maintains:
- ProviderAccount: Long-lived balance aggregate per provider
- Transaction: Append-only journal of settlements and refunds

Every balance change happens inside a database transaction holding the
ProviderAccount row lock (see LedgerAccountant), so concurrent settlements
and payout actions for one provider are applied one at a time.

Usage:
    from payments.ledger.models import ProviderAccount, Transaction

    account = ProviderAccount.objects.get(provider_id="prov_1")
    print(account.available_balance)

    Transaction.objects.settlements().filter(booking=booking).exists()
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

from payments.state_machines import TransactionStatus, TransactionType


class ProviderAccount(BaseModel):
    """
    A provider's balances.

    Invariant:
        available_balance >= 0 and pending_payout >= 0. Debits on refund
        and payout-failure paths clamp at zero; the check constraints
        below reject anything that slips through.

    Fields:
        provider_id: Provider user ID
        available_balance: Withdrawable funds
        pending_payout: Funds reserved by pending payout requests
        total_earnings: Lifetime credited earnings (net of refunds)
        total_payouts: Lifetime approved payouts
        payout_method / payout_account_number / payout_account_name:
            Where approved payouts are sent
    """

    provider_id = models.CharField(max_length=128, unique=True)

    available_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    pending_payout = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_earnings = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_payouts = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    payout_method = models.CharField(max_length=20, blank=True, default="")
    payout_account_number = models.CharField(max_length=64, blank=True, default="")
    payout_account_name = models.CharField(max_length=200, blank=True, default="")

    class Meta:
        ordering = ["provider_id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(available_balance__gte=0),
                name="provider_available_balance_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(pending_payout__gte=0),
                name="provider_pending_payout_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"ProviderAccount({self.provider_id}, {self.available_balance:.2f})"


class TransactionQuerySet(models.QuerySet):
    def settlements(self):
        """Entries that settle a booking's price (payment/escrow_payment)."""
        return self.filter(type__in=TransactionType.settlement_types())

    def revenue(self):
        """Entries that count as platform revenue (settled, not refunded)."""
        return self.filter(
            type__in=[*TransactionType.settlement_types(), TransactionType.ADDITIONAL_CHARGE],
            status=TransactionStatus.COMPLETED,
        )


class Transaction(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A journal entry for money moving through a booking.

    Entries are append-only; the only mutation is an escrow entry moving
    HELD -> COMPLETED on release or HELD -> REFUNDED on refund.

    Invariants:
        - provider_share + platform_commission == amount
        - at most one payment/escrow_payment entry per booking
          (conditional unique constraint)
        - at most one additional_charge entry per gateway reference

    Fields:
        booking: Booking the money belongs to
        client_id / provider_id: Parties at the time of the entry
        type: payment, escrow_payment, additional_charge or refund
        amount: Gross amount
        provider_share: Portion owed to (or, for refunds, taken back from)
            the provider
        platform_commission: Remainder kept by the platform
        status: held, completed or refunded
        payment_method: gcash, paymaya or cash
        reference: Gateway payment/refund ID, if any
    """

    booking = models.ForeignKey(
        "payments.Booking",
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    client_id = models.CharField(max_length=128, db_index=True)
    provider_id = models.CharField(max_length=128, db_index=True)

    type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        db_index=True,
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    provider_share = models.DecimalField(max_digits=12, decimal_places=2)
    platform_commission = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        db_index=True,
    )

    payment_method = models.CharField(max_length=20, blank=True, default="")
    reference = models.CharField(max_length=64, blank=True, default="")
    released_at = models.DateTimeField(null=True, blank=True)

    objects = TransactionQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "type"]),
            models.Index(fields=["type", "status", "created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=Q(type__in=["payment", "escrow_payment"]),
                name="unique_settlement_per_booking",
            ),
            models.UniqueConstraint(
                fields=["reference"],
                condition=Q(type="additional_charge"),
                name="unique_additional_charge_per_reference",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="transaction_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount:.2f} ({self.status})"
