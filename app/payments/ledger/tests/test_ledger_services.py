"""
Tests for LedgerAccountant.

This module tests the revenue split, the settlement journal guards and
balance credits/debits.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.utils import timezone

from payments.ledger.exceptions import AccountNotFound
from payments.ledger.models import ProviderAccount, Transaction
from payments.ledger.services import LedgerAccountant, fallback_provider_share, held_escrow_entry
from payments.state_machines import (
    BookingStatus,
    PayoutState,
    TransactionStatus,
    TransactionType,
)
from payments.tests.factories import (
    BookingFactory,
    PayoutRequestFactory,
    TransactionFactory,
)


# =============================================================================
# Revenue Split
# =============================================================================


class TestSettle:
    """Tests for LedgerAccountant.settle()."""

    def test_quoted_price_goes_to_provider(self, quoted_booking):
        """Provider receives the quoted price; the platform keeps the rest."""
        split = LedgerAccountant.settle(quoted_booking, Decimal("525.00"))

        assert split.provider_share == Decimal("500.00")
        assert split.platform_commission == Decimal("25.00")
        assert split.gross_amount == Decimal("525.00")

    def test_quoted_price_precedence(self, db):
        """provider_price wins over provider_fixed_price and offered_price."""
        booking = BookingFactory(
            provider_price=None,
            provider_fixed_price=Decimal("450.00"),
            offered_price=Decimal("400.00"),
        )

        split = LedgerAccountant.settle(booking, Decimal("500.00"))

        assert split.provider_share == Decimal("450.00")
        assert split.platform_commission == Decimal("50.00")

    def test_fallback_divides_by_fee(self, unquoted_booking):
        """Without a quoted price the provider gets round(gross / 1.05)."""
        split = LedgerAccountant.settle(unquoted_booking, Decimal("500.00"))

        assert split.provider_share == Decimal("476.00")
        assert split.platform_commission == Decimal("24.00")

    def test_no_booking_uses_fallback(self):
        """Ad-hoc charges split like unquoted bookings."""
        split = LedgerAccountant.settle(None, Decimal("105.00"))

        assert split.provider_share == Decimal("100.00")
        assert split.platform_commission == Decimal("5.00")

    @pytest.mark.parametrize("gross", ["0.01", "1.00", "99.99", "1234.56", "10000.00"])
    def test_parts_always_sum_to_gross(self, unquoted_booking, gross):
        """provider_share + platform_commission == gross for any amount."""
        split = LedgerAccountant.settle(unquoted_booking, Decimal(gross))

        assert split.provider_share + split.platform_commission == Decimal(gross)

    def test_fee_rate_is_configurable(self, settings):
        """PLATFORM_FEE_RATE changes the fallback divisor."""
        settings.PLATFORM_FEE_RATE = "0.10"

        assert fallback_provider_share(Decimal("550.00")) == Decimal("500.00")


# =============================================================================
# Journal
# =============================================================================


class TestRecordSettlement:
    """Tests for LedgerAccountant.record_settlement()."""

    def test_records_first_settlement(self, quoted_booking):
        """Should write one entry carrying the split."""
        split = LedgerAccountant.settle(quoted_booking, Decimal("525.00"))

        txn = LedgerAccountant.record_settlement(
            quoted_booking,
            TransactionType.PAYMENT,
            split,
            status=TransactionStatus.COMPLETED,
            payment_method="gcash",
            reference="pay_1",
        )

        assert txn is not None
        assert txn.amount == Decimal("525.00")
        assert txn.provider_share == Decimal("500.00")
        assert txn.client_id == quoted_booking.client_id
        assert txn.provider_id == quoted_booking.provider_id

    def test_second_settlement_is_skipped(self, quoted_booking):
        """A booking has at most one payment/escrow_payment entry."""
        split = LedgerAccountant.settle(quoted_booking, Decimal("525.00"))
        LedgerAccountant.record_settlement(
            quoted_booking, TransactionType.ESCROW_PAYMENT, split, status=TransactionStatus.HELD
        )

        duplicate = LedgerAccountant.record_settlement(
            quoted_booking, TransactionType.PAYMENT, split, status=TransactionStatus.COMPLETED
        )

        assert duplicate is None
        assert Transaction.objects.settlements().filter(booking=quoted_booking).count() == 1

    def test_unique_constraint_backs_the_check(self, quoted_booking):
        """The conditional unique constraint turns a race into None."""
        TransactionFactory(booking=quoted_booking)
        split = LedgerAccountant.settle(quoted_booking, Decimal("525.00"))

        # Simulate a racer passing the existence check
        with patch.object(LedgerAccountant, "has_settlement", return_value=False):
            result = LedgerAccountant.record_settlement(
                quoted_booking, TransactionType.PAYMENT, split, status=TransactionStatus.COMPLETED
            )

        assert result is None
        assert Transaction.objects.filter(booking=quoted_booking).count() == 1

    def test_refund_entries_do_not_count_as_settlement(self, quoted_booking):
        TransactionFactory(booking=quoted_booking, type=TransactionType.REFUND)

        assert LedgerAccountant.has_settlement(quoted_booking) is False


class TestRecordAdditionalCharge:
    """Tests for LedgerAccountant.record_additional_charge()."""

    def test_records_charge(self, quoted_booking):
        split = LedgerAccountant.settle(None, Decimal("105.00"))

        txn = LedgerAccountant.record_additional_charge(quoted_booking, split, reference="pay_extra")

        assert txn.type == TransactionType.ADDITIONAL_CHARGE
        assert txn.status == TransactionStatus.COMPLETED

    def test_same_reference_is_skipped(self, quoted_booking):
        split = LedgerAccountant.settle(None, Decimal("105.00"))
        LedgerAccountant.record_additional_charge(quoted_booking, split, reference="pay_extra")

        again = LedgerAccountant.record_additional_charge(quoted_booking, split, reference="pay_extra")

        assert again is None

    def test_additional_charge_alongside_settlement(self, quoted_booking):
        """Additional charges are not settlements."""
        TransactionFactory(booking=quoted_booking)
        split = LedgerAccountant.settle(None, Decimal("105.00"))

        txn = LedgerAccountant.record_additional_charge(quoted_booking, split, reference="pay_extra")

        assert txn is not None


class TestHeldEscrowEntry:
    """Tests for held_escrow_entry()."""

    def test_returns_held_entry(self, quoted_booking):
        entry = TransactionFactory(
            booking=quoted_booking,
            type=TransactionType.ESCROW_PAYMENT,
            status=TransactionStatus.HELD,
        )

        assert held_escrow_entry(quoted_booking) == entry

    def test_ignores_released_entry(self, quoted_booking):
        TransactionFactory(
            booking=quoted_booking,
            type=TransactionType.ESCROW_PAYMENT,
            status=TransactionStatus.COMPLETED,
        )

        assert held_escrow_entry(quoted_booking) is None


# =============================================================================
# Balances
# =============================================================================


class TestApplyCredit:
    """Tests for LedgerAccountant.apply_credit()."""

    def test_opens_account_on_first_credit(self, db):
        account = LedgerAccountant.apply_credit("provider-new", Decimal("476.00"))

        assert account.available_balance == Decimal("476.00")
        assert account.total_earnings == Decimal("476.00")
        assert ProviderAccount.objects.filter(provider_id="provider-new").count() == 1

    def test_adds_to_existing_balance(self, provider_account):
        LedgerAccountant.apply_credit(provider_account.provider_id, Decimal("200.00"))

        provider_account.refresh_from_db()
        assert provider_account.available_balance == Decimal("500.00")
        assert provider_account.total_earnings == Decimal("500.00")


class TestApplyDebit:
    """Tests for LedgerAccountant.apply_debit()."""

    def test_debits_available_balance(self, provider_account):
        debited = LedgerAccountant.apply_debit(provider_account.provider_id, Decimal("100.00"))

        provider_account.refresh_from_db()
        assert debited == Decimal("100.00")
        assert provider_account.available_balance == Decimal("200.00")
        assert provider_account.total_earnings == Decimal("200.00")

    def test_clamps_at_zero(self, provider_account):
        """Debits never take the balance negative."""
        debited = LedgerAccountant.apply_debit(provider_account.provider_id, Decimal("500.00"))

        provider_account.refresh_from_db()
        assert debited == Decimal("300.00")
        assert provider_account.available_balance == Decimal("0.00")
        assert provider_account.total_earnings == Decimal("0.00")

    def test_missing_account_debits_nothing(self, db):
        assert LedgerAccountant.apply_debit("provider-ghost", Decimal("10.00")) == Decimal("0.00")
        assert not ProviderAccount.objects.filter(provider_id="provider-ghost").exists()


class TestLockAccount:
    """Tests for LedgerAccountant.lock_account()."""

    def test_raises_for_unknown_provider(self, db):
        with pytest.raises(AccountNotFound) as exc_info:
            LedgerAccountant.lock_account("provider-ghost")

        assert exc_info.value.status_code == 404
        assert exc_info.value.details["provider_id"] == "provider-ghost"


# =============================================================================
# Reporting
# =============================================================================


class TestGetBalance:
    """Tests for LedgerAccountant.get_balance()."""

    def test_reports_balances(self, provider_account):
        balance = LedgerAccountant.get_balance(provider_account.provider_id)

        assert balance.available_balance == Decimal("300.00")
        assert balance.pending_payout == Decimal("0.00")
        assert balance.pending_balance == Decimal("0.00")

    def test_pending_balance_counts_open_jobs(self, provider_account):
        """Shares of in-progress, pending-completion and pending-payment jobs."""
        BookingFactory(
            provider_id=provider_account.provider_id,
            status=BookingStatus.IN_PROGRESS,
            provider_price=Decimal("300.00"),
        )
        BookingFactory(
            provider_id=provider_account.provider_id,
            status=BookingStatus.PENDING_COMPLETION,
            total_amount=Decimal("210.00"),
        )
        BookingFactory(
            provider_id=provider_account.provider_id,
            status=BookingStatus.COMPLETED,
            provider_price=Decimal("999.00"),
        )

        balance = LedgerAccountant.get_balance(provider_account.provider_id)

        assert balance.pending_balance == Decimal("500.00")

    def test_unknown_provider(self, db):
        with pytest.raises(AccountNotFound):
            LedgerAccountant.get_balance("provider-ghost")


class TestEarningsSummary:
    """Tests for LedgerAccountant.earnings_summary()."""

    def test_sums_completed_settlements(self, db):
        TransactionFactory(amount=Decimal("525.00"), provider_share=Decimal("500.00"),
                           platform_commission=Decimal("25.00"))
        TransactionFactory(amount=Decimal("105.00"), provider_share=Decimal("100.00"),
                           platform_commission=Decimal("5.00"),
                           type=TransactionType.ADDITIONAL_CHARGE, reference="pay_x")
        TransactionFactory(type=TransactionType.ESCROW_PAYMENT, status=TransactionStatus.HELD)
        TransactionFactory(type=TransactionType.REFUND)

        summary = LedgerAccountant.earnings_summary()

        assert summary.total_revenue == Decimal("630.00")
        assert summary.total_commission == Decimal("30.00")
        assert summary.transaction_count == 2

    def test_reports_payout_totals(self, db):
        PayoutRequestFactory(amount=Decimal("200.00"))
        PayoutRequestFactory(amount=Decimal("150.00"), status=PayoutState.COMPLETED)
        PayoutRequestFactory(amount=Decimal("999.00"), status=PayoutState.FAILED)

        summary = LedgerAccountant.earnings_summary()

        assert summary.pending_payouts_amount == Decimal("200.00")
        assert summary.pending_payouts_count == 1
        assert summary.completed_payouts_amount == Decimal("150.00")
        assert summary.completed_payouts_count == 1

    def test_filters_by_date_range(self, db):
        old = TransactionFactory()
        Transaction.objects.filter(pk=old.pk).update(
            created_at=timezone.now() - timedelta(days=30)
        )
        TransactionFactory()

        summary = LedgerAccountant.earnings_summary(start=timezone.now() - timedelta(days=1))

        assert summary.transaction_count == 1

    def test_empty(self, db):
        summary = LedgerAccountant.earnings_summary()

        assert summary.total_revenue == Decimal("0.00")
        assert summary.transaction_count == 0
