"""
DRF serializers for payments app.

This module provides serializers for:
- Checkout requests (sources, charges, cash payments)
- Refund requests and outcomes
- Provider balances and payouts
- Admin reporting
- Escrow release

JSON keys are camelCase to match the mobile client; each field maps onto
the snake_case model or service attribute through `source`.

Related files:
    - models/: Booking, PaymentSource, Payment, PayoutRequest
    - ledger/: ProviderAccount, Transaction, BalanceSummary, EarningsSummary
    - views.py: Payment API views

Usage:
    serializer = CreateSourceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    CheckoutService.create_source(**serializer.validated_data)
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from payments.ledger.models import Transaction
from payments.models import Payment, PaymentSource, PayoutRequest
from payments.state_machines import PayoutState

MIN_AMOUNT = Decimal("0.01")


def money_field(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# =============================================================================
# Checkout
# =============================================================================


class RedirectTargetsSerializer(serializers.Serializer):
    """Optional overrides for the gateway's post-checkout redirects."""

    success = serializers.URLField(required=False)
    failed = serializers.URLField(required=False)


class CreateSourceSerializer(serializers.Serializer):
    """
    Request body for creating a checkout source.

    Fields:
        amount: Amount in pesos
        bookingId: Booking being paid
        userId: Paying client
        method: gcash, paymaya or maya
        redirectTargets: Optional {success, failed} URLs
    """

    amount = money_field(min_value=MIN_AMOUNT)
    bookingId = serializers.UUIDField(source="booking_id")
    userId = serializers.CharField(source="user_id", max_length=128)
    method = serializers.ChoiceField(choices=["gcash", "paymaya", "maya"])
    redirectTargets = RedirectTargetsSerializer(source="redirect_urls", required=False)


class SourceCheckoutSerializer(serializers.Serializer):
    """Response for source creation (wraps SourceCheckout)."""

    sourceId = serializers.CharField(source="source.source_id")
    checkoutUrl = serializers.CharField(source="source.checkout_url")
    status = serializers.CharField(source="source.status")
    existing = serializers.BooleanField()


class CreateChargeSerializer(serializers.Serializer):
    """Request body for charging a source."""

    sourceId = serializers.CharField(source="source_id", max_length=64)
    amount = money_field(min_value=MIN_AMOUNT, required=False)


class PaymentSerializer(serializers.ModelSerializer):
    """Gateway payment created by a charge."""

    paymentId = serializers.CharField(source="payment_id")

    class Meta:
        model = Payment
        fields = ["paymentId", "status", "amount"]
        read_only_fields = fields


class GatewaySourceSerializer(serializers.Serializer):
    """Live source state as reported by the gateway (wraps SourceResult)."""

    id = serializers.CharField()
    status = serializers.CharField()
    amount = money_field()
    type = serializers.CharField()


class PaymentStatusSerializer(serializers.ModelSerializer):
    """Most recent payment record for a booking."""

    sourceId = serializers.CharField(source="source_id")
    paymentId = serializers.CharField(source="payment_id")
    paidAt = serializers.DateTimeField(source="paid_at")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = PaymentSource
        fields = ["sourceId", "paymentId", "status", "amount", "method", "paidAt", "createdAt"]
        read_only_fields = fields


class ReconcileResultSerializer(serializers.Serializer):
    """Response for manual reconciliation (wraps ReconcileResult)."""

    status = serializers.CharField()
    message = serializers.CharField()
    bookingStatus = serializers.CharField(source="booking_status")


class CashPaymentSerializer(serializers.Serializer):
    """Request body for recording a cash payment."""

    bookingId = serializers.UUIDField(source="booking_id")
    amount = money_field(min_value=MIN_AMOUNT)
    userId = serializers.CharField(source="user_id", max_length=128, required=False, default="")


class TransactionSerializer(serializers.ModelSerializer):
    """Ledger journal entry."""

    bookingId = serializers.UUIDField(source="booking_id")
    clientId = serializers.CharField(source="client_id")
    providerId = serializers.CharField(source="provider_id")
    providerShare = money_field(source="provider_share")
    platformCommission = money_field(source="platform_commission")
    paymentMethod = serializers.CharField(source="payment_method")
    createdAt = serializers.DateTimeField(source="created_at")
    releasedAt = serializers.DateTimeField(source="released_at")

    class Meta:
        model = Transaction
        fields = [
            "id",
            "bookingId",
            "clientId",
            "providerId",
            "type",
            "amount",
            "providerShare",
            "platformCommission",
            "status",
            "paymentMethod",
            "reference",
            "createdAt",
            "releasedAt",
        ]
        read_only_fields = fields


# =============================================================================
# Refunds
# =============================================================================


class RefundRequestSerializer(serializers.Serializer):
    """Request body for a manual refund."""

    paymentId = serializers.CharField(source="payment_id", max_length=64)
    amount = money_field(min_value=MIN_AMOUNT, required=False)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AutoRefundSerializer(serializers.Serializer):
    """Request body for a cancellation refund."""

    reason = serializers.CharField(required=False, allow_blank=True, default="")
    cancelledBy = serializers.CharField(
        source="cancelled_by",
        required=False,
        allow_blank=True,
        default="",
    )


class RefundOutcomeSerializer(serializers.Serializer):
    """Response for refunds (wraps RefundOutcome)."""

    refunded = serializers.BooleanField()
    refundId = serializers.CharField(source="refund_id")
    status = serializers.CharField()
    amount = money_field()
    providerDebited = money_field(source="provider_debited")


# =============================================================================
# Balances & Payouts
# =============================================================================


class BalanceSerializer(serializers.Serializer):
    """Provider balances (wraps BalanceSummary)."""

    providerId = serializers.CharField(source="provider_id")
    availableBalance = money_field(source="available_balance")
    pendingPayout = money_field(source="pending_payout")
    pendingBalance = money_field(source="pending_balance")
    totalEarnings = money_field(source="total_earnings")
    totalPayouts = money_field(source="total_payouts")


class PayoutCreateSerializer(serializers.Serializer):
    """
    Request body for a payout request.

    Account fields default to the provider's saved payout account.
    """

    providerId = serializers.CharField(source="provider_id", max_length=128)
    amount = money_field()
    accountMethod = serializers.CharField(
        source="account_method", max_length=20, required=False, default=""
    )
    accountNumber = serializers.CharField(
        source="account_number", max_length=64, required=False, default=""
    )
    accountName = serializers.CharField(
        source="account_name", max_length=128, required=False, default=""
    )


class PayoutRequestSerializer(serializers.ModelSerializer):
    """Payout request with its full audit trail."""

    providerId = serializers.CharField(source="provider_id")
    accountMethod = serializers.CharField(source="account_method")
    accountNumber = serializers.CharField(source="account_number")
    accountName = serializers.CharField(source="account_name")
    approvedBy = serializers.CharField(source="approved_by")
    referenceNumber = serializers.CharField(source="reference_number")
    failureReason = serializers.CharField(source="failure_reason")
    requestedAt = serializers.DateTimeField(source="requested_at")
    approvedAt = serializers.DateTimeField(source="approved_at")
    completedAt = serializers.DateTimeField(source="completed_at")
    failedAt = serializers.DateTimeField(source="failed_at")

    class Meta:
        model = PayoutRequest
        fields = [
            "id",
            "providerId",
            "amount",
            "status",
            "accountMethod",
            "accountNumber",
            "accountName",
            "approvedBy",
            "referenceNumber",
            "failureReason",
            "requestedAt",
            "approvedAt",
            "completedAt",
            "failedAt",
        ]
        read_only_fields = fields


class ApprovePayoutSerializer(serializers.Serializer):
    adminId = serializers.CharField(source="admin_id", required=False, default="")


class CompletePayoutSerializer(serializers.Serializer):
    referenceNumber = serializers.CharField(
        source="reference_number", required=False, allow_blank=True, default=""
    )


class FailPayoutSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AdminPayoutQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PayoutState.choices, required=False)


# =============================================================================
# Admin Reporting
# =============================================================================


class EarningsQuerySerializer(serializers.Serializer):
    """Optional inclusive date range for the earnings summary."""

    startDate = serializers.DateField(source="start_date", required=False)
    endDate = serializers.DateField(source="end_date", required=False)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"startDate": "startDate must not be after endDate"})
        return attrs


class EarningsSummarySerializer(serializers.Serializer):
    """Platform earnings (wraps EarningsSummary)."""

    totalRevenue = money_field(source="total_revenue")
    totalCommission = money_field(source="total_commission")
    transactionCount = serializers.IntegerField(source="transaction_count")
    pendingPayoutsAmount = money_field(source="pending_payouts_amount")
    pendingPayoutsCount = serializers.IntegerField(source="pending_payouts_count")
    completedPayoutsAmount = money_field(source="completed_payouts_amount")
    completedPayoutsCount = serializers.IntegerField(source="completed_payouts_count")


# =============================================================================
# Escrow
# =============================================================================


class EscrowReleaseRequestSerializer(serializers.Serializer):
    clientId = serializers.CharField(source="client_id", max_length=128)


class EscrowReleaseSerializer(serializers.Serializer):
    """Response for escrow release (wraps EscrowRelease)."""

    bookingId = serializers.UUIDField(source="booking.id")
    status = serializers.CharField(source="booking.status")
    paymentStatus = serializers.CharField(source="booking.payment_status")
    amountReleased = money_field(source="amount_released")
