"""
DRF views for payments app.

This module provides API views for:
- Checkout (sources, charges, status lookup, cash payments)
- Manual reconciliation of missed webhooks
- Refunds
- Provider balances and payouts
- Admin payout management and earnings reporting
- Escrow release

Related files:
    - services/: CheckoutService, ReconciliationService, RefundService,
      PayoutService, EscrowService
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: Gateway webhook endpoint

Endpoints (prefixed with /api/v1/):
    POST payments/sources - Create checkout source
    GET  payments/sources/{id} - Live source state from the gateway
    POST payments/charges - Charge a source
    POST payments/reconcile/{booking_id} - Verify and process a missed payment
    GET  payments/status/{booking_id} - Latest payment record for a booking
    POST payments/refunds - Manual refund
    POST payments/auto-refund/{booking_id} - Cancellation refund
    POST payments/cash - Record cash payment
    GET  providers/{provider_id}/balance - Provider balances
    POST payouts - Request payout
    GET  payouts/{provider_id} - Provider payout history
    POST payouts/{id}/approve|complete|fail - Admin payout actions
    GET  admin/payouts - Admin payout list
    GET  admin/earnings - Admin earnings summary
    POST escrow/{booking_id}/release - Release escrow

Errors:
    Services raise BaseApplicationError subclasses; the project exception
    handler (core.exception_handler) turns them into responses.

Security:
    Authentication is handled upstream of this service; endpoints are open.
"""

from __future__ import annotations

import logging
from datetime import datetime, time

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.ledger.services import LedgerAccountant
from payments.services import (
    CheckoutService,
    EscrowService,
    PayoutService,
    ReconciliationService,
    RefundService,
)

from .serializers import (
    AdminPayoutQuerySerializer,
    ApprovePayoutSerializer,
    AutoRefundSerializer,
    BalanceSerializer,
    CashPaymentSerializer,
    CompletePayoutSerializer,
    CreateChargeSerializer,
    CreateSourceSerializer,
    EarningsQuerySerializer,
    EarningsSummarySerializer,
    EscrowReleaseRequestSerializer,
    EscrowReleaseSerializer,
    FailPayoutSerializer,
    GatewaySourceSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
    PayoutCreateSerializer,
    PayoutRequestSerializer,
    ReconcileResultSerializer,
    RefundOutcomeSerializer,
    RefundRequestSerializer,
    SourceCheckoutSerializer,
    TransactionSerializer,
)

logger = logging.getLogger(__name__)


class PaymentsAPIView(APIView):
    """Base view for payment endpoints."""

    permission_classes = [AllowAny]

    @staticmethod
    def validated(serializer_class, data) -> dict:
        serializer = serializer_class(data=data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


# =============================================================================
# Checkout
# =============================================================================


class CreateSourceView(PaymentsAPIView):
    """
    Create a GCash / Maya checkout source.

    POST /api/v1/payments/sources

    A pending source for the same booking and amount is returned with
    existing=true instead of opening a second checkout.
    """

    @extend_schema(
        operation_id="create_payment_source",
        summary="Create checkout source",
        request=CreateSourceSerializer,
        responses={
            201: SourceCheckoutSerializer,
            200: OpenApiResponse(SourceCheckoutSerializer, description="Existing pending source"),
            404: OpenApiResponse(description="Booking not found"),
            500: OpenApiResponse(description="Gateway error"),
        },
        tags=["Payments - Checkout"],
    )
    def post(self, request):
        data = self.validated(CreateSourceSerializer, request.data)
        checkout = CheckoutService.create_source(**data)
        return Response(
            SourceCheckoutSerializer(checkout).data,
            status=status.HTTP_200_OK if checkout.existing else status.HTTP_201_CREATED,
        )


class SourceDetailView(PaymentsAPIView):
    """
    Live source state.

    GET /api/v1/payments/sources/{source_id}
    """

    @extend_schema(
        operation_id="get_payment_source",
        summary="Get source from gateway",
        responses={200: GatewaySourceSerializer},
        tags=["Payments - Checkout"],
    )
    def get(self, request, source_id: str):
        source = CheckoutService.retrieve_source(source_id)
        return Response(GatewaySourceSerializer(source).data)


class CreateChargeView(PaymentsAPIView):
    """
    Charge a chargeable source.

    POST /api/v1/payments/charges
    """

    @extend_schema(
        operation_id="create_payment_charge",
        summary="Charge source",
        request=CreateChargeSerializer,
        responses={201: PaymentSerializer, 404: OpenApiResponse(description="Source not found")},
        tags=["Payments - Checkout"],
    )
    def post(self, request):
        data = self.validated(CreateChargeSerializer, request.data)
        payment = CheckoutService.create_charge(**data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class ReconcileView(PaymentsAPIView):
    """
    Verify and process a booking's payment when the webhook was missed.

    POST /api/v1/payments/reconcile/{booking_id}
    """

    @extend_schema(
        operation_id="reconcile_payment",
        summary="Reconcile missed payment",
        request=None,
        responses={
            200: ReconcileResultSerializer,
            404: OpenApiResponse(description="No payment found for this booking"),
        },
        tags=["Payments - Checkout"],
    )
    def post(self, request, booking_id):
        result = ReconciliationService.reconcile_booking(booking_id)
        return Response(ReconcileResultSerializer(result).data)


class PaymentStatusView(PaymentsAPIView):
    """
    Latest payment record for a booking.

    GET /api/v1/payments/status/{booking_id}
    """

    @extend_schema(
        operation_id="get_payment_status",
        summary="Get booking payment status",
        responses={200: PaymentStatusSerializer, 404: OpenApiResponse(description="No payment")},
        tags=["Payments - Checkout"],
    )
    def get(self, request, booking_id):
        source = CheckoutService.latest_source(booking_id)
        return Response(PaymentStatusSerializer(source).data)


class CashPaymentView(PaymentsAPIView):
    """
    Record a cash payment collected by the provider.

    POST /api/v1/payments/cash
    """

    @extend_schema(
        operation_id="record_cash_payment",
        summary="Record cash payment",
        request=CashPaymentSerializer,
        responses={
            201: TransactionSerializer,
            400: OpenApiResponse(description="Booking already settled"),
            404: OpenApiResponse(description="Booking not found"),
        },
        tags=["Payments - Checkout"],
    )
    def post(self, request):
        data = self.validated(CashPaymentSerializer, request.data)
        txn = CheckoutService.record_cash_payment(**data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Refunds
# =============================================================================


class RefundView(PaymentsAPIView):
    """
    Refund a known gateway payment.

    POST /api/v1/payments/refunds
    """

    @extend_schema(
        operation_id="create_refund",
        summary="Refund payment",
        request=RefundRequestSerializer,
        responses={200: RefundOutcomeSerializer, 404: OpenApiResponse(description="Unknown payment")},
        tags=["Payments - Refunds"],
    )
    def post(self, request):
        data = self.validated(RefundRequestSerializer, request.data)
        outcome = RefundService.refund_payment(**data)
        return Response(RefundOutcomeSerializer(outcome).data)


class AutoRefundView(PaymentsAPIView):
    """
    Refund a cancelled booking.

    POST /api/v1/payments/auto-refund/{booking_id}

    Returns refunded=false when there is nothing to refund. A gateway
    failure flags the booking refund_pending and responds 500.
    """

    @extend_schema(
        operation_id="auto_refund_booking",
        summary="Refund cancelled booking",
        request=AutoRefundSerializer,
        responses={
            200: RefundOutcomeSerializer,
            404: OpenApiResponse(description="Booking not found"),
            500: OpenApiResponse(description="Gateway refused the refund"),
        },
        tags=["Payments - Refunds"],
    )
    def post(self, request, booking_id):
        data = self.validated(AutoRefundSerializer, request.data)
        outcome = RefundService.auto_refund(booking_id, **data)
        return Response(RefundOutcomeSerializer(outcome).data)


# =============================================================================
# Balances & Payouts
# =============================================================================


class ProviderBalanceView(PaymentsAPIView):
    """
    Provider balances.

    GET /api/v1/providers/{provider_id}/balance
    """

    @extend_schema(
        operation_id="get_provider_balance",
        summary="Get provider balance",
        responses={200: BalanceSerializer, 404: OpenApiResponse(description="Provider not found")},
        tags=["Payouts"],
    )
    def get(self, request, provider_id: str):
        balance = LedgerAccountant.get_balance(provider_id)
        return Response(BalanceSerializer(balance).data)


class PayoutRequestView(PaymentsAPIView):
    """
    Request a payout.

    POST /api/v1/payouts
    """

    @extend_schema(
        operation_id="request_payout",
        summary="Request payout",
        request=PayoutCreateSerializer,
        responses={
            201: PayoutRequestSerializer,
            400: OpenApiResponse(description="Below minimum or insufficient balance"),
            404: OpenApiResponse(description="Provider not found"),
        },
        tags=["Payouts"],
    )
    def post(self, request):
        data = self.validated(PayoutCreateSerializer, request.data)
        payout = PayoutService.request_payout(**data)
        return Response(PayoutRequestSerializer(payout).data, status=status.HTTP_201_CREATED)


class PayoutHistoryView(PaymentsAPIView):
    """
    A provider's latest payouts.

    GET /api/v1/payouts/{provider_id}
    """

    @extend_schema(
        operation_id="list_provider_payouts",
        summary="Provider payout history",
        responses={200: PayoutRequestSerializer(many=True)},
        tags=["Payouts"],
    )
    def get(self, request, provider_id: str):
        payouts = PayoutService.payout_history(provider_id)
        return Response(PayoutRequestSerializer(payouts, many=True).data)


class ApprovePayoutView(PaymentsAPIView):
    """POST /api/v1/payouts/{payout_id}/approve"""

    @extend_schema(
        operation_id="approve_payout",
        summary="Approve payout",
        request=ApprovePayoutSerializer,
        responses={
            200: PayoutRequestSerializer,
            400: OpenApiResponse(description="Payout is not pending"),
            404: OpenApiResponse(description="Payout not found"),
        },
        tags=["Payouts - Admin"],
    )
    def post(self, request, payout_id):
        data = self.validated(ApprovePayoutSerializer, request.data)
        payout = PayoutService.approve_payout(payout_id, **data)
        return Response(PayoutRequestSerializer(payout).data)


class CompletePayoutView(PaymentsAPIView):
    """POST /api/v1/payouts/{payout_id}/complete"""

    @extend_schema(
        operation_id="complete_payout",
        summary="Complete payout",
        request=CompletePayoutSerializer,
        responses={
            200: PayoutRequestSerializer,
            400: OpenApiResponse(description="Payout is not approved"),
            404: OpenApiResponse(description="Payout not found"),
        },
        tags=["Payouts - Admin"],
    )
    def post(self, request, payout_id):
        data = self.validated(CompletePayoutSerializer, request.data)
        payout = PayoutService.complete_payout(payout_id, **data)
        return Response(PayoutRequestSerializer(payout).data)


class FailPayoutView(PaymentsAPIView):
    """POST /api/v1/payouts/{payout_id}/fail"""

    @extend_schema(
        operation_id="fail_payout",
        summary="Fail payout and restore balance",
        request=FailPayoutSerializer,
        responses={
            200: PayoutRequestSerializer,
            400: OpenApiResponse(description="Payout already completed or failed"),
            404: OpenApiResponse(description="Payout not found"),
        },
        tags=["Payouts - Admin"],
    )
    def post(self, request, payout_id):
        data = self.validated(FailPayoutSerializer, request.data)
        payout = PayoutService.fail_payout(payout_id, **data)
        return Response(PayoutRequestSerializer(payout).data)


class AdminPayoutListView(PaymentsAPIView):
    """GET /api/v1/admin/payouts"""

    @extend_schema(
        operation_id="admin_list_payouts",
        summary="List payouts",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by payout status",
                required=False,
            ),
        ],
        responses={200: PayoutRequestSerializer(many=True)},
        tags=["Payouts - Admin"],
    )
    def get(self, request):
        query = self.validated(AdminPayoutQuerySerializer, request.query_params)
        payouts = PayoutService.list_payouts(status=query.get("status"))
        return Response(PayoutRequestSerializer(payouts, many=True).data)


class AdminEarningsView(PaymentsAPIView):
    """GET /api/v1/admin/earnings"""

    @extend_schema(
        operation_id="admin_earnings_summary",
        summary="Platform earnings summary",
        parameters=[
            OpenApiParameter(name="startDate", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="endDate", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: EarningsSummarySerializer},
        tags=["Payouts - Admin"],
    )
    def get(self, request):
        query = self.validated(EarningsQuerySerializer, request.query_params)
        start = query.get("start_date")
        end = query.get("end_date")
        summary = LedgerAccountant.earnings_summary(
            start=timezone.make_aware(datetime.combine(start, time.min)) if start else None,
            end=timezone.make_aware(datetime.combine(end, time.max)) if end else None,
        )
        return Response(EarningsSummarySerializer(summary).data)


# =============================================================================
# Escrow
# =============================================================================


class EscrowReleaseView(PaymentsAPIView):
    """
    Release a booking's escrow to the provider.

    POST /api/v1/escrow/{booking_id}/release
    """

    @extend_schema(
        operation_id="release_escrow",
        summary="Release escrow",
        request=EscrowReleaseRequestSerializer,
        responses={
            200: EscrowReleaseSerializer,
            400: OpenApiResponse(description="Escrow not held or booking not awaiting completion"),
            403: OpenApiResponse(description="Not the booking's client"),
            404: OpenApiResponse(description="Booking not found"),
        },
        tags=["Escrow"],
    )
    def post(self, request, booking_id):
        data = self.validated(EscrowReleaseRequestSerializer, request.data)
        release = EscrowService.release(booking_id, **data)
        return Response(EscrowReleaseSerializer(release).data)
