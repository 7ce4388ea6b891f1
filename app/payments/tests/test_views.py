"""
Tests for payment API views.

These tests verify:
- Request parsing (camelCase bodies) and response shapes
- Status codes for success and each error class
- Wiring to the services
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status

from payments.exceptions import GatewayError
from payments.models import Booking, PayoutRequest
from payments.state_machines import (
    BookingStatus,
    PaymentSourceStatus,
    PayoutState,
    TransactionStatus,
    TransactionType,
)
from payments.tests.factories import (
    PaymentFactory,
    PaymentSourceFactory,
    PayoutRequestFactory,
    TransactionFactory,
    payment_result,
    refund_result,
    source_result,
)

if TYPE_CHECKING:
    from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def mock_dispatch():
    with patch("payments.dispatch.notify"), patch("payments.dispatch.award_points"):
        yield


# =============================================================================
# Checkout
# =============================================================================


@pytest.mark.django_db
class TestCreateSourceView:
    """Tests for POST /payments/sources."""

    def test_creates_source_returns_201(
        self, api_client: "APIClient", in_progress_booking, mock_gateway
    ):
        mock_gateway.create_source.return_value = source_result("src_api")

        response = api_client.post(
            reverse("payments:create_source"),
            {
                "amount": "500.00",
                "bookingId": str(in_progress_booking.id),
                "userId": in_progress_booking.client_id,
                "method": "gcash",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["sourceId"] == "src_api"
        assert response.data["checkoutUrl"].endswith("src_api")
        assert response.data["status"] == "pending"
        assert response.data["existing"] is False

    def test_existing_source_returns_200(
        self, api_client: "APIClient", pending_source, mock_gateway
    ):
        response = api_client.post(
            reverse("payments:create_source"),
            {
                "amount": "500.00",
                "bookingId": str(pending_source.booking_id),
                "userId": "client-1",
                "method": "gcash",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["sourceId"] == pending_source.source_id
        assert response.data["existing"] is True

    def test_redirect_targets(self, api_client: "APIClient", in_progress_booking, mock_gateway):
        mock_gateway.create_source.return_value = source_result("src_api")

        api_client.post(
            reverse("payments:create_source"),
            {
                "amount": "500.00",
                "bookingId": str(in_progress_booking.id),
                "userId": "client-1",
                "method": "maya",
                "redirectTargets": {"success": "https://app.example.com/done"},
            },
            format="json",
        )

        kwargs = mock_gateway.create_source.call_args.kwargs
        assert kwargs["success_url"] == "https://app.example.com/done"

    @pytest.mark.parametrize(
        "override",
        [{"amount": "0"}, {"method": "card"}, {"bookingId": "not-a-uuid"}, {"userId": ""}],
    )
    def test_invalid_body_returns_400(
        self, api_client: "APIClient", in_progress_booking, mock_gateway, override
    ):
        body = {
            "amount": "500.00",
            "bookingId": str(in_progress_booking.id),
            "userId": "client-1",
            "method": "gcash",
        }
        body.update(override)

        response = api_client.post(reverse("payments:create_source"), body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        mock_gateway.create_source.assert_not_called()

    def test_unknown_booking_returns_404(self, api_client: "APIClient", db, mock_gateway):
        response = api_client.post(
            reverse("payments:create_source"),
            {"amount": "500.00", "bookingId": str(uuid.uuid4()), "userId": "c", "method": "gcash"},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "BOOKING_NOT_FOUND"

    def test_gateway_error_returns_500(
        self, api_client: "APIClient", in_progress_booking, mock_gateway
    ):
        mock_gateway.create_source.side_effect = GatewayError(
            "The amount cannot be less than 100.00.", upstream_status=400
        )

        response = api_client.post(
            reverse("payments:create_source"),
            {
                "amount": "500.00",
                "bookingId": str(in_progress_booking.id),
                "userId": "client-1",
                "method": "gcash",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error"] == "The amount cannot be less than 100.00."
        assert response.data["details"]["upstream_status"] == 400


@pytest.mark.django_db
class TestChargeAndStatusViews:
    """Tests for charges, source lookup, reconcile and status."""

    def test_create_charge_returns_201(self, api_client: "APIClient", pending_source, mock_gateway):
        mock_gateway.create_payment.return_value = payment_result("pay_api")

        response = api_client.post(
            reverse("payments:create_charge"),
            {"sourceId": pending_source.source_id},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["paymentId"] == "pay_api"
        assert response.data["amount"] == "500.00"

    def test_source_detail(self, api_client: "APIClient", mock_gateway):
        mock_gateway.retrieve_source.return_value = source_result("src_1", status="chargeable")

        response = api_client.get(reverse("payments:source_detail", args=["src_1"]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "id": "src_1",
            "status": "chargeable",
            "amount": "500.00",
            "type": "gcash",
        }

    def test_reconcile(self, api_client: "APIClient", pending_source, mock_gateway):
        mock_gateway.retrieve_source.return_value = source_result(
            pending_source.source_id, status="pending"
        )

        response = api_client.post(reverse("payments:reconcile", args=[pending_source.booking_id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "status": "pending",
            "message": "Payment not yet completed",
            "bookingStatus": BookingStatus.IN_PROGRESS,
        }

    def test_reconcile_without_payment_returns_404(
        self, api_client: "APIClient", in_progress_booking, mock_gateway
    ):
        response = api_client.post(reverse("payments:reconcile", args=[in_progress_booking.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_payment_status(self, api_client: "APIClient", pending_source):
        response = api_client.get(
            reverse("payments:payment_status", args=[pending_source.booking_id])
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["sourceId"] == pending_source.source_id
        assert response.data["status"] == "pending"
        assert response.data["paidAt"] is None

    def test_cash_payment_returns_201(self, api_client: "APIClient", in_progress_booking):
        response = api_client.post(
            reverse("payments:cash_payment"),
            {"bookingId": str(in_progress_booking.id), "amount": "500.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["type"] == TransactionType.PAYMENT
        assert response.data["paymentMethod"] == "cash"
        assert response.data["providerShare"] == "476.00"
        assert response.data["platformCommission"] == "24.00"

    def test_duplicate_cash_payment_returns_400(self, api_client: "APIClient", in_progress_booking):
        body = {"bookingId": str(in_progress_booking.id), "amount": "500.00"}
        api_client.post(reverse("payments:cash_payment"), body, format="json")

        response = api_client.post(reverse("payments:cash_payment"), body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "ALREADY_SETTLED"


# =============================================================================
# Refunds
# =============================================================================


@pytest.mark.django_db
class TestRefundViews:
    """Tests for manual and automatic refund endpoints."""

    def test_manual_refund(self, api_client: "APIClient", mock_gateway):
        PaymentFactory(payment_id="pay_1", amount=Decimal("500.00"))
        mock_gateway.create_refund.return_value = refund_result("ref_1", "pay_1")

        response = api_client.post(
            reverse("payments:refund"),
            {"paymentId": "pay_1", "reason": "duplicate"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["refunded"] is True
        assert response.data["refundId"] == "ref_1"

    def test_auto_refund_nothing_to_refund(
        self, api_client: "APIClient", in_progress_booking, mock_gateway
    ):
        response = api_client.post(
            reverse("payments:auto_refund", args=[in_progress_booking.id]),
            {"reason": "Client cancelled", "cancelledBy": "client"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["refunded"] is False
        assert response.data["providerDebited"] == "0.00"

    def test_auto_refund_gateway_failure_returns_500(
        self, api_client: "APIClient", escrow_held_booking, mock_gateway
    ):
        PaymentSourceFactory(
            booking=escrow_held_booking,
            status=PaymentSourceStatus.PAID,
            payment_id="pay_escrow",
        )
        mock_gateway.create_refund.side_effect = GatewayError("Gateway unreachable")

        response = api_client.post(
            reverse("payments:auto_refund", args=[escrow_held_booking.id]),
            {},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert Booking.objects.get(pk=escrow_held_booking.pk).refund_pending is True


# =============================================================================
# Balances & Payouts
# =============================================================================


@pytest.mark.django_db
class TestBalanceAndPayoutViews:
    """Tests for provider balance and payout endpoints."""

    def test_balance(self, api_client: "APIClient", funded_account):
        response = api_client.get(
            reverse("payments:provider_balance", args=[funded_account.provider_id])
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["availableBalance"] == "1000.00"
        assert response.data["pendingPayout"] == "0.00"
        assert response.data["pendingBalance"] == "0.00"

    def test_balance_unknown_provider_returns_404(self, api_client: "APIClient", db):
        response = api_client.get(reverse("payments:provider_balance", args=["ghost"]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "ACCOUNT_NOT_FOUND"

    def test_request_payout_returns_201(self, api_client: "APIClient", funded_account):
        response = api_client.post(
            reverse("payments:request_payout"),
            {"providerId": funded_account.provider_id, "amount": "250.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == PayoutState.PENDING
        assert response.data["amount"] == "250.00"
        assert response.data["accountNumber"] == funded_account.payout_account_number

    def test_payout_below_minimum_returns_400(self, api_client: "APIClient", funded_account):
        response = api_client.post(
            reverse("payments:request_payout"),
            {"providerId": funded_account.provider_id, "amount": "50.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PAYOUT_BELOW_MINIMUM"

    def test_payout_insufficient_balance_returns_400(self, api_client: "APIClient", funded_account):
        response = api_client.post(
            reverse("payments:request_payout"),
            {"providerId": funded_account.provider_id, "amount": "5000.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INSUFFICIENT_BALANCE"
        assert response.data["details"]["available_balance"] == "1000.00"

    def test_payout_history(self, api_client: "APIClient", funded_account):
        PayoutRequestFactory(provider_id=funded_account.provider_id)

        response = api_client.get(
            reverse("payments:payout_history", args=[funded_account.provider_id])
        )

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1

    def test_admin_flow(self, api_client: "APIClient", funded_account):
        payout = PayoutRequestFactory(provider_id=funded_account.provider_id)

        approved = api_client.post(
            reverse("payments:approve_payout", args=[payout.id]),
            {"adminId": "admin-1"},
            format="json",
        )
        completed = api_client.post(
            reverse("payments:complete_payout", args=[payout.id]),
            {"referenceNumber": "GC-1234"},
            format="json",
        )

        assert approved.data["status"] == PayoutState.APPROVED
        assert approved.data["approvedBy"] == "admin-1"
        assert completed.data["status"] == PayoutState.COMPLETED
        assert completed.data["referenceNumber"] == "GC-1234"

    def test_complete_pending_payout_returns_400(self, api_client: "APIClient", funded_account):
        payout = PayoutRequestFactory(provider_id=funded_account.provider_id)

        response = api_client.post(
            reverse("payments:complete_payout", args=[payout.id]), {}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_STATE_TRANSITION"

    def test_fail_payout(self, api_client: "APIClient", funded_account):
        payout = PayoutRequestFactory(
            provider_id=funded_account.provider_id, amount=Decimal("200.00")
        )

        response = api_client.post(
            reverse("payments:fail_payout", args=[payout.id]),
            {"reason": "Invalid account"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["failureReason"] == "Invalid account"
        assert PayoutRequest.objects.get(pk=payout.pk).status == PayoutState.FAILED

    def test_unknown_payout_returns_404(self, api_client: "APIClient", db):
        response = api_client.post(
            reverse("payments:approve_payout", args=[uuid.uuid4()]), {}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Admin Reporting
# =============================================================================


@pytest.mark.django_db
class TestAdminViews:
    """Tests for admin payout list and earnings."""

    def test_admin_payouts_filtered(self, api_client: "APIClient"):
        PayoutRequestFactory()
        PayoutRequestFactory(status=PayoutState.COMPLETED)

        response = api_client.get(reverse("payments:admin_payouts"), {"status": "completed"})

        assert response.status_code == status.HTTP_200_OK
        assert [p["status"] for p in response.data] == ["completed"]

    def test_admin_payouts_invalid_status(self, api_client: "APIClient", db):
        response = api_client.get(reverse("payments:admin_payouts"), {"status": "lost"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_admin_earnings(self, api_client: "APIClient", db):
        TransactionFactory()
        TransactionFactory(type=TransactionType.ESCROW_PAYMENT, status=TransactionStatus.HELD)

        response = api_client.get(reverse("payments:admin_earnings"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["totalRevenue"] == "525.00"
        assert response.data["totalCommission"] == "25.00"
        assert response.data["transactionCount"] == 1

    def test_admin_earnings_date_range(self, api_client: "APIClient", db):
        TransactionFactory()

        response = api_client.get(
            reverse("payments:admin_earnings"),
            {"startDate": "2000-01-01", "endDate": "2000-01-31"},
        )

        assert response.data["transactionCount"] == 0

    def test_admin_earnings_inverted_range(self, api_client: "APIClient", db):
        response = api_client.get(
            reverse("payments:admin_earnings"),
            {"startDate": "2024-02-01", "endDate": "2024-01-01"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Escrow
# =============================================================================


@pytest.mark.django_db
class TestEscrowReleaseView:
    """Tests for POST /escrow/{booking_id}/release."""

    def test_release(self, api_client: "APIClient", escrow_held_booking):
        TransactionFactory(
            booking=escrow_held_booking,
            type=TransactionType.ESCROW_PAYMENT,
            status=TransactionStatus.HELD,
        )

        response = api_client.post(
            reverse("payments:release_escrow", args=[escrow_held_booking.id]),
            {"clientId": escrow_held_booking.client_id},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == BookingStatus.COMPLETED
        assert response.data["paymentStatus"] == "released"
        assert response.data["amountReleased"] == "500.00"

    def test_release_by_other_user_returns_403(self, api_client: "APIClient", escrow_held_booking):
        response = api_client.post(
            reverse("payments:release_escrow", args=[escrow_held_booking.id]),
            {"clientId": "someone-else"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_release_requires_client_id(self, api_client: "APIClient", escrow_held_booking):
        response = api_client.post(
            reverse("payments:release_escrow", args=[escrow_held_booking.id]), {}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
