"""
Tests for PayMongo adapter.

Tests cover:
- Peso/centavo conversion
- Request construction (auth, URL, timeout, payload)
- Response parsing for sources, payments and refunds
- Error translation to GatewayError
"""

from decimal import Decimal

import pytest
import requests

from payments.adapters import (
    PayMongoAdapter,
    from_centavos,
    normalize_source_type,
    to_centavos,
)
from payments.adapters.tests.responses import build_response
from payments.exceptions import GatewayError


# =============================================================================
# Conversion Helpers
# =============================================================================


class TestCentavoConversion:
    """Tests for to_centavos() and from_centavos()."""

    def test_to_centavos(self):
        assert to_centavos(Decimal("525.00")) == 52500
        assert to_centavos(Decimal("0.01")) == 1

    def test_to_centavos_rounds_half_up(self):
        assert to_centavos(Decimal("10.005")) == 1001

    def test_from_centavos(self):
        assert from_centavos(52500) == Decimal("525.00")
        assert from_centavos(1) == Decimal("0.01")

    def test_from_centavos_handles_missing(self):
        assert from_centavos(None) == Decimal("0.00")


class TestNormalizeSourceType:
    def test_maya_alias(self):
        assert normalize_source_type("maya") == "paymaya"
        assert normalize_source_type("Maya") == "paymaya"

    def test_passthrough(self):
        assert normalize_source_type("gcash") == "gcash"
        assert normalize_source_type("paymaya") == "paymaya"


# =============================================================================
# Sources
# =============================================================================


class TestCreateSource:
    """Tests for PayMongoAdapter.create_source()."""

    def test_sends_centavos_and_redirects(self, mock_request, source_response):
        """Should POST the amount in centavos with both redirect URLs."""
        mock_request.return_value = build_response(200, source_response())

        PayMongoAdapter.create_source(
            amount=Decimal("525.00"),
            method="gcash",
            success_url="https://app.example.com/ok",
            failed_url="https://app.example.com/fail",
            metadata={"bookingId": "b-1"},
        )

        args, kwargs = mock_request.call_args
        assert args == ("POST", "https://api.paymongo.test/v1/sources")
        attributes = kwargs["json"]["data"]["attributes"]
        assert attributes["amount"] == 52500
        assert attributes["currency"] == "PHP"
        assert attributes["type"] == "gcash"
        assert attributes["redirect"] == {
            "success": "https://app.example.com/ok",
            "failed": "https://app.example.com/fail",
        }
        assert attributes["metadata"] == {"bookingId": "b-1"}
        assert kwargs["auth"] == ("sk_test_adapter", "")
        assert kwargs["timeout"] == 7

    def test_maya_maps_to_paymaya(self, mock_request, source_response):
        mock_request.return_value = build_response(200, source_response(type="paymaya"))

        PayMongoAdapter.create_source(Decimal("100"), "maya", "s", "f")

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert attributes["type"] == "paymaya"

    def test_parses_result(self, mock_request, source_response):
        """Should return pesos and the checkout URL."""
        mock_request.return_value = build_response(200, source_response())

        result = PayMongoAdapter.create_source(Decimal("525.00"), "gcash", "s", "f")

        assert result.id == "src_test123"
        assert result.status == "pending"
        assert result.amount == Decimal("525.00")
        assert result.type == "gcash"
        assert result.checkout_url == "https://test-sources.paymongo.com/sources?id=src_test123"


class TestRetrieveSource:
    """Tests for PayMongoAdapter.retrieve_source()."""

    def test_gets_source_by_id(self, mock_request, source_response):
        mock_request.return_value = build_response(200, source_response(status="chargeable"))

        result = PayMongoAdapter.retrieve_source("src_test123")

        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.paymongo.test/v1/sources/src_test123")
        assert kwargs["json"] is None
        assert result.status == "chargeable"

    def test_unknown_source(self, mock_request, error_response):
        mock_request.return_value = error_response(404, "resource_not_found", "No such source")

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.retrieve_source("src_missing")

        assert exc_info.value.upstream_status == 404
        assert exc_info.value.upstream_detail == "No such source"


# =============================================================================
# Payments & Refunds
# =============================================================================


class TestCreatePayment:
    """Tests for PayMongoAdapter.create_payment()."""

    def test_charges_source(self, mock_request, payment_response):
        mock_request.return_value = build_response(200, payment_response())

        result = PayMongoAdapter.create_payment("src_test123", Decimal("525.00"), "Booking b-1")

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert attributes["source"] == {"id": "src_test123", "type": "source"}
        assert attributes["amount"] == 52500
        assert attributes["description"] == "Booking b-1"
        assert result.id == "pay_test123"
        assert result.status == "paid"
        assert result.amount == Decimal("525.00")

    def test_default_description(self, mock_request, payment_response):
        mock_request.return_value = build_response(200, payment_response())

        PayMongoAdapter.create_payment("src_test123", Decimal("525.00"))

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert attributes["description"] == "Booking payment"


class TestCreateRefund:
    """Tests for PayMongoAdapter.create_refund()."""

    def test_refunds_payment(self, mock_request, refund_response):
        mock_request.return_value = build_response(200, refund_response())

        result = PayMongoAdapter.create_refund(
            "pay_test123", Decimal("525.00"), "requested_by_customer", notes="Client cancelled"
        )

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert attributes == {
            "amount": 52500,
            "payment_id": "pay_test123",
            "reason": "requested_by_customer",
            "notes": "Client cancelled",
        }
        assert result.id == "ref_test123"
        assert result.payment_id == "pay_test123"
        assert result.amount == Decimal("525.00")

    def test_omits_empty_notes(self, mock_request, refund_response):
        mock_request.return_value = build_response(200, refund_response())

        PayMongoAdapter.create_refund("pay_test123", Decimal("525.00"), "others")

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert "notes" not in attributes

    def test_truncates_long_notes(self, mock_request, refund_response):
        mock_request.return_value = build_response(200, refund_response())

        PayMongoAdapter.create_refund("pay_test123", Decimal("1"), "others", notes="x" * 400)

        attributes = mock_request.call_args.kwargs["json"]["data"]["attributes"]
        assert len(attributes["notes"]) == 255


# =============================================================================
# Error Translation
# =============================================================================


class TestErrorTranslation:
    """Tests for translating gateway failures to GatewayError."""

    def test_client_error_carries_first_detail(self, mock_request, error_response):
        mock_request.return_value = error_response(
            400, "parameter_below_minimum", "The amount cannot be less than 100.00."
        )

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.create_source(Decimal("50"), "gcash", "s", "f")

        exc = exc_info.value
        assert exc.status_code == 500
        assert exc.error_code == "GATEWAY_ERROR"
        assert exc.message == "The amount cannot be less than 100.00."
        assert exc.details["upstream_status"] == 400
        assert exc.details["gateway_code"] == "parameter_below_minimum"
        assert exc.details["operation"] == "create_source"

    def test_server_error_without_json(self, mock_request):
        mock_request.return_value = build_response(503, None, text="Service Unavailable")

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.retrieve_source("src_test123")

        assert exc_info.value.upstream_status == 503
        assert exc_info.value.upstream_detail == "Service Unavailable"

    def test_error_without_detail_uses_status(self, mock_request):
        mock_request.return_value = build_response(502, {"errors": []})

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.retrieve_source("src_test123")

        assert "HTTP 502" in exc_info.value.message

    def test_timeout_is_unavailable(self, mock_request):
        mock_request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.create_payment("src_test123", Decimal("525.00"))

        assert exc_info.value.error_code == "GATEWAY_UNAVAILABLE"
        assert exc_info.value.upstream_status is None
        assert isinstance(exc_info.value.__cause__, requests.Timeout)

    def test_connection_error_is_unavailable(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.create_refund("pay_test123", Decimal("1"), "others")

        assert exc_info.value.error_code == "GATEWAY_UNAVAILABLE"

    def test_invalid_success_body(self, mock_request):
        mock_request.return_value = build_response(200, None, text="<html>")

        with pytest.raises(GatewayError) as exc_info:
            PayMongoAdapter.retrieve_source("src_test123")

        assert exc_info.value.upstream_status == 200
