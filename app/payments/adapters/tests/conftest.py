"""
Pytest fixtures for PayMongo adapter tests.

This module provides fixtures for testing the PayMongo adapter, including
mock HTTP responses in the gateway's JSON:API shape.

Sections:
    - Mock Response Fixtures
    - Mock Transport Fixtures
"""

from typing import Any
from unittest.mock import patch

import pytest

from payments.adapters.tests.responses import build_response


# =============================================================================
# Mock Response Fixtures
# =============================================================================


@pytest.fixture
def source_response():
    """Create a source response body."""

    def _create(
        id: str = "src_test123",
        status: str = "pending",
        amount: int = 52500,
        type: str = "gcash",
        checkout_url: str = "https://test-sources.paymongo.com/sources?id=src_test123",
    ) -> dict[str, Any]:
        return {
            "data": {
                "id": id,
                "type": "source",
                "attributes": {
                    "amount": amount,
                    "currency": "PHP",
                    "status": status,
                    "type": type,
                    "redirect": {
                        "checkout_url": checkout_url,
                        "success": "https://app.example.com/payment/success",
                        "failed": "https://app.example.com/payment/failed",
                    },
                },
            }
        }

    return _create


@pytest.fixture
def payment_response():
    """Create a payment response body."""

    def _create(id: str = "pay_test123", status: str = "paid", amount: int = 52500):
        return {
            "data": {
                "id": id,
                "type": "payment",
                "attributes": {"amount": amount, "currency": "PHP", "status": status},
            }
        }

    return _create


@pytest.fixture
def refund_response():
    """Create a refund response body."""

    def _create(
        id: str = "ref_test123",
        status: str = "pending",
        amount: int = 52500,
        payment_id: str = "pay_test123",
    ):
        return {
            "data": {
                "id": id,
                "type": "refund",
                "attributes": {"amount": amount, "status": status, "payment_id": payment_id},
            }
        }

    return _create


@pytest.fixture
def error_response():
    """Create a gateway error response."""

    def _create(status_code: int = 400, code: str = "parameter_invalid", detail: str = "Invalid"):
        return build_response(
            status_code,
            {"errors": [{"code": code, "detail": detail}]},
        )

    return _create


# =============================================================================
# Mock Transport Fixtures
# =============================================================================


@pytest.fixture
def mock_request(settings):
    """
    Mock requests.request with test credentials configured.

    Tests set mock_request.return_value to a build_response(...) result.
    """
    settings.PAYMONGO_SECRET_KEY = "sk_test_adapter"
    settings.PAYMONGO_API_BASE = "https://api.paymongo.test/v1/"
    settings.PAYMONGO_TIMEOUT = 7
    with patch("payments.adapters.paymongo_adapter.requests.request") as mock:
        yield mock
