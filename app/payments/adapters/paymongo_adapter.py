"""
PayMongo API adapter for payment operations.

This module provides the PayMongoAdapter class which encapsulates all
payment gateway HTTP calls. All gateway calls go through this adapter to
ensure consistent error handling, timeouts, and observability.

Features:
- Configurable timeout on all API calls
- Translation of every non-2xx response or transport failure to GatewayError
- Structured logging with timing metrics
- Peso <-> centavo conversion at the wire boundary

The adapter never retries: a failed call is surfaced to the caller, which
decides whether to report it or flag the record for manual handling.

Configuration (via settings):
- PAYMONGO_SECRET_KEY: Secret API key (sk_test_xxx / sk_live_xxx)
- PAYMONGO_API_BASE: API base URL (default: https://api.paymongo.com/v1)
- PAYMONGO_TIMEOUT: API call timeout in seconds (default: 15)

Usage:
    from payments.adapters import PayMongoAdapter

    source = PayMongoAdapter.create_source(
        amount=Decimal("525.00"),
        method="gcash",
        success_url="https://app.example.com/payment/success?bookingId=...",
        failed_url="https://app.example.com/payment/failed?bookingId=...",
        metadata={"bookingId": str(booking.id)},
    )
    redirect_to(source.checkout_url)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import requests
from django.conf import settings

from payments.exceptions import GatewayError
from payments.ledger.types import to_money

DEFAULT_API_BASE = "https://api.paymongo.com/v1"
DEFAULT_TIMEOUT_SECONDS = 15
CURRENCY = "PHP"

# Client-facing method names accepted as aliases of gateway source types
SOURCE_TYPE_ALIASES = {"maya": "paymaya"}


# =============================================================================
# Conversion Helpers
# =============================================================================


def to_centavos(amount: Decimal) -> int:
    """Convert a peso amount to integer centavos (round half up)."""
    return int(to_money(amount) * 100)


def from_centavos(centavos: int | None) -> Decimal:
    """Convert integer centavos from the gateway back to pesos."""
    return to_money(Decimal(centavos or 0) / 100)


def normalize_source_type(method: str) -> str:
    """Map client method names onto gateway source types."""
    method = (method or "").lower()
    return SOURCE_TYPE_ALIASES.get(method, method)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SourceResult:
    """
    Result from source operations.

    Attributes:
        id: Source ID (src_xxx)
        status: Gateway status (pending, chargeable, paid, expired, cancelled)
        amount: Amount in pesos
        type: Source type (gcash, paymaya)
        checkout_url: URL the client is redirected to
        raw_response: Full gateway response (for debugging)
    """

    id: str
    status: str
    amount: Decimal
    type: str
    checkout_url: str = ""
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentResult:
    """
    Result from payment (charge) operations.

    Attributes:
        id: Payment ID (pay_xxx)
        status: Gateway status (paid, pending, failed)
        amount: Charged amount in pesos
        raw_response: Full gateway response
    """

    id: str
    status: str
    amount: Decimal
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    Result from refund operations.

    Attributes:
        id: Refund ID (ref_xxx)
        status: Gateway status (pending, succeeded, failed)
        amount: Refunded amount in pesos
        payment_id: Refunded payment ID
        raw_response: Full gateway response
    """

    id: str
    status: str
    amount: Decimal
    payment_id: str
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# PayMongo Adapter
# =============================================================================


class PayMongoAdapter:
    """
    Adapter for PayMongo API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from request threads and Celery workers.

    Usage:
        source = PayMongoAdapter.create_source(amount, "gcash", success_url, failed_url)
        payment = PayMongoAdapter.create_payment(source.id, amount, "Booking payment")
        refund = PayMongoAdapter.create_refund(payment.id, amount, "requested_by_customer")
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _api_base() -> str:
        return getattr(settings, "PAYMONGO_API_BASE", DEFAULT_API_BASE).rstrip("/")

    @staticmethod
    def _auth() -> tuple[str, str]:
        """Basic auth with the secret key as username and an empty password."""
        return (settings.PAYMONGO_SECRET_KEY, "")

    @staticmethod
    def _timeout() -> float:
        return getattr(settings, "PAYMONGO_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def create_source(
        cls,
        amount: Decimal,
        method: str,
        success_url: str,
        failed_url: str,
        metadata: dict[str, str] | None = None,
    ) -> SourceResult:
        """
        Create a checkout source (GCash / Maya).

        Args:
            amount: Amount in pesos
            method: gcash, paymaya or maya
            success_url: Redirect after the client authorizes the payment
            failed_url: Redirect after the client cancels or fails
            metadata: Metadata attached to the source

        Returns:
            SourceResult including the checkout URL

        Raises:
            GatewayError: Gateway rejected the request or was unreachable
        """
        source_type = normalize_source_type(method)
        payload = {
            "data": {
                "attributes": {
                    "amount": to_centavos(amount),
                    "currency": CURRENCY,
                    "type": source_type,
                    "redirect": {"success": success_url, "failed": failed_url},
                    "metadata": metadata or {},
                }
            }
        }

        data = cls._request(
            "POST",
            "/sources",
            json=payload,
            log_context={"operation": "create_source", "amount": str(amount), "type": source_type},
        )
        return cls._to_source_result(data)

    @classmethod
    def retrieve_source(cls, source_id: str) -> SourceResult:
        """
        Fetch a source's current state.

        Raises:
            GatewayError: Unknown source or gateway failure
        """
        data = cls._request(
            "GET",
            f"/sources/{source_id}",
            log_context={"operation": "retrieve_source", "source_id": source_id},
        )
        return cls._to_source_result(data)

    @classmethod
    def create_payment(
        cls,
        source_id: str,
        amount: Decimal,
        description: str = "",
    ) -> PaymentResult:
        """
        Charge a chargeable source.

        Args:
            source_id: Chargeable source ID
            amount: Amount in pesos
            description: Statement description

        Returns:
            PaymentResult with the created payment

        Raises:
            GatewayError: Source not chargeable or gateway failure
        """
        payload = {
            "data": {
                "attributes": {
                    "amount": to_centavos(amount),
                    "currency": CURRENCY,
                    "description": description or "Booking payment",
                    "source": {"id": source_id, "type": "source"},
                }
            }
        }

        data = cls._request(
            "POST",
            "/payments",
            json=payload,
            log_context={"operation": "create_payment", "source_id": source_id, "amount": str(amount)},
        )
        attributes = data.get("attributes", {})
        return PaymentResult(
            id=data.get("id", ""),
            status=attributes.get("status", ""),
            amount=from_centavos(attributes.get("amount")),
            raw_response=data,
        )

    @classmethod
    def create_refund(
        cls,
        payment_id: str,
        amount: Decimal,
        reason: str,
        notes: str = "",
    ) -> RefundResult:
        """
        Refund a payment.

        Args:
            payment_id: Payment to refund (pay_xxx)
            amount: Amount in pesos
            reason: One of the gateway's refund reasons
            notes: Free-text note stored with the refund

        Returns:
            RefundResult with refund details

        Raises:
            GatewayError: Refund rejected or gateway failure
        """
        attributes: dict[str, Any] = {
            "amount": to_centavos(amount),
            "payment_id": payment_id,
            "reason": reason,
        }
        if notes:
            attributes["notes"] = notes[:255]

        data = cls._request(
            "POST",
            "/refunds",
            json={"data": {"attributes": attributes}},
            log_context={
                "operation": "create_refund",
                "payment_id": payment_id,
                "amount": str(amount),
                "reason": reason,
            },
        )
        result_attributes = data.get("attributes", {})
        return RefundResult(
            id=data.get("id", ""),
            status=result_attributes.get("status", ""),
            amount=from_centavos(result_attributes.get("amount")),
            payment_id=result_attributes.get("payment_id", payment_id),
            raw_response=data,
        )

    # =========================================================================
    # Transport
    # =========================================================================

    @classmethod
    def _request(
        cls,
        method: str,
        path: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Perform an API call and return the response's `data` object.

        Raises:
            GatewayError: Transport failure or non-2xx response
        """
        logger = cls.get_logger()
        start_time = time.time()
        logger.info("Starting gateway operation", extra=log_context)

        try:
            response = requests.request(
                method,
                f"{cls._api_base()}{path}",
                json=json,
                auth=cls._auth(),
                headers={"Accept": "application/json"},
                timeout=cls._timeout(),
            )
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Gateway request failed",
                extra={**log_context, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise GatewayError(
                f"Payment gateway unreachable: {e}",
                error_code="GATEWAY_UNAVAILABLE",
                details={"operation": log_context.get("operation")},
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if not response.ok:
            cls._handle_error_response(response, log_context, duration_ms)

        logger.info(
            "Gateway operation completed",
            extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        try:
            return response.json().get("data") or {}
        except ValueError as e:
            raise GatewayError(
                "Payment gateway returned an invalid response",
                upstream_status=response.status_code,
                details={"operation": log_context.get("operation")},
            ) from e

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_error_response(
        cls,
        response: requests.Response,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate a non-2xx gateway response into GatewayError.

        The gateway reports errors as {"errors": [{"code", "detail"}]}; the
        first detail is carried as the upstream detail.

        Raises:
            GatewayError: Always
        """
        logger = cls.get_logger()

        detail = None
        code = None
        try:
            errors = response.json().get("errors") or []
            if errors:
                detail = errors[0].get("detail")
                code = errors[0].get("code")
        except ValueError:
            detail = response.text[:500] or None

        log_context = {
            **log_context,
            "duration_ms": duration_ms,
            "status_code": response.status_code,
            "gateway_code": code,
        }
        if response.status_code >= 500:
            logger.error("Gateway server error", extra=log_context)
        else:
            logger.warning("Gateway rejected request", extra=log_context)

        raise GatewayError(
            detail or f"Payment gateway error (HTTP {response.status_code})",
            upstream_status=response.status_code,
            upstream_detail=detail,
            details={"operation": log_context.get("operation"), "gateway_code": code},
        )

    # =========================================================================
    # Parsing
    # =========================================================================

    @staticmethod
    def _to_source_result(data: dict[str, Any]) -> SourceResult:
        attributes = data.get("attributes", {})
        return SourceResult(
            id=data.get("id", ""),
            status=attributes.get("status", ""),
            amount=from_centavos(attributes.get("amount")),
            type=attributes.get("type", ""),
            checkout_url=(attributes.get("redirect") or {}).get("checkout_url", ""),
            raw_response=data,
        )
