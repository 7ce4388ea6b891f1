"""
Payment-specific exceptions for payment operations.

This module provides the hierarchy of exceptions raised by the payments
app. Every exception carries the HTTP status it maps to (see
core.exceptions), so views simply let them propagate.

Exception Hierarchy:
    PaymentError (base for payment domain, 400)
    ├── PaymentNotFoundError - Booking/source/payment/payout lookups (404)
    └── PaymentValidationError - Invalid amounts, methods, fields (400)

    GatewayError - Payment gateway call failed (inherits ExternalServiceError, 500)
    WebhookSignatureError - Webhook authenticity check failed (inherits AuthenticationError, 401)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError, 400)
    EscrowReleaseDenied - Actor is not the booking client (inherits PermissionDeniedError, 403)

Usage:
    from payments.exceptions import GatewayError, InvalidStateTransitionError

    # Upstream gateway failure
    raise GatewayError(
        "Source amount is below the minimum",
        upstream_status=400,
        details={"operation": "create_source"},
    )

    # Invalid state transition
    raise InvalidStateTransitionError(
        "Cannot approve payout in 'completed' state",
        details={"current_state": "completed", "transition": "approve"},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    PermissionDeniedError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            CheckoutService.create_source(...)
        except PaymentError as e:
            logger.error(f"Payment operation failed: {e}")
            return Response(e.to_dict(), status=e.status_code)
    """

    default_error_code: str = "PAYMENT_ERROR"
    status_code: int = 400


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment entity cannot be found.

    Use for:
    - Booking lookup fails
    - PaymentSource / Payment lookup fails
    - PayoutRequest lookup fails
    - ProviderAccount lookup fails

    Example:
        payout = PayoutRequest.objects.filter(pk=payout_id).first()
        if not payout:
            raise PaymentNotFoundError(
                "Payout request not found",
                error_code="PAYOUT_NOT_FOUND",
                details={"payout_id": str(payout_id)},
            )
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"
    status_code: int = 404


class PaymentValidationError(PaymentError):
    """
    Raised when payment validation fails.

    Use for:
    - Invalid payment amount
    - Unsupported payment method
    - Payout below the minimum amount

    Example:
        if amount < MINIMUM_PAYOUT_AMOUNT:
            raise PaymentValidationError(
                "Minimum payout amount is 100",
                details={"amount": str(amount)},
            )
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(ExternalServiceError):
    """
    Raised when a payment gateway call fails.

    Any non-2xx response or transport failure surfaces as a GatewayError
    carrying the upstream error detail. The gateway is never retried by
    this app: callers decide whether to surface the failure or flag the
    record for manual handling (see RefundService).

    Attributes:
        upstream_status: HTTP status returned by the gateway (None for
            transport failures such as timeouts)
        upstream_detail: Error detail reported by the gateway
    """

    default_error_code: str = "GATEWAY_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        upstream_status: int | None = None,
        upstream_detail: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if upstream_detail:
            details["upstream_detail"] = upstream_detail
        super().__init__(message, error_code=error_code, details=details)
        self.upstream_status = upstream_status
        self.upstream_detail = upstream_detail


class WebhookSignatureError(AuthenticationError):
    """
    Raised when a webhook delivery fails signature verification.

    The webhook view responds 401 and performs no further processing.
    """

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


# =============================================================================
# State Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    This exception wraps django-fsm's TransitionNotAllowed to provide
    our standard error format with additional context.

    Example:
        from django_fsm import TransitionNotAllowed

        try:
            payout.approve()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot approve payout in '{payout.status}' state",
                details={
                    "current_state": payout.status,
                    "transition": "approve",
                },
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class EscrowReleaseDenied(PermissionDeniedError):
    """Raised when someone other than the booking client releases escrow."""

    default_error_code: str = "ESCROW_RELEASE_DENIED"
