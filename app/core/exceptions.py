"""
Application error hierarchy.

Every error a service raises on purpose derives from BaseApplicationError.
Each class carries the HTTP status the API answers with and a default
machine-readable code; call sites pass a more specific code where the
client needs to tell failures apart.

    BaseApplicationError            500  APPLICATION_ERROR
    ├── ValidationError             400  VALIDATION_ERROR
    ├── AuthenticationError         401  AUTHENTICATION_FAILED
    ├── PermissionDeniedError       403  PERMISSION_DENIED
    ├── NotFoundError               404  NOT_FOUND
    ├── ConflictError               400  CONFLICT
    └── ExternalServiceError        502  EXTERNAL_SERVICE_ERROR

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Payout not found",
        error_code="PAYOUT_NOT_FOUND",
        details={"payout_id": str(payout_id)},
    )

DRF views let these propagate; core.exception_handler renders them with
to_dict() and status_code. Plain Django views (the webhook endpoint) call
to_dict() themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base class for application errors.

    Attributes:
        message: Human-readable description
        error_code: Machine-readable code
        details: Extra context returned to the client
        status_code: HTTP status for API responses
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Response body for this error.

        Example:
            {
                "error": "Minimum payout amount is PHP 100.00",
                "error_code": "PAYOUT_BELOW_MINIMUM",
                "details": {"amount": "50.00", "minimum": "100.00"}
            }
        """
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"error_code={self.error_code!r}, details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """Request values that break a business rule (amounts, methods)."""

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 400


class AuthenticationError(BaseApplicationError):
    """
    Request credentials could not be verified.

    Used for credentials inside the request itself, such as the signature
    on a webhook delivery.
    """

    default_error_code: str = "AUTHENTICATION_FAILED"
    status_code: int = 401


class NotFoundError(BaseApplicationError):
    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class PermissionDeniedError(BaseApplicationError):
    """The acting user may not perform the operation on this resource."""

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    The resource's current state does not allow the operation.

    Covers duplicate settlements, disallowed transitions and failed
    balance checks. Clients treat these as bad requests, hence 400.
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 400


class ExternalServiceError(BaseApplicationError):
    """A call to a third-party service failed or answered unexpectedly."""

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 502
