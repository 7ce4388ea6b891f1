"""
Service layer base classes.

Services hold the business rules; views translate HTTP into service calls
and models hold data. Two ways of reporting an outcome are used:

    - Raise a core.exceptions error for anything the API should turn into
      an error response (unknown booking, payout below minimum, ...)
    - Return a ServiceResult where the caller branches on the outcome
      itself, as the webhook dispatcher does for each handler

Usage:
    from core.services import BaseService, ServiceResult

    class EscrowService(BaseService):
        @classmethod
        def release(cls, booking_id, client_id):
            ...
            cls.get_logger().info("Escrow released", extra={"booking_id": str(booking_id)})

    def handle_payment_paid(webhook_event) -> ServiceResult:
        if not payment_id:
            return ServiceResult.failure("Missing payment ID", error_code="INVALID_WEBHOOK_PAYLOAD")
        return ServiceResult.success(None)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation that the caller inspects.

    Attributes:
        success: Whether the operation succeeded
        data: Result payload on success
        error: Human-readable reason on failure
        error_code: Machine-readable reason on failure
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Build a failed result.

        Example:
            return ServiceResult.failure(
                "Payment source not found",
                error_code="SOURCE_NOT_FOUND",
            )
        """
        return cls(success=False, error=error, error_code=error_code)

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless services.

    Services expose classmethods only. Each gets a logger named after its
    module and class so log lines can be filtered per service.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")
