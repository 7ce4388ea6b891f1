"""
Payment adapters for external services.

All payment gateway API calls go through these adapters to ensure
consistent error handling, timeouts and observability.

Usage:
    from payments.adapters import PayMongoAdapter

    result = PayMongoAdapter.retrieve_source("src_123")
    if result.status == "chargeable":
        ...
"""

from payments.adapters.paymongo_adapter import (
    PaymentResult,
    PayMongoAdapter,
    RefundResult,
    SourceResult,
    from_centavos,
    normalize_source_type,
    to_centavos,
)

__all__ = [
    "PayMongoAdapter",
    "PaymentResult",
    "RefundResult",
    "SourceResult",
    "from_centavos",
    "normalize_source_type",
    "to_centavos",
]
