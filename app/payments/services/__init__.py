"""
Payment services for coordinating payment operations.

This module provides:
- CheckoutService: Gateway sources, charges, status lookup, cash payments
- SettlementService: Applies a paid source to its booking and the ledger
- ReconciliationService: Recovers payments whose webhook was missed
- EscrowService: Releases held escrow to the provider
- PayoutService: Provider withdrawal workflow
- RefundService: Automatic and manual refunds

Usage:
    from payments.services import CheckoutService

    checkout = CheckoutService.create_source(
        amount=Decimal("500.00"),
        booking_id=booking.id,
        user_id="client-1",
        method="gcash",
    )

    # Settle a source once the gateway reports it chargeable
    from payments.services import SettlementService

    outcome = SettlementService.settle_source(source, payment_id="pay_123")

    # Release escrow when the client confirms completion
    from payments.services import EscrowService

    EscrowService.release(booking.id, client_id=booking.client_id)
"""

from payments.services.checkout_service import CheckoutService, SourceCheckout
from payments.services.escrow_service import EscrowRelease, EscrowService
from payments.services.payout_service import PayoutService
from payments.services.reconciliation_service import ReconcileResult, ReconciliationService
from payments.services.refund_service import RefundOutcome, RefundService
from payments.services.settlement_service import SettlementOutcome, SettlementService

__all__ = [
    "CheckoutService",
    "EscrowRelease",
    "EscrowService",
    "PayoutService",
    "ReconcileResult",
    "ReconciliationService",
    "RefundOutcome",
    "RefundService",
    "SettlementOutcome",
    "SettlementService",
    "SourceCheckout",
]
