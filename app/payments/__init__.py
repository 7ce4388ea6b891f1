"""
Payments app for PayMongo checkout, escrow and provider payouts.

This app handles:
- Checkout sources and charges through the PayMongo gateway
- Webhook verification and idempotent event processing
- Booking settlement (escrow, upfront hold, pay-later, additional charges)
- Provider balances, payout requests and refunds

Usage:
    from payments.services import CheckoutService, EscrowService

    # Start a GCash checkout
    checkout = CheckoutService.create_source(amount, booking_id, user_id, "gcash")

    # Client confirms completion
    EscrowService.release(booking_id, client_id)
"""
