"""
Payment admin configuration.

This file imports admin configurations from the ledger submodule
and registers payment domain models with the Django admin.
"""

from django.contrib import admin

from payments.ledger.admin import ProviderAccountAdmin, TransactionAdmin
from payments.models import Booking, Payment, PaymentSource, PayoutRequest, WebhookEvent

__all__ = [
    "BookingAdmin",
    "PaymentAdmin",
    "PaymentSourceAdmin",
    "PayoutRequestAdmin",
    "ProviderAccountAdmin",
    "TransactionAdmin",
    "WebhookEventAdmin",
]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """
    Admin configuration for Booking.

    Payment state is shown read-only; it only moves through services.
    """

    list_display = [
        "id",
        "client_id",
        "provider_id",
        "status",
        "payment_preference",
        "payment_status",
        "total_amount",
        "refunded",
        "refund_pending",
        "created_at",
    ]
    list_filter = ["status", "payment_preference", "payment_status", "refund_pending"]
    search_fields = ["id", "client_id", "provider_id", "refund_id"]
    readonly_fields = [
        "id",
        "status",
        "payment_status",
        "is_paid_upfront",
        "upfront_paid_amount",
        "paid",
        "paid_at",
        "refunded",
        "refund_amount",
        "refund_id",
        "refunded_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "client_id", "provider_id", "service_name", "status"),
            },
        ),
        (
            "Pricing",
            {
                "fields": (
                    "provider_price",
                    "provider_fixed_price",
                    "offered_price",
                    "total_amount",
                ),
            },
        ),
        (
            "Payment",
            {
                "fields": (
                    "payment_preference",
                    "payment_status",
                    "is_paid_upfront",
                    "upfront_paid_amount",
                    "paid",
                    "paid_at",
                    "payment_method",
                ),
            },
        ),
        (
            "Refund",
            {
                "fields": (
                    "refunded",
                    "refund_amount",
                    "refund_id",
                    "refunded_at",
                    "refund_pending",
                    "refund_in_progress",
                    "refund_error",
                ),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(PaymentSource)
class PaymentSourceAdmin(admin.ModelAdmin):
    """Admin configuration for PaymentSource."""

    list_display = [
        "source_id",
        "booking",
        "user_id",
        "amount",
        "method",
        "status",
        "payment_id",
        "refunded",
        "created_at",
    ]
    list_filter = ["status", "method", "refunded", "created_at"]
    search_fields = ["source_id", "payment_id", "booking__id", "user_id"]
    readonly_fields = ["id", "status", "created_at", "updated_at", "paid_at"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for sources (audit trail)."""
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["payment_id", "source", "amount", "status", "refunded", "created_at"]
    list_filter = ["status", "refunded"]
    search_fields = ["payment_id", "source__source_id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]


@admin.register(PayoutRequest)
class PayoutRequestAdmin(admin.ModelAdmin):
    """
    Admin configuration for PayoutRequest.

    Status changes go through the payout API so balances stay in step;
    the admin only shows the audit trail.
    """

    list_display = [
        "id",
        "provider_id",
        "amount",
        "status",
        "account_method",
        "requested_at",
        "approved_at",
        "completed_at",
        "failed_at",
    ]
    list_filter = ["status", "account_method", "requested_at"]
    search_fields = ["id", "provider_id", "reference_number", "account_number"]
    readonly_fields = [field.name for field in PayoutRequest._meta.fields]
    date_hierarchy = "requested_at"
    ordering = ["-requested_at"]

    def has_add_permission(self, request) -> bool:
        """Payouts are requested by providers through the API."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payouts (audit trail)."""
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Read-only view of received gateway events.

    Filter by status=failed to find events waiting for a redelivery.
    """

    list_display = ["event_id", "event_type", "status", "attempts", "processed_at", "created_at"]
    list_filter = ["status", "event_type"]
    search_fields = ["event_id"]
    readonly_fields = [field.name for field in WebhookEvent._meta.fields]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
