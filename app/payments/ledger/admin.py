"""
Admin for provider accounts and the transaction journal.

Journal rows are read-only here; balances change only through
LedgerAccountant, so the balance columns are read-only too.
"""

from django.contrib import admin

from .models import ProviderAccount, Transaction


@admin.register(ProviderAccount)
class ProviderAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for ProviderAccount.

    Payout account details are editable; balances are not.
    """

    list_display = [
        "provider_id",
        "available_balance",
        "pending_payout",
        "total_earnings",
        "total_payouts",
        "payout_method",
        "updated_at",
    ]
    list_filter = ["payout_method"]
    search_fields = ["provider_id", "payout_account_name", "payout_account_number"]
    readonly_fields = [
        "id",
        "available_balance",
        "pending_payout",
        "total_earnings",
        "total_payouts",
        "created_at",
        "updated_at",
    ]
    ordering = ["-updated_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "provider_id"),
            },
        ),
        (
            "Balances",
            {
                "fields": (
                    "available_balance",
                    "pending_payout",
                    "total_earnings",
                    "total_payouts",
                ),
            },
        ),
        (
            "Payout Account",
            {
                "fields": ("payout_method", "payout_account_number", "payout_account_name"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for provider accounts (audit trail)."""
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Transaction.

    Journal entries are IMMUTABLE - no add, change, or delete permissions.
    Corrections are made by recording new entries.
    """

    list_display = [
        "id",
        "booking",
        "provider_id",
        "type",
        "status",
        "amount",
        "provider_share",
        "platform_commission",
        "created_at",
    ]
    list_filter = ["type", "status", "payment_method", "created_at"]
    search_fields = ["id", "booking__id", "provider_id", "client_id", "reference"]
    readonly_fields = [field.name for field in Transaction._meta.fields]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        """Disable adding entries through admin."""
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        """Disable editing entries (immutability)."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable deleting entries (immutability)."""
        return False
