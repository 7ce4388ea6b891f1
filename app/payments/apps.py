"""
Django app for bookings payments: PayMongo checkout, provider ledger,
escrow and payouts.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
