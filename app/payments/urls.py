"""
URL configuration for the payments app.

Routes:
    - payments/...   - Checkout, reconciliation, refunds, webhook
    - providers/...  - Provider balances
    - payouts/...    - Payout requests, history and admin actions
    - admin/...      - Admin payout list and earnings
    - escrow/...     - Escrow release

All routes are prefixed with /api/v1/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views
from payments.webhooks.views import paymongo_webhook

app_name = "payments"

urlpatterns = [
    # Checkout
    path("payments/sources", views.CreateSourceView.as_view(), name="create_source"),
    path("payments/sources/<str:source_id>", views.SourceDetailView.as_view(), name="source_detail"),
    path("payments/charges", views.CreateChargeView.as_view(), name="create_charge"),
    path("payments/reconcile/<uuid:booking_id>", views.ReconcileView.as_view(), name="reconcile"),
    path("payments/status/<uuid:booking_id>", views.PaymentStatusView.as_view(), name="payment_status"),
    path("payments/cash", views.CashPaymentView.as_view(), name="cash_payment"),
    # Refunds
    path("payments/refunds", views.RefundView.as_view(), name="refund"),
    path("payments/auto-refund/<uuid:booking_id>", views.AutoRefundView.as_view(), name="auto_refund"),
    # Webhook endpoints
    path("payments/webhook", paymongo_webhook, name="paymongo_webhook"),
    # Balances & payouts
    path("providers/<str:provider_id>/balance", views.ProviderBalanceView.as_view(), name="provider_balance"),
    path("payouts", views.PayoutRequestView.as_view(), name="request_payout"),
    path("payouts/<uuid:payout_id>/approve", views.ApprovePayoutView.as_view(), name="approve_payout"),
    path("payouts/<uuid:payout_id>/complete", views.CompletePayoutView.as_view(), name="complete_payout"),
    path("payouts/<uuid:payout_id>/fail", views.FailPayoutView.as_view(), name="fail_payout"),
    path("payouts/<str:provider_id>", views.PayoutHistoryView.as_view(), name="payout_history"),
    # Admin
    path("admin/payouts", views.AdminPayoutListView.as_view(), name="admin_payouts"),
    path("admin/earnings", views.AdminEarningsView.as_view(), name="admin_earnings"),
    # Escrow
    path("escrow/<uuid:booking_id>/release", views.EscrowReleaseView.as_view(), name="release_escrow"),
]
