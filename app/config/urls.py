"""
Root URLconf.

    /                  ReDoc (drf-spectacular)
    /schema/           OpenAPI schema
    /admin/            Django admin
    /health/           core.views.health_check
    /api/v1/...        payments.urls (checkout, webhook, ledger, payouts,
                       escrow; route table in that module)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# Mounted under /api/v1/
api_v1_patterns = [
    # Payments, payouts, escrow
    path("", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Load balancer health check
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Payments Admin"
admin.site.site_title = "Payments Admin Portal"
admin.site.index_title = "Bookings, payments and payouts"
