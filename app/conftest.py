"""
Project-wide pytest hooks.

Django is set up once; tests are marked unit/integration/e2e by file name.
Fixtures live in the conftest.py next to the tests that use them.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_scenarios.py → e2e (full booking payment journeys)
    - test_views.py, test_*_service.py, test_tasks.py, etc. → integration
    - test_models.py, test_signature.py, test_paymongo_adapter.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_scenarios.py"]

    integration_patterns = [
        "test_views.py",
        "test_webhook_views.py",
        "test_webhook_handlers.py",
        "test_tasks.py",
        "test_ledger_services.py",
        "test_checkout_service.py",
        "test_settlement_service.py",
        "test_reconciliation_service.py",
        "test_escrow_service.py",
        "test_payout_service.py",
        "test_refund_service.py",
        "test_health_check.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_signature.py",
        "test_paymongo_adapter.py",
        "test_ledger_types.py",
        "test_exception_handler.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
