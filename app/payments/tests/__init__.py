"""
Tests for the payments app.

    test_models.py                 Booking, PaymentSource, PayoutRequest, WebhookEvent
    test_*_service.py              One module per service in payments/services/
    test_views.py                  REST endpoints
    test_tasks.py                  Celery tasks and collaborator dispatch
    test_scenarios.py              End-to-end journeys through the API

Adapter, ledger and webhook tests live beside their packages.

Usage:
    pytest app/payments
    pytest -m e2e
"""
