"""
Pytest fixtures for webhook tests.

Usage:
    def test_delivery(post_webhook):
        response = post_webhook(chargeable_source_event("evt_1", "src_1"))
        assert response.status_code == 200
"""

import json

import pytest
from django.urls import reverse

from payments.webhooks.tests.signing import WEBHOOK_SECRET, signature_header


@pytest.fixture
def webhook_settings(settings):
    """Test-mode verifier with a configured secret and no tolerance."""
    settings.PAYMONGO_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.PAYMONGO_LIVE_MODE = False
    settings.PAYMONGO_WEBHOOK_TOLERANCE = 0
    settings.PAYMONGO_WEBHOOK_ALLOW_UNSIGNED = False
    return settings


@pytest.fixture
def post_webhook(client, webhook_settings):
    """
    POST a signed webhook body to the endpoint.

    Pass header= to override the signature header (None sends none).
    """
    url = reverse("payments:paymongo_webhook")
    unset = object()

    def _post(body, header=unset):
        raw = body if isinstance(body, str) else json.dumps(body)
        headers = {}
        if header is unset:
            headers["HTTP_PAYMONGO_SIGNATURE"] = signature_header(raw)
        elif header is not None:
            headers["HTTP_PAYMONGO_SIGNATURE"] = header
        return client.post(url, data=raw, content_type="application/json", **headers)

    return _post
