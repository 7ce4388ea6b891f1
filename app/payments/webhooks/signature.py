"""
Webhook signature verification for PayMongo.

PayMongo signs each delivery with HMAC-SHA256 over "{timestamp}.{raw_body}"
and sends the result in a header of the form:

    Paymongo-Signature: t=1614556800,te=<test signature>,li=<live signature>

Only the segment matching the account mode is checked: `li` when
PAYMONGO_LIVE_MODE is on, `te` otherwise.

Usage:
    from payments.webhooks.signature import WebhookVerifier

    WebhookVerifier().verify(request.body, request.headers.get("Paymongo-Signature"))
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time

from django.conf import settings

from payments.exceptions import WebhookSignatureError

logger = logging.getLogger(__name__)


SIGNATURE_HEADERS = ("Paymongo-Signature", "X-Gateway-Signature")


def parse_signature_header(header: str) -> dict[str, str]:
    """
    Split a signature header into its key/value segments.

    Malformed segments (no "=") are ignored.
    """
    parts: dict[str, str] = {}
    for segment in header.split(","):
        key, sep, value = segment.strip().partition("=")
        if sep and key:
            parts[key] = value
    return parts


def compute_signature(secret: str, timestamp: str, payload: bytes | str) -> str:
    """
    Hex HMAC-SHA256 of "{timestamp}.{payload}" keyed by the webhook secret.

    The body is signed as raw bytes; it need not be valid UTF-8.
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    message = timestamp.encode("utf-8", "surrogateescape") + b"." + payload
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class WebhookVerifier:
    """
    Authenticates gateway webhook deliveries.

    Verification fails closed: without a configured secret every delivery
    is rejected, unless PAYMONGO_WEBHOOK_ALLOW_UNSIGNED is set for local
    development.
    """

    def __init__(
        self,
        secret: str | None = None,
        live_mode: bool | None = None,
        tolerance: int | None = None,
        allow_unsigned: bool | None = None,
    ):
        self.secret = secret if secret is not None else settings.PAYMONGO_WEBHOOK_SECRET
        self.live_mode = live_mode if live_mode is not None else settings.PAYMONGO_LIVE_MODE
        self.tolerance = (
            tolerance if tolerance is not None else settings.PAYMONGO_WEBHOOK_TOLERANCE
        )
        self.allow_unsigned = (
            allow_unsigned
            if allow_unsigned is not None
            else settings.PAYMONGO_WEBHOOK_ALLOW_UNSIGNED
        )

    @staticmethod
    def header_from(headers) -> str:
        """Read the signature header, preferring the gateway's own name."""
        for name in SIGNATURE_HEADERS:
            value = headers.get(name)
            if value:
                return value
        return ""

    def verify(self, payload: bytes | str, header: str | None) -> None:
        """
        Verify a webhook delivery.

        Args:
            payload: Raw request body, exactly as received
            header: Signature header value

        Raises:
            WebhookSignatureError: If the delivery cannot be authenticated
        """
        if not self.secret:
            if self.allow_unsigned:
                logger.warning("Webhook secret not configured, accepting unsigned delivery")
                return
            logger.error("Webhook secret not configured, rejecting delivery")
            raise WebhookSignatureError(
                "Webhook secret not configured",
                error_code="WEBHOOK_SECRET_MISSING",
            )

        if not header:
            raise WebhookSignatureError(
                "Missing signature header",
                error_code="SIGNATURE_MISSING",
            )

        parts = parse_signature_header(header)
        timestamp = parts.get("t")
        if not timestamp:
            raise WebhookSignatureError(
                "Signature header has no timestamp",
                error_code="SIGNATURE_MALFORMED",
            )

        segment = "li" if self.live_mode else "te"
        received = parts.get(segment)
        if not received:
            raise WebhookSignatureError(
                f"Signature header has no '{segment}' signature",
                error_code="SIGNATURE_MALFORMED",
            )

        if self.tolerance:
            try:
                age = abs(time.time() - int(timestamp))
            except ValueError:
                raise WebhookSignatureError(
                    "Signature timestamp is not an integer",
                    error_code="SIGNATURE_MALFORMED",
                )
            if age > self.tolerance:
                raise WebhookSignatureError(
                    "Signature timestamp outside tolerance",
                    error_code="SIGNATURE_EXPIRED",
                    details={"age_seconds": int(age), "tolerance": self.tolerance},
                )

        expected = compute_signature(self.secret, timestamp, payload)
        # header values may hold any characters; compare as bytes
        if not hmac.compare_digest(
            expected.encode("ascii"), received.encode("utf-8", "surrogateescape")
        ):
            raise WebhookSignatureError(
                "Signature mismatch",
                error_code="SIGNATURE_MISMATCH",
            )
