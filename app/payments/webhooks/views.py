"""
Webhook endpoint view for PayMongo.

The view:
1. Verifies the webhook signature (401 on failure)
2. Claims a provisional WebhookEvent row keyed by the gateway event ID
3. Skips replays of processed or in-flight events
4. Dispatches to the event handler
5. Finalizes the event as processed or failed

Effects are applied synchronously; the event row is claimed *before* any
effect so a replayed delivery can never apply them twice.

Usage:
    # In urls.py
    from payments.webhooks.views import paymongo_webhook

    urlpatterns = [
        path("payments/webhook", paymongo_webhook, name="paymongo_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.db import transaction
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.exceptions import WebhookSignatureError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import dispatch_webhook
from payments.webhooks.signature import WebhookVerifier

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def paymongo_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive and process PayMongo webhook events.

    Security:
    - Signature verification rejects spoofed deliveries (fails closed
      without a configured secret)
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - WebhookEvent.event_id is unique and claimed before effects
    - Processed or in-flight events return 200 with skipped=true
    - Failed events are run again on redelivery

    Returns:
        JsonResponse with status:
        - 200: Event processed, skipped, or rejected by its handler
        - 400: Malformed payload
        - 401: Invalid signature
        - 500: Unexpected processing error (the gateway will redeliver)

    Example Paymongo-Signature header:
        t=1614556800,te=xxx,li=
    """
    payload = request.body
    header = WebhookVerifier.header_from(request.headers)

    # Step 1: Verify signature
    try:
        WebhookVerifier().verify(payload, header)
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message, "error_code": e.error_code},
        )
        return JsonResponse(e.to_dict(), status=e.status_code)

    try:
        event_data = json.loads(payload)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return JsonResponse({"error": "Invalid payload"}, status=400)

    data = event_data.get("data") if isinstance(event_data, dict) else None
    event_id = (data or {}).get("id")
    event_type = ((data or {}).get("attributes") or {}).get("type")

    if not event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return JsonResponse({"error": "Invalid event"}, status=400)

    log_extra = {"event_id": event_id, "event_type": event_type}
    logger.info(f"Received webhook: {event_type}", extra=log_extra)

    # Step 2: Claim the event
    with transaction.atomic():
        webhook_event, created = WebhookEvent.objects.select_for_update().get_or_create(
            event_id=event_id,
            defaults={
                "event_type": event_type,
                "payload": event_data,
                "status": WebhookEventStatus.PROCESSING,
            },
        )

        # Step 3: Skip replays
        if not created:
            if webhook_event.status != WebhookEventStatus.FAILED:
                logger.info(
                    f"Webhook already {webhook_event.status}, skipping",
                    extra=log_extra,
                )
                return JsonResponse({"received": True, "skipped": True})

            # the verified redelivery replaces what was stored
            webhook_event.payload = event_data
            webhook_event.event_type = event_type
            webhook_event.mark_processing()
            webhook_event.save()
            logger.info(
                "Re-running failed webhook",
                extra={**log_extra, "attempts": webhook_event.attempts},
            )

    # Step 4: Dispatch
    try:
        result = dispatch_webhook(webhook_event)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()
        logger.exception(
            "Webhook processing failed with exception",
            extra={**log_extra, "error": error_msg},
        )
        return JsonResponse(
            {"received": True, "processed": False, "error": str(e)},
            status=500,
        )

    # Step 5: Finalize
    if result.success:
        webhook_event.mark_processed()
        webhook_event.save()
        logger.info("Webhook processed successfully", extra=log_extra)
        return JsonResponse({"received": True})

    error_msg = result.error or "Handler returned failure"
    webhook_event.mark_failed(error_msg)
    webhook_event.save()
    logger.warning(
        f"Webhook handler failed: {error_msg}",
        extra={**log_extra, "error": error_msg, "error_code": result.error_code},
    )
    return JsonResponse({"received": True, "processed": False, "error": error_msg})
