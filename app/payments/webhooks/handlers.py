"""
Handlers for PayMongo webhook event types.

The webhook view claims the event, then calls dispatch_webhook(), which
looks the event type up in WEBHOOK_HANDLERS. A handler returns a
ServiceResult: success marks the event processed, failure marks it failed
so a gateway redelivery runs it again. Event types without a handler are
acknowledged and ignored.

Handled types:
    source.chargeable   charge the source and settle its booking
    payment.paid        refresh the stored payment status
    payment.failed      mark the payment and its source failed

Usage:
    @register_handler("refund.updated")
    def handle_refund_updated(webhook_event: WebhookEvent) -> ServiceResult:
        ...
"""

from __future__ import annotations

import logging
from typing import Callable

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.services import ServiceResult

from payments.exceptions import InvalidStateTransitionError
from payments.models import Payment, PaymentSource, WebhookEvent
from payments.services import CheckoutService, SettlementService

logger = logging.getLogger(__name__)


# =============================================================================
# Registry
# =============================================================================


WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """Register the decorated function as the handler for event_type."""

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """Run the handler for the event's type; unknown types succeed as no-ops."""
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)
    log_extra = {"event_id": webhook_event.event_id, "event_type": webhook_event.event_type}

    if handler is None:
        logger.info("Ignoring webhook event type without handler", extra=log_extra)
        return ServiceResult.success(None)

    logger.info("Dispatching webhook event", extra=log_extra)
    return handler(webhook_event)


# =============================================================================
# Source Handlers
# =============================================================================


@register_handler("source.chargeable")
def handle_source_chargeable(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Charge an authorized source and settle its booking.

    The charge is created outside any database transaction. A source that
    already carries a payment ID (charged earlier by the client or by a
    previous attempt) is settled without charging again.

    Args:
        webhook_event: The WebhookEvent containing the event data

    Returns:
        ServiceResult with the SettlementOutcome, or failure when the
        source is unknown or the booking can no longer take payments
    """
    resource = webhook_event.get_resource()
    source_id = resource.get("id")

    if not source_id:
        logger.error(
            "source.chargeable: Could not extract source id",
            extra={"event_id": webhook_event.event_id},
        )
        return ServiceResult.failure(
            "Could not extract source id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    source = PaymentSource.objects.filter(source_id=source_id).first()
    if source is None:
        logger.warning(
            "PaymentSource not found for chargeable source",
            extra={"event_id": webhook_event.event_id, "source_id": source_id},
        )
        return ServiceResult.failure(
            f"PaymentSource not found: {source_id}",
            error_code="SOURCE_NOT_FOUND",
        )

    payment_id = source.payment_id
    if not payment_id:
        payment = CheckoutService.create_charge(source_id)
        payment_id = payment.payment_id

    try:
        outcome = SettlementService.settle_source(source, payment_id=payment_id)
    except InvalidStateTransitionError as exc:
        return ServiceResult.failure(exc.message, error_code=exc.error_code)

    logger.info(
        "source.chargeable processed",
        extra={
            "event_id": webhook_event.event_id,
            "source_id": source_id,
            "payment_id": payment_id,
            "branch": outcome.branch,
            "skipped": outcome.skipped,
        },
    )
    return ServiceResult.success(outcome)


# =============================================================================
# Payment Handlers
# =============================================================================


@register_handler("payment.paid")
def handle_payment_paid(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Record the gateway's confirmation that a payment is paid.

    Settlement already happened on source.chargeable; this only updates
    the Payment row.
    """
    resource = webhook_event.get_resource()
    payment_id = resource.get("id", "")
    status = resource.get("attributes", {}).get("status", "paid")

    updated = Payment.objects.filter(payment_id=payment_id).update(status=status)
    logger.info(
        "payment.paid received",
        extra={
            "event_id": webhook_event.event_id,
            "payment_id": payment_id,
            "known_payment": bool(updated),
        },
    )
    return ServiceResult.success(None)


@register_handler("payment.failed")
def handle_payment_failed(webhook_event: WebhookEvent) -> ServiceResult:
    """Mark the payment and its source as failed."""
    resource = webhook_event.get_resource()
    attributes = resource.get("attributes", {})
    payment_id = resource.get("id", "")
    source_id = (attributes.get("source") or {}).get("id", "")
    reason = attributes.get("failed_message") or attributes.get("failed_code") or ""

    with transaction.atomic():
        if payment_id:
            Payment.objects.filter(payment_id=payment_id).update(status="failed")

        source = PaymentSource.objects.select_for_update().filter(source_id=source_id).first()
        if source is not None:
            try:
                source.mark_failed(reason)
                source.save()
            except TransitionNotAllowed:
                logger.info(
                    "payment.failed for source that is already closed",
                    extra={"source_id": source_id, "source_status": source.status},
                )

    logger.warning(
        "payment.failed received",
        extra={
            "event_id": webhook_event.event_id,
            "payment_id": payment_id,
            "source_id": source_id,
            "reason": reason,
        },
    )
    return ServiceResult.success(None)
