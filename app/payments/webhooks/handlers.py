"""
Webhook event handlers for Flutterwave and Paystack events.

Handlers are registered per (provider, event type). Each receives the
recorded WebhookEvent and returns a ReconciliationResult. Unregistered
event types are acknowledged without action.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("paystack", "refund.processed")
    def handle_refund_processed(webhook_event):
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from payments.state_machines import PaymentProvider

if TYPE_CHECKING:
    from payments.models import WebhookEvent
    from payments.services.reconciliation_service import ReconciliationResult


logger = logging.getLogger(__name__)

NO_ACTION_MESSAGE = "Webhook received but no action required"


# =============================================================================
# Handler Registry
# =============================================================================


WEBHOOK_HANDLERS: dict[tuple[str, str], Callable[[WebhookEvent], ReconciliationResult]] = {}


def register_handler(provider: str, event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Args:
        provider: Provider tag (flutterwave / paystack)
        event_type: Provider event name (e.g. "charge.success")
    """

    def decorator(func: Callable[[WebhookEvent], ReconciliationResult]) -> Callable:
        WEBHOOK_HANDLERS[(str(provider), event_type)] = func
        logger.debug(f"Registered webhook handler for {provider}:{event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ReconciliationResult:
    """
    Route a recorded event to its handler.

    Events without a handler return an acknowledged, no-action result.
    """
    from payments.services.reconciliation_service import ReconciliationResult

    handler = WEBHOOK_HANDLERS.get((webhook_event.provider, webhook_event.event_type))

    if not handler:
        logger.info(
            f"No handler registered for {webhook_event.provider}:{webhook_event.event_type}",
            extra={"webhook_event_id": str(webhook_event.id)},
        )
        return ReconciliationResult.no_action(provider=webhook_event.provider)

    logger.info(
        f"Dispatching {webhook_event.provider}:{webhook_event.event_type} to handler",
        extra={"webhook_event_id": str(webhook_event.id)},
    )
    return handler(webhook_event)


# =============================================================================
# Payload Helpers
# =============================================================================


def event_data(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.get("data") if isinstance(payload, dict) else None
    return data if isinstance(data, dict) else {}


def order_id_from_metadata(metadata: Any) -> str | None:
    """
    Pull an order id out of provider metadata.

    Looks at ``orderId`` / ``order_id`` keys and at Paystack
    ``custom_fields`` entries named ``order_id``.
    """
    if not isinstance(metadata, dict):
        return None

    for key in ("orderId", "order_id"):
        if metadata.get(key):
            return str(metadata[key])

    for custom_field in metadata.get("custom_fields") or []:
        if isinstance(custom_field, dict) and custom_field.get("variable_name") == "order_id":
            value = custom_field.get("value")
            if value:
                return str(value)
    return None


def extract_event_identity(provider: str, payload: dict[str, Any]) -> tuple[str, str]:
    """
    Return ``(event_type, provider_event_id)`` for a parsed payload.

    Neither gateway sends a delivery id, so the event id is built from the
    event type and the provider's charge id (or reference when absent).
    """
    event_type = str(payload.get("event") or payload.get("event.type") or "unknown")
    data = event_data(payload)
    if provider == PaymentProvider.FLUTTERWAVE:
        charge_key = data.get("id") or data.get("tx_ref")
    else:
        charge_key = data.get("id") or data.get("reference")
    return event_type, f"{event_type}:{charge_key or 'unknown'}"


# =============================================================================
# Flutterwave Handlers
# =============================================================================


@register_handler(PaymentProvider.FLUTTERWAVE, "charge.completed")
def handle_flutterwave_charge_completed(webhook_event: WebhookEvent) -> ReconciliationResult:
    """
    Flutterwave charge.completed.

    ``data.status`` decides the path: successful runs the success path,
    failed/cancelled records a failure, anything else is acknowledged.
    """
    from payments.services.reconciliation_service import (
        ReconciliationResult,
        ReconciliationService,
    )

    data = event_data(webhook_event.payload)
    status = str(data.get("status") or "").lower()
    reference = data.get("tx_ref")

    if status == "successful":
        return ReconciliationService.process_success_event(
            provider=webhook_event.provider,
            reference=reference,
            raw_payload=webhook_event.payload,
            order_id_hint=order_id_from_metadata(data.get("meta") or data.get("meta_data")),
            amount_minor=_flutterwave_amount_minor(data),
        )

    if status in ("failed", "cancelled"):
        return ReconciliationService.process_failure_event(
            provider=webhook_event.provider,
            reference=reference,
            raw_payload=webhook_event.payload,
            reason=data.get("processor_response") or status,
        )

    return ReconciliationResult.no_action(provider=webhook_event.provider, reference=reference)


def _flutterwave_amount_minor(data: dict[str, Any]) -> int | None:
    from payments.money import to_minor_units

    if data.get("amount") is None:
        return None
    try:
        return to_minor_units(data["amount"])
    except ValueError:
        return None


# =============================================================================
# Paystack Handlers
# =============================================================================


@register_handler(PaymentProvider.PAYSTACK, "charge.success")
def handle_paystack_charge_success(webhook_event: WebhookEvent) -> ReconciliationResult:
    """Paystack charge.success; ``data.status`` must also read success."""
    from payments.services.reconciliation_service import (
        ReconciliationResult,
        ReconciliationService,
    )

    data = event_data(webhook_event.payload)
    reference = data.get("reference")

    if str(data.get("status") or "").lower() != "success":
        return ReconciliationResult.no_action(provider=webhook_event.provider, reference=reference)

    amount = data.get("amount")
    return ReconciliationService.process_success_event(
        provider=webhook_event.provider,
        reference=reference,
        raw_payload=webhook_event.payload,
        order_id_hint=order_id_from_metadata(data.get("metadata")),
        amount_minor=int(amount) if isinstance(amount, int) else None,
    )
