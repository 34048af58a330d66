"""
Webhook handling for Flutterwave and Paystack.

Deliveries are verified against the raw body, recorded as WebhookEvent
rows and processed synchronously through the reconciliation service.

Usage:
    # In urls.py
    from payments.webhooks.views import flutterwave_webhook, paystack_webhook
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.verifier import (
    verify_flutterwave_signature,
    verify_paystack_signature,
    verify_webhook,
)

__all__ = [
    "dispatch_webhook",
    "register_handler",
    "verify_flutterwave_signature",
    "verify_paystack_signature",
    "verify_webhook",
]
