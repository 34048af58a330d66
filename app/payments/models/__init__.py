"""
Payment domain models.

- Payment: One initiated payment attempt, keyed by provider reference
- PaymentReference: Reference -> order mapping written before the provider call
- Refund: Money returned against a payment
- Transaction: Append-only audit ledger
- WebhookEvent: Receipt log of verified webhook deliveries
"""

from payments.models.payment import Payment
from payments.models.payment_reference import PaymentReference
from payments.models.refund import DEFAULT_REFUND_REASON, Refund
from payments.models.transaction import Transaction
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "DEFAULT_REFUND_REASON",
    "Payment",
    "PaymentReference",
    "Refund",
    "Transaction",
    "WebhookEvent",
]
