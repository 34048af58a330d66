"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    PaymentProvider,
    PaymentStatus,
    RefundStatus,
    TransactionKind,
    TransactionStatus,
    VerificationStatus,
    WebhookEventStatus,
)

__all__ = [
    "PaymentProvider",
    "PaymentStatus",
    "RefundStatus",
    "TransactionKind",
    "TransactionStatus",
    "VerificationStatus",
    "WebhookEventStatus",
]
