"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.
Payment and Refund states are driven through django-fsm transitions.

State Machines Overview:

Payment States:
    PENDING -> COMPLETED  (provider confirmed the charge)
    PENDING -> FAILED     (provider reported a failed charge)

Refund States:
    PENDING -> COMPLETED | FAILED | REJECTED  (all terminal)

Transaction ledger rows are append-only and never change status; a state
change is recorded as a new row.
"""

from django.db import models


class PaymentProvider(models.TextChoices):
    """Closed set of supported payment gateways."""

    FLUTTERWAVE = "flutterwave", "Flutterwave"
    PAYSTACK = "paystack", "Paystack"


class PaymentStatus(models.TextChoices):
    """
    States for the Payment record.

    Terminal states: COMPLETED, FAILED
    """

    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"


class RefundStatus(models.TextChoices):
    """
    States for the Refund record.

    Refunds are bookkeeping records awaiting external processing, so every
    state other than PENDING is set by an operator.
    """

    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    REJECTED = "REJECTED", "Rejected"


class TransactionStatus(models.TextChoices):
    """Status recorded on an audit ledger row."""

    PENDING = "PENDING", "Pending"
    SUCCESS = "SUCCESS", "Success"
    FAILED = "FAILED", "Failed"


class TransactionKind(models.TextChoices):
    """What a ledger row records."""

    PAYMENT = "PAYMENT", "Payment"
    REFUND = "REFUND", "Refund"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status of a received webhook delivery.

    PENDING -> PROCESSING -> PROCESSED | FAILED
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


class VerificationStatus(models.TextChoices):
    """Provider-agnostic outcome of a charge, as reported by the provider."""

    SUCCEEDED = "succeeded", "Succeeded"
    PENDING = "pending", "Pending"
    FAILED = "failed", "Failed"
