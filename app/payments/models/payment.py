"""
Payment model: one row per initiated payment attempt.

A Payment is created PENDING once the provider has accepted the
initialize call, and is keyed by the provider reference stored in
``transaction_id``. It moves to COMPLETED only through the
reconciliation success path.

Usage:
    from payments.models import Payment

    payment = Payment.objects.get(transaction_id=reference)
    payment.complete(provider_payload)
    payment.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.money import to_major_units
from payments.state_machines import PaymentProvider, PaymentStatus


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payment attempt against an order.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> FAILED

    Fields:
        order: Order being paid for
        user: Paying user, if authenticated at initialize time
        amount_minor: Amount in minor currency units (kobo)
        currency: ISO 4217 code
        provider: Gateway that issued the reference
        payment_method: Requested method (card, banktransfer, ...)
        transaction_id: Provider reference, unique across providers
        status: Current FSM state
        metadata: Provider payloads keyed by stage (initialize, verify, webhook)
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Order this payment settles",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )

    # ==========================================================================
    # Amount & Provider
    # ==========================================================================

    amount_minor = models.PositiveBigIntegerField(
        help_text="Payment amount in minor currency units (e.g. kobo)",
    )

    currency = models.CharField(
        max_length=3,
        default="NGN",
        help_text="ISO 4217 currency code",
    )

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
        db_index=True,
    )

    payment_method = models.CharField(
        max_length=50,
        blank=True,
        default="card",
    )

    transaction_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider reference for this attempt",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        help_text="Current state of the payment (managed by FSM)",
    )

    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True, default="")

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Raw provider payloads, keyed by stage",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["order", "status"], name="payment_order_status_idx"),
            models.Index(fields=["provider", "status"], name="payment_provider_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_minor__gt=0),
                name="payment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.transaction_id}, {self.status}, {self.amount} {self.currency})"

    @property
    def amount(self):
        """Amount in major units as a Decimal."""
        return to_major_units(self.amount_minor)

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    def record_payload(self, stage: str, payload) -> None:
        """Keep a provider payload under ``metadata[stage]``. Does not save."""
        metadata = dict(self.metadata or {})
        metadata[stage] = payload
        self.metadata = metadata

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.COMPLETED,
    )
    def complete(self, payload=None):
        """
        Mark the payment as paid.

        Transition: PENDING -> COMPLETED
        """
        self.completed_at = timezone.now()
        if payload is not None:
            self.record_payload("verification", payload)

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.FAILED,
    )
    def fail(self, reason: str | None = None, payload=None):
        """
        Mark the payment as failed at the provider.

        Transition: PENDING -> FAILED
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason
        if payload is not None:
            self.record_payload("verification", payload)
