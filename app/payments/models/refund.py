"""
Refund model for money owed back to a customer.

Refunds are bookkeeping records: initiating one creates a PENDING row
and a ledger entry, and an operator later marks it COMPLETED, FAILED or
REJECTED once the money has (or has not) moved at the provider.

Usage:
    from payments.models import Refund

    refund = Refund.objects.create(payment=payment, amount_minor=250000)

    refund.complete()
    refund.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.money import to_major_units
from payments.state_machines import RefundStatus

DEFAULT_REFUND_REASON = "Customer request"


class Refund(UUIDPrimaryKeyMixin, BaseModel):
    """
    Money returned against a completed payment.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> FAILED
        PENDING -> REJECTED

    Note:
        A payment can carry several partial refunds. The sum of
        non-failed, non-rejected refunds never exceeds the payment amount;
        RefundService enforces this when a refund is initiated.
    """

    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Payment being refunded",
    )

    amount_minor = models.PositiveBigIntegerField(
        help_text="Refund amount in minor currency units",
    )

    currency = models.CharField(max_length=3, default="NGN")

    reason = models.CharField(
        max_length=255,
        default=DEFAULT_REFUND_REASON,
        help_text="Reason for the refund",
    )

    status = FSMField(
        default=RefundStatus.PENDING,
        choices=RefundStatus.choices,
        db_index=True,
        help_text="Current state of the refund (managed by FSM)",
    )

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_refunds",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the refund left the PENDING state",
    )

    failure_reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund"
        verbose_name_plural = "Refunds"
        indexes = [
            models.Index(fields=["payment", "status"], name="refund_payment_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_minor__gt=0),
                name="refund_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Refund({self.id}, {self.status}, {self.amount} {self.currency})"

    @property
    def amount(self):
        return to_major_units(self.amount_minor)

    @property
    def is_pending(self) -> bool:
        return self.status == RefundStatus.PENDING

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.COMPLETED,
    )
    def complete(self):
        """Money returned to the customer."""
        self.processed_at = timezone.now()

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """Provider could not return the money."""
        self.processed_at = timezone.now()
        if reason:
            self.failure_reason = reason

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.REJECTED,
    )
    def reject(self, reason: str | None = None):
        """Refund request declined by an operator."""
        self.processed_at = timezone.now()
        if reason:
            self.failure_reason = reason
