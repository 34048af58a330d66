"""
Append-only audit ledger of payment and refund events.

Each state change observed for a reference is recorded as a new row.
Existing rows are never updated or deleted.
"""

from __future__ import annotations

from django.db import models

from core.exceptions import ConflictError
from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.money import to_major_units
from payments.state_machines import (
    PaymentProvider,
    TransactionKind,
    TransactionStatus,
)


class Transaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    One ledger entry.

    Fields:
        reference: Payment reference the entry belongs to
        provider: Gateway tag
        kind: PAYMENT or REFUND
        status: PENDING, SUCCESS or FAILED at the time of recording
        amount_minor: Amount in minor units
        order: Order, when known
        refund: Refund, for REFUND entries
    """

    reference = models.CharField(max_length=255, db_index=True)

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
    )

    kind = models.CharField(
        max_length=10,
        choices=TransactionKind.choices,
        default=TransactionKind.PAYMENT,
    )

    status = models.CharField(
        max_length=10,
        choices=TransactionStatus.choices,
        db_index=True,
    )

    amount_minor = models.BigIntegerField()
    currency = models.CharField(max_length=3, default="NGN")

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )

    refund = models.ForeignKey(
        "payments.Refund",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        indexes = [
            models.Index(fields=["status", "created_at"], name="txn_status_created_idx"),
            models.Index(fields=["reference", "kind"], name="txn_reference_kind_idx"),
        ]

    def __str__(self) -> str:
        return f"Transaction({self.reference}, {self.kind}, {self.status})"

    @property
    def amount(self):
        return to_major_units(self.amount_minor)

    def save(self, *args, **kwargs):
        """Insert only. Re-saving a stored row raises ConflictError."""
        if not self._state.adding:
            raise ConflictError(
                "Transaction ledger entries are immutable",
                error_code="LEDGER_IMMUTABLE",
                details={"transaction_id": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ConflictError(
            "Transaction ledger entries cannot be deleted",
            error_code="LEDGER_IMMUTABLE",
            details={"transaction_id": str(self.pk)},
        )
