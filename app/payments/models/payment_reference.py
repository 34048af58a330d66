"""
Reference-to-order side table.

Written before the provider is called so that a reference can always be
traced back to its order, even if the process dies between the provider
accepting the payment and the Payment row being stored.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentProvider


class PaymentReference(UUIDPrimaryKeyMixin, BaseModel):
    """Maps a generated payment reference to its order."""

    reference = models.CharField(
        max_length=255,
        unique=True,
        help_text="Reference sent to the provider (TX-{order_id}-{epoch_ms})",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payment_references",
    )

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Reference"
        verbose_name_plural = "Payment References"

    def __str__(self) -> str:
        return f"PaymentReference({self.reference} -> {self.order_id})"
