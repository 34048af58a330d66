"""
Order models.

Order status is a django-fsm field. Forward transitions are monotonic:

    PENDING -> PROCESSING -> SHIPPED -> DELIVERED

CANCELLED is reachable from any non-terminal state. DELIVERED and
CANCELLED are terminal.

PENDING -> PROCESSING is owned by the payments app, which performs it with
a conditional update (see OrderService.mark_processing_if_pending) so that
concurrent webhook and verify calls cannot both win.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import models

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class OrderStatus(models.TextChoices):
    """Lifecycle states for an order."""

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"

    @classmethod
    def terminal_states(cls) -> frozenset[str]:
        return frozenset({cls.DELIVERED, cls.CANCELLED})


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A checkout order.

    Fields:
        user: Customer account (nullable for guest checkout)
        status: Current lifecycle state
        total: Grand total in major units (e.g. Naira)
        shipping_cost: Shipping component of the total
        email / phone: Contact details captured at checkout
        shipping_address / billing_address: Address blobs from checkout
        shipping_method: Carrier or zone label
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        help_text="Customer who placed the order (null for guest checkout)",
    )
    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
        help_text="Current order state",
    )
    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Order total in major currency units",
    )
    shipping_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Shipping cost in major currency units",
    )
    email = models.EmailField(help_text="Contact email captured at checkout")
    phone = models.CharField(max_length=32, blank=True, default="")
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    shipping_method = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["user", "status"], name="order_user_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="order_total_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.id}, {self.status}, {self.total})"

    @property
    def total_minor(self) -> int:
        """Order total in minor currency units (kobo)."""
        return int(
            (Decimal(self.total) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in OrderStatus.terminal_states()

    # =========================================================================
    # State Transitions
    # =========================================================================

    @transition(
        field=status,
        source=OrderStatus.PENDING,
        target=OrderStatus.PROCESSING,
    )
    def mark_processing(self):
        """Payment confirmed; order enters fulfillment."""

    @transition(
        field=status,
        source=OrderStatus.PROCESSING,
        target=OrderStatus.SHIPPED,
    )
    def ship(self):
        """Order handed to the carrier."""

    @transition(
        field=status,
        source=OrderStatus.SHIPPED,
        target=OrderStatus.DELIVERED,
    )
    def deliver(self):
        """Order received by the customer."""

    @transition(
        field=status,
        source=[OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED],
        target=OrderStatus.CANCELLED,
    )
    def cancel(self):
        """Cancel a non-terminal order."""


class OrderItem(models.Model):
    """
    A line item on an order.

    Products are owned by the catalog; the item keeps a copy of the
    product id and the unit price at checkout time.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    position = models.PositiveIntegerField(default=0)
    product_id = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    size = models.CharField(max_length=32, blank=True, default="")
    color = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        ordering = ["order", "position"]

    def __str__(self) -> str:
        return f"OrderItem({self.product_id} x{self.quantity})"

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
