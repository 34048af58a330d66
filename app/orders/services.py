"""
Order store operations consumed by the payments app.

Usage:
    from orders.services import OrderService

    order = OrderService.find_order(order_id)
    if OrderService.mark_processing_if_pending(order.id):
        ...  # this caller won the PENDING -> PROCESSING race
"""

from __future__ import annotations

import logging
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService

from orders.models import Order, OrderStatus

logger = logging.getLogger(__name__)

# Transition method to call for each requested target status
STATUS_TRANSITIONS = {
    OrderStatus.PROCESSING: "mark_processing",
    OrderStatus.SHIPPED: "ship",
    OrderStatus.DELIVERED: "deliver",
    OrderStatus.CANCELLED: "cancel",
}


class OrderService(BaseService):
    """Lookups and status changes for orders."""

    @classmethod
    def find_order(cls, order_id) -> Order | None:
        """
        Load an order by id.

        Returns None for unknown ids and for values that are not valid
        UUIDs (recovered references can carry arbitrary text).
        """
        if not isinstance(order_id, uuid.UUID):
            try:
                order_id = uuid.UUID(str(order_id))
            except (TypeError, ValueError):
                return None

        try:
            return Order.objects.prefetch_related("items").get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError):
            return None

    @classmethod
    def update_order_status(cls, order_id, status: str) -> Order:
        """
        Move an order to ``status`` through its FSM transition.

        Raises:
            NotFoundError: Order does not exist
            ValidationError: Unknown status value
            ConflictError: Transition not allowed from the current state
        """
        order = cls.find_order(order_id)
        if order is None:
            raise NotFoundError(
                f"Order {order_id} not found",
                error_code="ORDER_NOT_FOUND",
                details={"order_id": str(order_id)},
            )

        method_name = STATUS_TRANSITIONS.get(status)
        if method_name is None:
            raise ValidationError(
                f"Unsupported order status: {status}",
                error_code="INVALID_ORDER_STATUS",
                details={"status": status},
            )

        previous = order.status
        try:
            getattr(order, method_name)()
        except TransitionNotAllowed as e:
            raise ConflictError(
                f"Cannot move order from {previous} to {status}",
                error_code="INVALID_STATE_TRANSITION",
                details={
                    "order_id": str(order.id),
                    "current_status": previous,
                    "requested_status": status,
                },
            ) from e

        order.save(update_fields=["status", "updated_at"])
        logger.info(
            f"Order {order.id} moved {previous} -> {order.status}",
            extra={"order_id": str(order.id), "from": previous, "to": order.status},
        )
        return order

    @classmethod
    def mark_processing_if_pending(cls, order_id) -> bool:
        """
        Conditionally move an order from PENDING to PROCESSING.

        Runs as a single UPDATE ... WHERE status = 'PENDING', so among any
        number of concurrent callers exactly one sees True.

        Returns:
            True if this call performed the transition
        """
        updated = Order.objects.filter(
            pk=order_id,
            status=OrderStatus.PENDING,
        ).update(status=OrderStatus.PROCESSING, updated_at=timezone.now())
        return updated == 1
