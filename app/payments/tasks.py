"""
Celery tasks for payment processing.

Tasks:
    send_order_confirmation_email: Email the customer once an order's
        payment is confirmed. Queued by ReconciliationService only for
        the call that moved the order to PROCESSING.

Usage:
    from payments.tasks import send_order_confirmation_email

    send_order_confirmation_email.delay(str(order.id))
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings

from payments.money import to_major_units

logger = logging.getLogger(__name__)

ORDER_CONFIRMATION_TEMPLATE = "emails/order_confirmation"


def build_order_confirmation_context(order) -> dict:
    """Template context for the order confirmation email."""
    billing = order.billing_address or {}
    shipping = order.shipping_address or {}
    customer_name = billing.get("name") or shipping.get("name") or ""
    if not customer_name and order.user_id:
        customer_name = order.user.get_full_name()

    return {
        "order_id": str(order.id),
        "customer_name": customer_name,
        "amount": f"{to_major_units(order.total_minor):,.2f}",
        "shipping_cost": f"{order.shipping_cost:.2f}",
        "currency": settings.PAYMENT_DEFAULT_CURRENCY,
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": f"{item.unit_price:.2f}",
                "size": item.size,
                "color": item.color,
            }
            for item in order.items.all()
        ],
        "shipping_method": order.shipping_method,
        "brand_name": settings.PAYMENT_BRAND_NAME,
    }


@shared_task(
    bind=True,
    autoretry_for=(ConnectionError, TimeoutError, SMTPException),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 3},
)
def send_order_confirmation_email(self, order_id: str) -> bool:
    """
    Send the order confirmation email.

    Args:
        order_id: UUID string of the Order

    Returns:
        True if the email backend accepted the message
    """
    from orders.services import OrderService
    from toolkit.services.email import EmailService

    order = OrderService.find_order(order_id)
    if order is None:
        logger.error(
            "Order not found for confirmation email",
            extra={"order_id": order_id},
        )
        return False

    if not order.email:
        logger.warning(
            "Order has no email address, skipping confirmation",
            extra={"order_id": order_id},
        )
        return False

    sent = EmailService.send(
        to=order.email,
        subject=f"Order confirmed: {order.id}",
        template_name=ORDER_CONFIRMATION_TEMPLATE,
        context=build_order_confirmation_context(order),
    )
    logger.info(
        f"Order confirmation email {'sent' if sent else 'not sent'}",
        extra={"order_id": order_id},
    )
    return sent
