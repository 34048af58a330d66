"""
Tests for payment Celery tasks.
"""

import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core import mail

from orders.tests.factories import OrderFactory, OrderItemFactory
from payments.tasks import build_order_confirmation_context, send_order_confirmation_email


@pytest.mark.django_db
class TestBuildOrderConfirmationContext:
    def test_context(self, settings):
        settings.PAYMENT_BRAND_NAME = "Kora Store"
        order = OrderFactory(total=Decimal("5000.00"), shipping_cost=Decimal("500.00"))
        OrderItemFactory(order=order, product_id="SKU-1", quantity=2, unit_price=Decimal("2250.00"))

        context = build_order_confirmation_context(order)

        assert context["order_id"] == str(order.id)
        assert context["amount"] == "5,000.00"
        assert context["shipping_cost"] == "500.00"
        assert context["currency"] == "NGN"
        assert context["customer_name"] == "Ada Obi"
        assert context["brand_name"] == "Kora Store"
        assert context["items"] == [
            {"product_id": "SKU-1", "quantity": 2, "unit_price": "2250.00", "size": "M", "color": "black"}
        ]

    def test_name_falls_back_to_account(self, user):
        user.first_name, user.last_name = "Chidi", "Okeke"
        user.save()
        order = OrderFactory(user=user, shipping_address={}, billing_address={})

        assert build_order_confirmation_context(order)["customer_name"] == "Chidi Okeke"


@pytest.mark.django_db
class TestSendOrderConfirmationEmail:
    def test_sends(self):
        order = OrderFactory(email="buyer@example.com")
        OrderItemFactory(order=order, product_id="SKU-42")

        assert send_order_confirmation_email(str(order.id)) is True

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["buyer@example.com"]
        assert str(order.id) in message.subject
        assert "SKU-42" in message.body
        assert "NGN 5,000.00" in message.body
        assert message.alternatives[0][1] == "text/html"

    def test_missing_order(self):
        assert send_order_confirmation_email(str(uuid.uuid4())) is False
        assert len(mail.outbox) == 0

    def test_order_without_email(self):
        order = OrderFactory()
        order.email = ""
        order.save()

        assert send_order_confirmation_email(str(order.id)) is False

    def test_backend_failure_reports_false(self):
        order = OrderFactory()

        with patch(
            "django.core.mail.EmailMultiAlternatives.send",
            side_effect=OSError("connection refused"),
        ):
            assert send_order_confirmation_email(str(order.id)) is False
