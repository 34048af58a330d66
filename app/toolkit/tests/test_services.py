"""
Tests for EmailService.
"""

from smtplib import SMTPException
from unittest.mock import patch

import pytest
from django.core import mail
from django.template import TemplateDoesNotExist

from toolkit.services.email import EmailService

TEMPLATE = "emails/order_confirmation"


def _context(**overrides):
    return {
        "customer_name": "Ada Obi",
        "order_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
        "currency": "NGN",
        "amount": "5,000.00",
        "shipping_cost": "500.00",
        "items": [{"product_id": "SKU-1", "quantity": 2, "unit_price": "2250.00", "size": "M", "color": "black"}],
        "brand_name": "Store",
        **overrides,
    }


class TestRender:
    def test_renders_text_and_html(self):
        text, html = EmailService.render(TEMPLATE, _context())

        assert "Hi Ada Obi" in text
        assert "SKU-1 x2" in text
        assert html is not None
        assert "SKU-1" in html

    def test_missing_template(self):
        with pytest.raises(TemplateDoesNotExist):
            EmailService.render("emails/does_not_exist", {})


class TestSend:
    def test_multipart_message(self, settings):
        settings.DEFAULT_FROM_EMAIL = "orders@example.com"

        sent = EmailService.send(
            to="buyer@example.com",
            subject="Order confirmed",
            template_name=TEMPLATE,
            context=_context(),
            reply_to="support@example.com",
        )

        assert sent is True
        message = mail.outbox[0]
        assert message.to == ["buyer@example.com"]
        assert message.from_email == "orders@example.com"
        assert message.reply_to == ["support@example.com"]
        assert message.alternatives[0][1] == "text/html"

    def test_backend_error_returns_false(self):
        with patch(
            "django.core.mail.EmailMultiAlternatives.send",
            side_effect=SMTPException("rejected"),
        ):
            sent = EmailService.send(
                to=["buyer@example.com"],
                subject="Order confirmed",
                template_name=TEMPLATE,
                context=_context(),
            )

        assert sent is False

    def test_send_async_queues_task(self):
        with patch("toolkit.tasks.send_email_task.delay") as delay:
            EmailService.send_async(
                to="buyer@example.com",
                subject="Order confirmed",
                template_name=TEMPLATE,
                context=_context(),
            )

        delay.assert_called_once()
        assert delay.call_args.kwargs["template_name"] == TEMPLATE


def test_send_email_task_runs_eagerly():
    from toolkit.tasks import send_email_task

    result = send_email_task.delay(
        to="buyer@example.com",
        subject="Order confirmed",
        template_name=TEMPLATE,
        context=_context(),
    )

    assert result.get() is True
    assert len(mail.outbox) == 1
