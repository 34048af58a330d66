"""
Email service for centralized email sending.

Renders ``{template_name}.html`` and ``{template_name}.txt`` with Django's
template engine and sends them as a multipart message.

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    EmailService.send(
        to="customer@example.com",
        subject="Order confirmed",
        template_name="emails/order_confirmation",
        context={"order_id": "..."},
    )

    # Queue on Celery instead
    EmailService.send_async(
        to="customer@example.com",
        subject="Order confirmed",
        template_name="emails/order_confirmation",
        context={"order_id": "..."},
    )
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailService:
    """
    Template-based email sending, synchronous or via Celery.

    ``send`` returns False instead of raising when the backend rejects the
    message; missing templates are a programming error and do raise.
    """

    @staticmethod
    def render(template_name: str, context: dict) -> tuple[str, str | None]:
        """
        Render the text and HTML bodies of a template pair.

        The plain text body falls back to the HTML with tags stripped
        when no ``.txt`` template exists.

        Returns:
            (text_content, html_content or None)
        """
        try:
            html_content = render_to_string(f"{template_name}.html", context)
        except TemplateDoesNotExist:
            html_content = None

        try:
            text_content = render_to_string(f"{template_name}.txt", context)
        except TemplateDoesNotExist:
            if html_content is None:
                raise
            text_content = strip_tags(html_content)

        return text_content, html_content

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """
        Send email using a template.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            template_name: Template path without extension
            context: Template context variables
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address

        Returns:
            True if the backend accepted the message
        """
        if isinstance(to, str):
            to = [to]

        text_content, html_content = EmailService.render(template_name, context)

        email = EmailMultiAlternatives(
            subject=subject,
            body=text_content,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
            reply_to=[reply_to] if reply_to else None,
        )
        if html_content:
            email.attach_alternative(html_content, "text/html")

        try:
            email.send(fail_silently=False)
        except (SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return True

    @staticmethod
    def send_async(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        **kwargs,
    ) -> None:
        """
        Queue email for async sending via Celery.

        Note:
            Context must be JSON-serializable for Celery.
        """
        from toolkit.tasks import send_email_task

        send_email_task.delay(
            to=to,
            subject=subject,
            template_name=template_name,
            context=context,
            **kwargs,
        )
        logger.debug(f"Email queued for {to}: {subject}")
