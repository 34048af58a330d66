"""
Celery tasks for the toolkit app.
"""

from __future__ import annotations

import logging

from celery import shared_task

from toolkit.services.email import EmailService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_email_task(
    self,
    to: str | list[str],
    subject: str,
    template_name: str,
    context: dict,
    **kwargs,
) -> bool:
    """Send a templated email from a worker."""
    return EmailService.send(
        to=to,
        subject=subject,
        template_name=template_name,
        context=context,
        **kwargs,
    )
