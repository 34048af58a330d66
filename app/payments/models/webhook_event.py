"""
WebhookEvent model: receipt log for provider webhooks.

Every delivery that passes signature verification is recorded here
together with its outcome. The log is for audit and operations; it does
not decide whether an event is processed. Redelivered success events
are always run through the success path, whose conditional order update
makes them no-ops.

Usage:
    event, created = WebhookEvent.objects.get_or_create(
        provider="paystack",
        provider_event_id="charge.success:TX-...",
        defaults={"event_type": "charge.success", "payload": payload},
    )
    event.mark_processing()
    event.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentProvider, WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    A verified webhook delivery.

    Fields:
        provider: Gateway that sent the event
        provider_event_id: Event identity at the provider
        event_type: e.g. charge.completed / charge.success
        payload: Parsed JSON body
        status: Processing status of the latest delivery
        delivery_count: Number of deliveries received for this event
    """

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
    )

    provider_event_id = models.CharField(
        max_length=255,
        help_text="Event identity at the provider",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
    )

    payload = models.JSONField(default=dict)

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )

    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)

    delivery_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of deliveries received",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "provider_event_id"],
                name="unique_provider_event",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.provider}, {self.provider_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    # ==========================================================================
    # Helper Methods
    # ==========================================================================
    # None of these save; the caller saves after calling.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.delivery_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
