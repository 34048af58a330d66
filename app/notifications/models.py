"""
Notification models.

- NotificationType: Closed set of notification kinds
- NotificationStatus: UNREAD / READ
- Notification: An in-app message for a user

Usage:
    from notifications.models import Notification, NotificationType

    unread = Notification.objects.filter(
        recipient=user,
        status=NotificationStatus.UNREAD,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


# =============================================================================
# Enums
# =============================================================================


class NotificationType(models.TextChoices):
    """Kinds of notification the platform sends."""

    PAYMENT_SUCCESS = "payment_success", "Payment Successful"
    PAYMENT_FAILED = "payment_failed", "Payment Failed"
    REFUND_PROCESSED = "refund_processed", "Refund Processed"
    GENERAL = "general", "General"


class NotificationStatus(models.TextChoices):
    UNREAD = "UNREAD", "Unread"
    READ = "READ", "Read"


# =============================================================================
# Models
# =============================================================================


class Notification(UUIDPrimaryKeyMixin, BaseModel):
    """
    In-app notification for a single user.

    Title and message are fully rendered when the row is created and
    serve as a historical record.

    Fields:
        recipient: User receiving the notification (scopes all queries)
        notification_type: Kind of notification
        title: Rendered title
        message: Rendered message
        status: UNREAD or READ
        data: Context for deep links (order id, amount, ...)

    Note:
        recipient CASCADE: notifications are deleted with the user
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User receiving this notification",
    )

    notification_type = models.CharField(
        max_length=32,
        choices=NotificationType.choices,
        default=NotificationType.GENERAL,
        db_index=True,
    )

    title = models.CharField(max_length=255)

    message = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=10,
        choices=NotificationStatus.choices,
        default=NotificationStatus.UNREAD,
        db_index=True,
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary context data (deep links, metadata)",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            # Primary query: user's unread notifications
            models.Index(
                fields=["recipient", "status", "-created_at"],
                name="notif_recipient_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Notification({self.notification_type}) -> User {self.recipient_id} [{self.status}]"

    @property
    def is_read(self) -> bool:
        return self.status == NotificationStatus.READ
