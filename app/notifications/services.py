"""
Notification service layer.

Services:
    NotificationService: Notification creation and read status management

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Payment notifications are rendered from fixed per-type templates

Usage:
    from notifications.services import NotificationService

    result = NotificationService.send_payment_notification(
        user_id,
        "payment_success",
        {"order_id": str(order.id), "amount": "5000.00"},
    )

    NotificationService.mark_all_read(user)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError

from core.services import BaseService, ServiceResult

from notifications.models import Notification, NotificationStatus, NotificationType

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = logging.getLogger(__name__)


# Title and message per payment notification type; messages are
# str.format templates over the notification data.
PAYMENT_TEMPLATES = {
    NotificationType.PAYMENT_SUCCESS: (
        "Payment Successful",
        "Your payment of {currency} {amount} for order {order_id} was successful.",
    ),
    NotificationType.PAYMENT_FAILED: (
        "Payment Failed",
        "Your payment of {currency} {amount} for order {order_id} failed. Please try again.",
    ),
    NotificationType.REFUND_PROCESSED: (
        "Refund Processed",
        "Your refund of {currency} {amount} for order {order_id} has been processed.",
    ),
}

DEFAULT_TITLE = "Payment Update"
DEFAULT_MESSAGE = "There is an update on your payment for order {order_id}."


class _TemplateData(dict):
    def __missing__(self, key):
        return ""


def render_payment_message(notification_type: str, data: dict) -> tuple[str, str]:
    """Return ``(title, message)`` for a payment notification."""
    title, template = PAYMENT_TEMPLATES.get(notification_type, (DEFAULT_TITLE, DEFAULT_MESSAGE))
    values = _TemplateData({"currency": "NGN", **(data or {})})
    return title, " ".join(template.format_map(values).split())


class NotificationService(BaseService):
    """
    Service for notification operations.

    Methods:
        create_notification: Store a notification for a user
        send_payment_notification: Payment/refund notification by user id
        mark_read: Mark a single notification as read
        mark_all_read: Mark all of a user's unread notifications as read
    """

    @classmethod
    def create_notification(
        cls,
        recipient: AbstractBaseUser,
        title: str,
        message: str = "",
        notification_type: str = NotificationType.GENERAL,
        data: dict | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a notification for ``recipient``.

        Error codes:
            INVALID_TYPE: notification_type is not a known kind
        """
        if notification_type not in NotificationType.values:
            return ServiceResult.failure(
                f"Unknown notification type: {notification_type}",
                error_code="INVALID_TYPE",
            )

        notification = Notification.objects.create(
            recipient=recipient,
            title=title,
            message=message,
            notification_type=notification_type,
            data=data or {},
        )
        cls.get_logger().info(
            f"Created {notification_type} notification {notification.id} for user {recipient.pk}"
        )
        return ServiceResult.success(notification)

    @classmethod
    def send_payment_notification(
        cls,
        user_id,
        notification_type: str,
        data: dict | None = None,
    ) -> ServiceResult[Notification]:
        """
        Notify a user about a payment event.

        Error codes:
            USER_NOT_FOUND: No user with ``user_id``
            INVALID_TYPE: Unknown notification type
        """
        User = get_user_model()
        try:
            user = User.objects.get(pk=user_id)
        except (User.DoesNotExist, DjangoValidationError, ValueError):
            cls.get_logger().warning(f"Payment notification for unknown user {user_id}")
            return ServiceResult.failure(
                f"User {user_id} not found",
                error_code="USER_NOT_FOUND",
            )

        title, message = render_payment_message(notification_type, data or {})
        return cls.create_notification(
            recipient=user,
            title=title,
            message=message,
            notification_type=notification_type,
            data=data,
        )

    @classmethod
    def mark_read(cls, notification: Notification, user) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Idempotent. Only the recipient may mark it.

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.pk:
            cls.get_logger().warning(
                f"User {user.pk} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Cannot mark notification you don't own",
                error_code="NOT_OWNER",
            )

        if notification.status != NotificationStatus.READ:
            notification.status = NotificationStatus.READ
            notification.save(update_fields=["status", "updated_at"])
            cls.get_logger().debug(f"Marked notification {notification.id} as read")

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_read(cls, user) -> ServiceResult[int]:
        """Bulk-mark unread notifications as read. Returns the count."""
        count = Notification.objects.filter(
            recipient=user,
            status=NotificationStatus.UNREAD,
        ).update(status=NotificationStatus.READ)

        cls.get_logger().info(f"Marked {count} notifications as read for user {user.pk}")
        return ServiceResult.success(count)
