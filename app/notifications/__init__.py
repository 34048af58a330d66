"""
Notifications app for in-app user notifications.

This app provides:
- Notification model (UNREAD / READ)
- NotificationService for creating payment and general notifications
- REST API for listing notifications and marking them read

Usage:
    from notifications.services import NotificationService

    result = NotificationService.send_payment_notification(
        user.id,
        "payment_success",
        {"order_id": str(order.id), "amount": "5000.00"},
    )
"""
