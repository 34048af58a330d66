"""
Django admin configuration for notifications.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """
    Admin configuration for Notification.

    Read-only view of notifications for debugging and support.
    """

    list_display = ["id", "recipient", "notification_type", "title", "status", "created_at"]
    list_filter = ["status", "notification_type", "created_at"]
    search_fields = ["title", "message", "recipient__email"]
    raw_id_fields = ["recipient"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]
    date_hierarchy = "created_at"
