"""
Payment admin configuration.

Payments, ledger entries and webhook deliveries are audit records: the
admin shows them but does not allow deleting them.
"""

from django.contrib import admin

from payments.models import Payment, PaymentReference, Refund, Transaction, WebhookEvent
from payments.money import format_amount


class RefundInline(admin.TabularInline):
    model = Refund
    extra = 0
    fields = ["id", "amount_minor", "status", "reason", "created_at"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Status is read-only; it only moves through reconciliation.
    """

    list_display = [
        "id",
        "order",
        "provider",
        "transaction_id",
        "amount_display",
        "status",
        "created_at",
    ]
    list_filter = ["provider", "status", "currency", "created_at"]
    search_fields = ["id", "transaction_id", "order__id", "order__email"]
    readonly_fields = [
        "id",
        "status",
        "completed_at",
        "failed_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [RefundInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order", "user", "provider", "transaction_id", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount_minor", "currency", "payment_method"),
            },
        ),
        (
            "Status Timestamps",
            {
                "fields": ("completed_at", "failed_at", "failure_reason"),
            },
        ),
        (
            "Provider Payloads",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj: Payment) -> str:
        return format_amount(obj.amount_minor, obj.currency)

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentReference)
class PaymentReferenceAdmin(admin.ModelAdmin):
    list_display = ["reference", "order", "provider", "created_at"]
    list_filter = ["provider"]
    search_fields = ["reference", "order__id"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    """
    Admin configuration for Refund.

    Status changes go through the refund status API so that the ledger
    and the customer notification stay in step.
    """

    list_display = ["id", "payment", "amount_display", "status", "reason", "created_at"]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["id", "payment__transaction_id", "reason"]
    readonly_fields = [
        "id",
        "status",
        "processed_at",
        "failure_reason",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    @admin.display(description="Amount")
    def amount_display(self, obj: Refund) -> str:
        return format_amount(obj.amount_minor, obj.currency)

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for refunds (audit trail)."""
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Append-only ledger; nothing is editable."""

    list_display = ["id", "reference", "kind", "status", "amount_minor", "provider", "created_at"]
    list_filter = ["kind", "status", "provider", "created_at"]
    search_fields = ["id", "reference", "order__id"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "provider",
        "provider_event_id",
        "event_type",
        "status",
        "delivery_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["provider", "status", "event_type", "created_at"]
    search_fields = ["id", "provider_event_id", "event_type"]
    readonly_fields = [
        "id",
        "provider",
        "provider_event_id",
        "event_type",
        "payload",
        "status",
        "delivery_count",
        "processed_at",
        "error_message",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False
