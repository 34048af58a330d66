"""
Order admin configuration.
"""

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ["position", "product_id", "quantity", "unit_price", "size", "color"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin configuration for Order.

    Status is read-only here: PENDING -> PROCESSING is driven by payment
    reconciliation and later states by fulfillment.
    """

    list_display = ["id", "email", "status", "total", "created_at"]
    list_filter = ["status"]
    search_fields = ["id", "email", "phone"]
    readonly_fields = ["id", "status", "created_at", "updated_at"]
    ordering = ["-created_at"]
    inlines = [OrderItemInline]
