"""
Orders app.

Persists checkout orders and their line items. Order creation and
fulfillment belong to the storefront; this app exposes the narrow
surface the payments app consumes:

    - OrderService.find_order(order_id)
    - OrderService.update_order_status(order_id, status)
    - OrderService.mark_processing_if_pending(order_id)
"""
