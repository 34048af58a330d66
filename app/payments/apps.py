"""
Payments app configuration.

This app provides:
- Flutterwave and Paystack adapters
- Webhook verification and dispatch
- Payment reconciliation against the order lifecycle
- Refund records and the transaction ledger
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
