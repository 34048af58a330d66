"""
Payments app for Flutterwave and Paystack.

This app handles:
- Hosted checkout initialization with either provider
- Payment verification and webhook reconciliation
- Moving orders from PENDING to PROCESSING exactly once
- Refund records and the append-only transaction ledger

Related apps:
    - orders: Order store and the conditional PENDING -> PROCESSING update
    - notifications: In-app payment notifications
    - toolkit: Order confirmation email

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService.verify_payment(reference, "paystack")
"""
