"""
Tests for payments app.

This package contains test modules for:
- test_money.py / test_references.py: unit conversion and reference parsing
- test_adapters.py: Flutterwave and Paystack adapters against a mocked session
- test_verifier.py: webhook signature checks
- test_reconciliation_service.py: initialize, verify and the success/failure paths
- test_handlers.py: webhook dispatch and event recording
- test_refund_service.py / test_transaction_service.py: refunds and ledger queries
- test_views.py / test_webhook_views.py: HTTP endpoints
- test_integration.py: end-to-end payment journeys

Usage:
    pytest app/payments/tests/
    pytest app/payments/tests/test_reconciliation_service.py
"""
