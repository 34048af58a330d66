"""
Payment services.

- ReconciliationService: initialize, verify and webhook reconciliation
- RefundService: refund requests and their settlement
- TransactionService: ledger queries for administrators

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService.verify_payment(reference, "flutterwave")
"""

from payments.services.reconciliation_service import (
    ReconciliationResult,
    ReconciliationService,
)
from payments.services.refund_service import RefundEligibility, RefundService
from payments.services.transaction_service import TransactionService

__all__ = [
    "ReconciliationResult",
    "ReconciliationService",
    "RefundEligibility",
    "RefundService",
    "TransactionService",
]
