"""
Read-side queries over the transaction ledger for administrators.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from core.services import BaseService

from payments.exceptions import PaymentValidationError, TransactionNotFound
from payments.models import Transaction
from payments.state_machines import TransactionStatus

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _as_aware(value, end_of_day: bool = False) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end_of_day else time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


class TransactionService(BaseService):
    """Paginated history and single-entry lookup."""

    @classmethod
    def get_transaction_history(
        cls,
        date_from=None,
        date_to=None,
        status: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """
        Ledger entries newest first.

        ``date_from``/``date_to`` accept dates (whole days, inclusive) or
        datetimes.

        Returns:
            {"transactions", "total", "page", "limit", "total_pages"}
        """
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)

        queryset = Transaction.objects.select_related("order").order_by("-created_at")

        start = _as_aware(date_from)
        end = _as_aware(date_to, end_of_day=True)
        if start is not None:
            queryset = queryset.filter(created_at__gte=start)
        if end is not None:
            queryset = queryset.filter(created_at__lte=end)
        if status:
            if status not in TransactionStatus.values:
                raise PaymentValidationError(
                    f"Unsupported transaction status: {status}",
                    details={"status": status},
                )
            queryset = queryset.filter(status=status)

        total = queryset.count()
        offset = (page - 1) * limit
        return {
            "transactions": list(queryset[offset : offset + limit]),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    @classmethod
    def get_transaction_details(cls, transaction_id) -> Transaction:
        try:
            return Transaction.objects.select_related("order", "refund").get(pk=transaction_id)
        except (Transaction.DoesNotExist, DjangoValidationError, ValueError) as e:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            ) from e
