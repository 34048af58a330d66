"""
Tests for TransactionService.
"""

import datetime
import uuid

import pytest
from freezegun import freeze_time

from payments.exceptions import PaymentValidationError, TransactionNotFound
from payments.services import TransactionService
from payments.state_machines import TransactionStatus
from payments.tests.factories import TransactionFactory


@pytest.mark.django_db
class TestGetTransactionHistory:
    def test_newest_first(self):
        with freeze_time("2024-01-01 10:00:00"):
            older = TransactionFactory()
        with freeze_time("2024-01-02 10:00:00"):
            newer = TransactionFactory()

        history = TransactionService.get_transaction_history()

        assert history["transactions"] == [newer, older]
        assert history["total"] == 2
        assert history["total_pages"] == 1

    def test_date_range_is_inclusive_of_whole_days(self):
        with freeze_time("2024-01-01 23:30:00"):
            first = TransactionFactory()
        with freeze_time("2024-01-02 08:00:00"):
            TransactionFactory()

        history = TransactionService.get_transaction_history(
            date_from=datetime.date(2024, 1, 1),
            date_to=datetime.date(2024, 1, 1),
        )

        assert history["transactions"] == [first]

    def test_status_filter(self):
        TransactionFactory(status=TransactionStatus.SUCCESS)
        TransactionFactory(status=TransactionStatus.FAILED)

        history = TransactionService.get_transaction_history(status=TransactionStatus.FAILED)

        assert [entry.status for entry in history["transactions"]] == [TransactionStatus.FAILED]

    def test_unknown_status(self):
        with pytest.raises(PaymentValidationError):
            TransactionService.get_transaction_history(status="REVERSED")

    def test_pagination(self):
        TransactionFactory.create_batch(5)

        history = TransactionService.get_transaction_history(page=3, limit=2)

        assert len(history["transactions"]) == 1
        assert history["total_pages"] == 3

    def test_limit_is_capped(self):
        history = TransactionService.get_transaction_history(limit=1000)
        assert history["limit"] == 100

    def test_empty(self):
        history = TransactionService.get_transaction_history()
        assert history == {"transactions": [], "total": 0, "page": 1, "limit": 10, "total_pages": 0}


@pytest.mark.django_db
class TestGetTransactionDetails:
    def test_found(self):
        entry = TransactionFactory()
        assert TransactionService.get_transaction_details(entry.id) == entry

    @pytest.mark.parametrize("transaction_id", [uuid.uuid4(), "garbage"])
    def test_not_found(self, transaction_id):
        with pytest.raises(TransactionNotFound):
            TransactionService.get_transaction_details(transaction_id)
