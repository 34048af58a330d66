"""
Tests for RefundService.
"""

import uuid

import pytest

from notifications.models import Notification, NotificationType
from orders.models import OrderStatus
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFound,
    PaymentValidationError,
    RefundNotFound,
    TransactionNotFound,
)
from payments.models import Transaction
from payments.services import RefundService
from payments.state_machines import (
    PaymentStatus,
    RefundStatus,
    TransactionKind,
    TransactionStatus,
)
from payments.tests.factories import PaymentFactory, RefundFactory, TransactionFactory


@pytest.fixture
def completed_payment(pending_payment):
    pending_payment.status = PaymentStatus.COMPLETED
    pending_payment.save()
    return pending_payment


@pytest.mark.django_db
class TestInitiateRefund:
    def test_full_refund_by_reference(self, completed_payment, staff_user):
        refund = RefundService.initiate_refund(
            transaction_id=completed_payment.transaction_id,
            reason="Damaged on arrival",
            requested_by=staff_user,
        )

        assert refund.status == RefundStatus.PENDING
        assert refund.amount_minor == completed_payment.amount_minor
        assert refund.requested_by == staff_user
        entry = Transaction.objects.get(refund=refund)
        assert entry.kind == TransactionKind.REFUND
        assert entry.status == TransactionStatus.PENDING
        assert entry.reference == completed_payment.transaction_id

    def test_by_ledger_entry_id(self, completed_payment):
        entry = Transaction.objects.get(
            reference=completed_payment.transaction_id, kind=TransactionKind.PAYMENT
        )

        refund = RefundService.initiate_refund(transaction_id=str(entry.id), amount_minor=100000)

        assert refund.payment == completed_payment
        assert refund.amount_minor == 100000

    def test_default_reason(self, completed_payment):
        refund = RefundService.initiate_refund(transaction_id=completed_payment.transaction_id)
        assert refund.reason == "Customer request"

    def test_order_status_untouched(self, completed_payment):
        order = completed_payment.order
        order.status = OrderStatus.PROCESSING
        order.save()

        RefundService.initiate_refund(transaction_id=completed_payment.transaction_id)

        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_partial_refunds_share_the_balance(self, completed_payment):
        RefundService.initiate_refund(completed_payment.transaction_id, amount_minor=300000)

        with pytest.raises(PaymentValidationError) as exc_info:
            RefundService.initiate_refund(completed_payment.transaction_id, amount_minor=300000)

        assert exc_info.value.details["refundable_minor"] == 200000

    def test_rejected_refund_frees_the_balance(self, completed_payment):
        refund = RefundService.initiate_refund(completed_payment.transaction_id)
        RefundService.update_refund_status(refund.id, RefundStatus.REJECTED, reason="Not eligible")

        again = RefundService.initiate_refund(completed_payment.transaction_id)

        assert again.amount_minor == completed_payment.amount_minor

    def test_fully_refunded(self, completed_payment):
        RefundService.initiate_refund(completed_payment.transaction_id)

        with pytest.raises(PaymentValidationError):
            RefundService.initiate_refund(completed_payment.transaction_id, amount_minor=1)

    def test_failed_payment_cannot_be_refunded(self, pending_payment):
        pending_payment.status = PaymentStatus.FAILED
        pending_payment.save()

        with pytest.raises(PaymentValidationError):
            RefundService.initiate_refund(pending_payment.transaction_id)

    @pytest.mark.parametrize("amount", [0, -500])
    def test_non_positive_amount(self, completed_payment, amount):
        with pytest.raises(PaymentValidationError):
            RefundService.initiate_refund(completed_payment.transaction_id, amount_minor=amount)

    def test_unknown_transaction(self, db):
        with pytest.raises(TransactionNotFound):
            RefundService.initiate_refund("TX-missing-1")

    def test_ledger_entry_without_payment(self, db):
        entry = TransactionFactory()

        with pytest.raises(PaymentNotFound):
            RefundService.initiate_refund(entry.reference)


@pytest.mark.django_db
class TestUpdateRefundStatus:
    def test_complete_notifies_customer(self):
        refund = RefundFactory()

        updated = RefundService.update_refund_status(refund.id, RefundStatus.COMPLETED)

        assert updated.status == RefundStatus.COMPLETED
        assert updated.processed_at is not None
        notification = Notification.objects.get(notification_type=NotificationType.REFUND_PROCESSED)
        assert notification.recipient == refund.payment.order.user

    def test_fail_keeps_reason(self):
        refund = RefundFactory()

        updated = RefundService.update_refund_status(refund.id, RefundStatus.FAILED, reason="Card closed")

        assert updated.failure_reason == "Card closed"
        assert not Notification.objects.exists()

    def test_settled_refund(self):
        refund = RefundFactory(status=RefundStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionError):
            RefundService.update_refund_status(refund.id, RefundStatus.REJECTED)

    def test_unsupported_status(self):
        refund = RefundFactory()

        with pytest.raises(PaymentValidationError):
            RefundService.update_refund_status(refund.id, RefundStatus.PENDING)

    @pytest.mark.parametrize("refund_id", [uuid.uuid4(), "not-a-uuid"])
    def test_unknown_refund(self, refund_id):
        with pytest.raises(RefundNotFound):
            RefundService.update_refund_status(refund_id, RefundStatus.COMPLETED)


@pytest.mark.django_db
class TestCheckRefundEligibility:
    def test_pending_payment_is_eligible(self):
        payment = PaymentFactory()

        eligibility = RefundService.check_refund_eligibility(payment)

        assert eligibility.eligible is True
        assert eligibility.max_refundable_minor == payment.amount_minor

    def test_failed_payment(self):
        eligibility = RefundService.check_refund_eligibility(PaymentFactory(status=PaymentStatus.FAILED))

        assert eligibility.eligible is False
        assert eligibility.block_reason
