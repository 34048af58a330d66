"""
Refund service for money owed back to customers.

Refunds here are bookkeeping: initiating one records a PENDING Refund
and a REFUND ledger entry against a located payment. No provider refund
API is called and the order status is left alone. An operator settles
the refund later through ``update_refund_status``.

Usage:
    from payments.services import RefundService

    refund = RefundService.initiate_refund(
        transaction_id="TX-<order_id>-1700000000000",
        amount_minor=250000,
        reason="Damaged on arrival",
        requested_by=request.user,
    )

    RefundService.update_refund_status(refund.id, "COMPLETED")
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Sum

from django_fsm import TransitionNotAllowed

from core.services import BaseService

from notifications.models import NotificationType
from notifications.services import NotificationService

from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFound,
    PaymentValidationError,
    RefundNotFound,
    TransactionNotFound,
)
from payments.models import DEFAULT_REFUND_REASON, Payment, Refund, Transaction
from payments.state_machines import (
    PaymentStatus,
    RefundStatus,
    TransactionKind,
    TransactionStatus,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Refund states that still claim part of the payment amount
OUTSTANDING_REFUND_STATES = frozenset([RefundStatus.PENDING, RefundStatus.COMPLETED])

# Transition method per requested refund status
REFUND_TRANSITIONS = {
    RefundStatus.COMPLETED: "complete",
    RefundStatus.FAILED: "fail",
    RefundStatus.REJECTED: "reject",
}


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class RefundEligibility:
    """
    How much of a payment can still be refunded.

    Attributes:
        eligible: Whether any refund is possible
        max_refundable_minor: Remaining refundable amount in minor units
        block_reason: Why not, when not eligible
    """

    eligible: bool
    max_refundable_minor: int = 0
    block_reason: str | None = None


class RefundService(BaseService):
    """Initiates refunds and records their outcome."""

    @classmethod
    def check_refund_eligibility(cls, payment: Payment) -> RefundEligibility:
        if payment.status == PaymentStatus.FAILED:
            return RefundEligibility(
                eligible=False,
                block_reason="Payment failed at the provider; nothing to refund",
            )

        claimed = (
            payment.refunds.filter(status__in=OUTSTANDING_REFUND_STATES).aggregate(
                total=Sum("amount_minor")
            )["total"]
            or 0
        )
        remaining = max(payment.amount_minor - claimed, 0)
        if remaining == 0:
            return RefundEligibility(
                eligible=False,
                block_reason="Payment has already been fully refunded",
            )
        return RefundEligibility(eligible=True, max_refundable_minor=remaining)

    @classmethod
    def initiate_refund(
        cls,
        transaction_id: str,
        amount_minor: int | None = None,
        reason: str | None = None,
        requested_by=None,
    ) -> Refund:
        """
        Record a refund request against a payment.

        ``transaction_id`` is the payment reference shown in the
        transaction ledger; a ledger entry id is accepted as well.
        The amount defaults to the full transaction amount.

        Raises:
            TransactionNotFound: No PAYMENT ledger entry for the id
            PaymentNotFound: Ledger entry has no matching Payment
            PaymentValidationError: Amount not positive or above the refundable balance
        """
        log = cls.get_logger()

        ledger_entry = cls._find_payment_transaction(transaction_id)
        if ledger_entry is None:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )

        payment = Payment.objects.filter(transaction_id=ledger_entry.reference).first()
        if payment is None:
            raise PaymentNotFound(
                f"No payment recorded for transaction {transaction_id}",
                details={"transaction_id": str(transaction_id)},
            )

        amount = ledger_entry.amount_minor if amount_minor is None else amount_minor

        with cls.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment.pk)

            if amount <= 0:
                raise PaymentValidationError(
                    "Refund amount must be positive",
                    details={"amount_minor": amount},
                )

            eligibility = cls.check_refund_eligibility(payment)
            if not eligibility.eligible:
                raise PaymentValidationError(
                    eligibility.block_reason,
                    details={"payment_id": str(payment.id)},
                )
            if amount > eligibility.max_refundable_minor:
                raise PaymentValidationError(
                    "Refund amount exceeds refundable balance",
                    details={
                        "requested_minor": amount,
                        "refundable_minor": eligibility.max_refundable_minor,
                    },
                )

            refund = Refund.objects.create(
                payment=payment,
                amount_minor=amount,
                currency=payment.currency,
                reason=reason or DEFAULT_REFUND_REASON,
                requested_by=requested_by if getattr(requested_by, "is_authenticated", False) else None,
            )
            Transaction.objects.create(
                reference=payment.transaction_id,
                provider=payment.provider,
                kind=TransactionKind.REFUND,
                status=TransactionStatus.PENDING,
                amount_minor=amount,
                currency=payment.currency,
                order_id=payment.order_id,
                refund=refund,
                description=f"Refund requested: {refund.reason}",
            )

        log.info(
            f"Refund {refund.id} requested for payment {payment.id}",
            extra={
                "refund_id": str(refund.id),
                "reference": payment.transaction_id,
                "amount_minor": amount,
            },
        )
        return refund

    @classmethod
    def update_refund_status(
        cls,
        refund_id,
        status: str,
        reason: str | None = None,
    ) -> Refund:
        """
        Settle a pending refund.

        Raises:
            RefundNotFound: Unknown refund id
            PaymentValidationError: Status is not COMPLETED, FAILED or REJECTED
            InvalidStateTransitionError: Refund already settled
        """
        log = cls.get_logger()

        method_name = REFUND_TRANSITIONS.get(status)
        if method_name is None:
            raise PaymentValidationError(
                f"Unsupported refund status: {status}",
                details={"status": status},
            )

        with cls.atomic():
            try:
                refund = (
                    Refund.objects.select_for_update()
                    .select_related("payment", "payment__order")
                    .get(pk=refund_id)
                )
            except (Refund.DoesNotExist, DjangoValidationError, ValueError) as e:
                raise RefundNotFound(
                    f"Refund {refund_id} not found",
                    details={"refund_id": str(refund_id)},
                ) from e

            previous = refund.status
            transition = getattr(refund, method_name)
            try:
                if status == RefundStatus.COMPLETED:
                    transition()
                else:
                    transition(reason=reason)
            except TransitionNotAllowed as e:
                raise InvalidStateTransitionError(
                    f"Cannot move refund from {previous} to {status}",
                    details={
                        "refund_id": str(refund.id),
                        "current_status": previous,
                        "requested_status": status,
                    },
                ) from e
            refund.save()

        log.info(
            f"Refund {refund.id} moved {previous} -> {refund.status}",
            extra={"refund_id": str(refund.id), "from": previous, "to": refund.status},
        )

        if refund.status == RefundStatus.COMPLETED:
            cls._notify_refund_processed(refund)
        return refund

    # =========================================================================
    # Internals
    # =========================================================================

    @classmethod
    def _find_payment_transaction(cls, transaction_id) -> Transaction | None:
        entries = Transaction.objects.filter(kind=TransactionKind.PAYMENT)

        try:
            pk = uuid.UUID(str(transaction_id))
        except ValueError:
            pk = None
        if pk is not None:
            entry = entries.filter(pk=pk).first()
            if entry is not None:
                return entry

        # Oldest entry carries the amount the payment was initialized with
        return entries.filter(reference=str(transaction_id)).order_by("created_at").first()

    @classmethod
    def _notify_refund_processed(cls, refund: Refund) -> None:
        payment = refund.payment
        user_id = payment.user_id or payment.order.user_id
        if not user_id:
            return
        try:
            NotificationService.send_payment_notification(
                user_id,
                NotificationType.REFUND_PROCESSED,
                {
                    "order_id": str(payment.order_id),
                    "amount": str(refund.amount),
                    "currency": refund.currency,
                    "refund_id": str(refund.id),
                },
            )
        except Exception:
            cls.get_logger().error(
                f"Failed to send refund notification for {refund.id}",
                extra={"refund_id": str(refund.id)},
                exc_info=True,
            )
