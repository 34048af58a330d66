"""
Reconciliation service: drives orders from PENDING to PROCESSING exactly once.

Payments reach this service from three directions: the client starting a
checkout, the client coming back to verify, and the provider's webhook.
The last two race freely; both end in ``on_payment_succeeded``, whose
conditional order update lets exactly one caller through.

Order recovery policy (first hit wins):
    1. Payment row whose transaction_id matches the reference
    2. PaymentReference row written at initialize time
    3. Order id parsed out of a TX-{order_id}-{epoch_ms} reference
    4. Order id echoed back in provider metadata

A success event that matches none of these raises
ReconciliationAmbiguous and is logged at CRITICAL.

Usage:
    from payments.services import ReconciliationService

    init = ReconciliationService.initialize_payment(
        order_id=order.id,
        amount_minor=500000,
        email="buyer@example.com",
        provider="paystack",
    )

    result = ReconciliationService.verify_payment(init.provider_reference, "paystack")
    if result.success and result.transitioned:
        ...
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError, transaction

from core.exceptions import ValidationError
from core.services import BaseService

from notifications.services import NotificationService
from notifications.models import NotificationType
from orders.models import OrderStatus
from orders.services import OrderService

from payments.adapters import (
    InitializePaymentParams,
    InitializeResult,
    NormalizedVerificationResult,
    PaymentProviderAdapter,
    get_adapter,
    normalize_provider,
)
from payments.exceptions import (
    OrderNotFound,
    PaymentValidationError,
    ReconciliationAmbiguous,
    Unauthorized,
)
from payments.models import Payment, PaymentReference, Transaction, WebhookEvent
from payments.references import generate_reference, parse_reference
from payments.state_machines import (
    PaymentStatus,
    TransactionKind,
    TransactionStatus,
    VerificationStatus,
)
from payments.webhooks.handlers import (
    NO_ACTION_MESSAGE,
    dispatch_webhook,
    extract_event_identity,
    order_id_from_metadata,
)
from payments.webhooks.verifier import verify_webhook

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any


logger = logging.getLogger(__name__)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ReconciliationResult:
    """
    Outcome of a verify call or webhook delivery.

    Attributes:
        success: True for a succeeded payment (including no-op repeats)
        status: succeeded, pending, failed or ignored
        order_id: Order the payment belongs to, when known
        reference: Payment reference
        provider: Provider tag
        transitioned: True only for the call that moved the order
        message: Human-readable summary
        warnings: Recovery problems an operator should see
        verification: Provider verification, for verify calls
    """

    success: bool
    status: str
    order_id: str | None = None
    reference: str | None = None
    provider: str | None = None
    transitioned: bool = False
    message: str = ""
    warnings: list[str] = field(default_factory=list)
    verification: NormalizedVerificationResult | None = None

    @classmethod
    def no_action(cls, provider: str | None = None, reference: str | None = None) -> ReconciliationResult:
        return cls(
            success=True,
            status="ignored",
            provider=provider,
            reference=reference,
            message=NO_ACTION_MESSAGE,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "orderId": self.order_id,
            "reference": self.reference,
            "provider": self.provider,
            "transitioned": self.transitioned,
        }
        if self.verification is not None:
            result["verification"] = self.verification.to_dict()
        if self.warnings:
            result["warnings"] = self.warnings
        return result


@dataclass
class _ResolvedOrder:
    order_id: str | None
    payment: Payment | None
    source: str | None


# =============================================================================
# Reconciliation Service
# =============================================================================


class ReconciliationService(BaseService):
    """
    Payment initialization, verification and webhook reconciliation.

    All methods are classmethods. Adapters are resolved per call from
    the provider tag unless one is passed in.
    """

    # =========================================================================
    # Initialize
    # =========================================================================

    @classmethod
    def initialize_payment(
        cls,
        order_id,
        amount_minor: int,
        email: str,
        provider: str,
        payment_method: str | None = None,
        user=None,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        currency: str | None = None,
        adapter: PaymentProviderAdapter | None = None,
        now_ms: int | None = None,
    ) -> InitializeResult:
        """
        Start a hosted checkout for an order.

        The reference mapping is stored before the provider is called;
        the Payment row and a PENDING ledger entry after it accepts, unless
        a webhook already recovered the payment in the meantime.
        The order itself is not touched.

        Raises:
            OrderNotFound: Unknown order
            ProviderUnavailable: Provider credentials missing
            PaymentValidationError: Invalid amount or email
            GatewayRejected / TransientNetwork: Provider call failed
        """
        log = cls.get_logger()
        provider = normalize_provider(provider)

        order = OrderService.find_order(order_id)
        if order is None:
            raise OrderNotFound(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )

        adapter = adapter or get_adapter(provider)
        adapter.ensure_configured()

        reference = generate_reference(order.id, now_ms)
        try:
            params = InitializePaymentParams(
                order_id=str(order.id),
                amount_minor=amount_minor,
                email=email,
                reference=reference,
                currency=currency or settings.PAYMENT_DEFAULT_CURRENCY,
                payment_method=payment_method or "card",
                customer_name=customer_name,
                customer_phone=customer_phone or order.phone or None,
            )
        except (TypeError, ValueError) as e:
            raise PaymentValidationError(str(e), details={"order_id": str(order.id)}) from e

        PaymentReference.objects.create(reference=reference, order=order, provider=provider)

        result = adapter.initialize(params)

        with cls.atomic():
            if result.provider_reference != reference:
                PaymentReference.objects.get_or_create(
                    reference=result.provider_reference,
                    defaults={"order": order, "provider": provider},
                )
            payment, created = Payment.objects.get_or_create(
                transaction_id=result.provider_reference,
                defaults={
                    "order": order,
                    "user": user if getattr(user, "is_authenticated", False) else None,
                    "amount_minor": params.amount_minor,
                    "currency": params.currency,
                    "provider": provider,
                    "payment_method": params.payment_method,
                    "metadata": {"initialize": result.raw_payload},
                },
            )
            if created:
                Transaction.objects.create(
                    reference=result.provider_reference,
                    provider=provider,
                    kind=TransactionKind.PAYMENT,
                    status=TransactionStatus.PENDING,
                    amount_minor=params.amount_minor,
                    currency=params.currency,
                    order=order,
                    description=f"Payment initialized for order {order.id}",
                )

        if not created:
            # A webhook or verify recovered the payment while the provider call was in flight
            log.info(
                f"Payment {payment.id} for {result.provider_reference} already recorded as {payment.status}",
                extra={
                    "order_id": str(order.id),
                    "reference": result.provider_reference,
                    "provider": provider,
                },
            )
            return result

        log.info(
            f"Initialized {provider} payment {payment.id} for order {order.id}",
            extra={
                "order_id": str(order.id),
                "reference": result.provider_reference,
                "provider": provider,
                "amount_minor": params.amount_minor,
            },
        )
        return result

    # =========================================================================
    # Verify
    # =========================================================================

    @classmethod
    def verify_payment(
        cls,
        reference: str,
        provider: str,
        adapter: PaymentProviderAdapter | None = None,
    ) -> ReconciliationResult:
        """
        Ask the provider about a reference and reconcile the answer.

        Raises:
            NotFound: Provider has no such charge
            ReconciliationAmbiguous: Charge succeeded but no order matches
            GatewayRejected / TransientNetwork: Provider call failed
        """
        provider = normalize_provider(provider)
        adapter = adapter or get_adapter(provider)

        verification = adapter.verify(reference)
        references = [verification.provider_reference, reference]

        cls.get_logger().info(
            f"Verified {provider} reference {reference}: {verification.provider_status}",
            extra={
                "reference": reference,
                "provider": provider,
                "status": verification.status,
            },
        )

        if verification.status == VerificationStatus.SUCCEEDED:
            result = cls.process_success_event(
                provider=provider,
                references=references,
                raw_payload=verification.raw_payload,
                order_id_hint=order_id_from_metadata(verification.metadata),
                amount_minor=verification.amount_minor,
                currency=verification.currency,
            )
        elif verification.status == VerificationStatus.PENDING:
            result = ReconciliationResult(
                success=False,
                status=VerificationStatus.PENDING,
                reference=reference,
                provider=provider,
                message="Payment is still pending",
            )
        else:
            result = cls.process_failure_event(
                provider=provider,
                references=references,
                raw_payload=verification.raw_payload,
                reason=verification.provider_status,
            )

        result.verification = verification
        return result

    # =========================================================================
    # Webhooks
    # =========================================================================

    @classmethod
    def handle_webhook(
        cls,
        provider: str,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> ReconciliationResult:
        """
        Verify, record and dispatch a webhook delivery.

        The signature is checked on the raw bytes before anything is
        parsed. Redeliveries are processed again; the order gate makes
        them no-ops.

        Raises:
            Unauthorized: Signature check failed
            ValidationError: Body is not a JSON object
        """
        log = cls.get_logger()
        provider = normalize_provider(provider)

        if not verify_webhook(provider, raw_body, headers):
            log.warning(
                f"Rejected {provider} webhook with invalid signature",
                extra={"provider": provider, "security_event": "invalid_webhook_signature"},
            )
            raise Unauthorized(
                "Invalid webhook signature",
                details={"provider": provider},
            )

        try:
            payload = json.loads(raw_body)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Malformed webhook payload",
                error_code="INVALID_WEBHOOK_PAYLOAD",
                details={"provider": provider},
            ) from e
        if not isinstance(payload, dict):
            raise ValidationError(
                "Malformed webhook payload",
                error_code="INVALID_WEBHOOK_PAYLOAD",
                details={"provider": provider},
            )

        event_type, event_id = extract_event_identity(provider, payload)
        webhook_event, created = WebhookEvent.objects.get_or_create(
            provider=provider,
            provider_event_id=event_id,
            defaults={"event_type": event_type, "payload": payload},
        )
        if not created:
            log.info(
                f"Redelivery of {provider} event {event_id}",
                extra={"provider": provider, "event_id": event_id, "previous_status": webhook_event.status},
            )
            webhook_event.payload = payload
        webhook_event.mark_processing()
        webhook_event.save()

        try:
            result = dispatch_webhook(webhook_event)
        except Exception as e:
            webhook_event.mark_failed(str(e))
            webhook_event.save(update_fields=["status", "error_message", "updated_at"])
            raise

        webhook_event.mark_processed()
        webhook_event.save(update_fields=["status", "processed_at", "error_message", "updated_at"])
        return result

    # =========================================================================
    # Success / Failure Paths
    # =========================================================================

    @classmethod
    def process_success_event(
        cls,
        provider: str,
        raw_payload: dict[str, Any],
        reference: str | None = None,
        references: Iterable[str | None] = (),
        order_id_hint: str | None = None,
        amount_minor: int | None = None,
        currency: str | None = None,
    ) -> ReconciliationResult:
        """
        Handle a confirmed charge from either verify or a webhook.

        Completes the Payment if one exists, runs the shared success
        path, and re-creates a missing Payment row when the order was
        recovered some other way.

        Raises:
            ReconciliationAmbiguous: No order can be linked to the charge
            OrderNotFound: Recovered order id does not exist
        """
        log = cls.get_logger()
        candidates = _unique([reference, *references])
        primary_reference = candidates[0] if candidates else None

        resolved = cls._resolve_order(candidates, order_id_hint)
        if resolved.order_id is None:
            log.critical(
                f"Successful {provider} payment could not be linked to an order",
                extra={
                    "provider": provider,
                    "reference": primary_reference,
                    "alarm": "reconciliation_ambiguous",
                },
            )
            raise ReconciliationAmbiguous(
                "Payment succeeded but no order could be linked to it",
                details={"provider": provider, "reference": primary_reference},
            )

        if resolved.payment is not None:
            cls._complete_payment(resolved.payment.pk, raw_payload, amount_minor)

        result = cls.on_payment_succeeded(resolved.order_id, provider, raw_payload)
        result.reference = primary_reference

        if resolved.payment is None:
            warning = cls._recreate_missing_payment(
                order_id=result.order_id,
                provider=provider,
                reference=primary_reference,
                raw_payload=raw_payload,
                amount_minor=amount_minor,
                currency=currency,
                source=resolved.source,
            )
            if warning:
                result.warnings.append(warning)

        return result

    @classmethod
    def on_payment_succeeded(
        cls,
        order_id,
        provider: str,
        raw_payload: dict[str, Any] | None = None,
    ) -> ReconciliationResult:
        """
        Shared success path.

        Moves the order PENDING -> PROCESSING through a conditional
        update. Only the caller whose update hits a row sends the
        notification and queues the confirmation email; everyone else
        gets a successful no-op.

        Raises:
            OrderNotFound: Order does not exist
        """
        log = cls.get_logger()

        order = OrderService.find_order(order_id)
        if order is None:
            log.error(
                f"Payment succeeded for missing order {order_id}",
                extra={"order_id": str(order_id), "provider": provider},
            )
            raise OrderNotFound(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )

        transitioned = OrderService.mark_processing_if_pending(order.id)

        if not transitioned:
            order.refresh_from_db(fields=["status"])
            if order.status == OrderStatus.CANCELLED:
                log.warning(
                    f"Payment received for cancelled order {order.id}",
                    extra={"order_id": str(order.id), "provider": provider},
                )
            else:
                log.info(
                    f"Order {order.id} already {order.status}, skipping side effects",
                    extra={"order_id": str(order.id), "provider": provider},
                )
            return ReconciliationResult(
                success=True,
                status=VerificationStatus.SUCCEEDED,
                order_id=str(order.id),
                provider=provider,
                transitioned=False,
                message="Payment already processed",
            )

        log.info(
            f"Order {order.id} moved to PROCESSING after {provider} payment",
            extra={"order_id": str(order.id), "provider": provider},
        )

        cls._notify(
            order.user_id,
            NotificationType.PAYMENT_SUCCESS,
            {
                "order_id": str(order.id),
                "amount": str(order.total),
                "currency": settings.PAYMENT_DEFAULT_CURRENCY,
                "provider": provider,
            },
        )
        cls._queue_confirmation_email(order.id)

        return ReconciliationResult(
            success=True,
            status=VerificationStatus.SUCCEEDED,
            order_id=str(order.id),
            provider=provider,
            transitioned=True,
            message="Payment processed successfully",
        )

    @classmethod
    def process_failure_event(
        cls,
        provider: str,
        raw_payload: dict[str, Any],
        reference: str | None = None,
        references: Iterable[str | None] = (),
        reason: str | None = None,
    ) -> ReconciliationResult:
        """
        Record a failed charge.

        Fails the Payment if it is still PENDING and appends a FAILED
        ledger entry. The order is never touched.
        """
        log = cls.get_logger()
        candidates = _unique([reference, *references])
        primary_reference = candidates[0] if candidates else None

        payment = Payment.objects.filter(transaction_id__in=candidates).first() if candidates else None
        if payment is None:
            log.warning(
                f"Failed {provider} payment has no local record",
                extra={"provider": provider, "reference": primary_reference},
            )
            return ReconciliationResult(
                success=False,
                status=VerificationStatus.FAILED,
                reference=primary_reference,
                provider=provider,
                message="Payment failed",
            )

        with cls.atomic():
            locked = Payment.objects.select_for_update().get(pk=payment.pk)
            newly_failed = locked.status == PaymentStatus.PENDING
            if newly_failed:
                locked.fail(reason=reason, payload=raw_payload)
                locked.save()
                Transaction.objects.create(
                    reference=locked.transaction_id,
                    provider=locked.provider,
                    kind=TransactionKind.PAYMENT,
                    status=TransactionStatus.FAILED,
                    amount_minor=locked.amount_minor,
                    currency=locked.currency,
                    order_id=locked.order_id,
                    description=f"Payment failed: {reason or 'unknown'}",
                )

        if newly_failed:
            log.info(
                f"Payment {locked.id} marked FAILED",
                extra={"reference": locked.transaction_id, "provider": provider, "reason": reason},
            )
            cls._notify(
                locked.user_id or locked.order.user_id,
                NotificationType.PAYMENT_FAILED,
                {
                    "order_id": str(locked.order_id),
                    "amount": str(locked.amount),
                    "currency": locked.currency,
                    "reason": reason,
                },
            )

        return ReconciliationResult(
            success=False,
            status=VerificationStatus.FAILED,
            order_id=str(locked.order_id),
            reference=locked.transaction_id,
            provider=provider,
            message="Payment failed",
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @classmethod
    def _resolve_order(cls, references: list[str], order_id_hint: str | None) -> _ResolvedOrder:
        if not references and not order_id_hint:
            return _ResolvedOrder(None, None, None)

        payment = Payment.objects.filter(transaction_id__in=references).first()
        if payment is not None:
            return _ResolvedOrder(str(payment.order_id), payment, "payment")

        mapping = PaymentReference.objects.filter(reference__in=references).first()
        if mapping is not None:
            return _ResolvedOrder(str(mapping.order_id), None, "reference_table")

        for candidate in references:
            parsed = parse_reference(candidate)
            if parsed:
                return _ResolvedOrder(parsed, None, "parsed_reference")

        if order_id_hint:
            return _ResolvedOrder(str(order_id_hint), None, "provider_metadata")

        return _ResolvedOrder(None, None, None)

    @classmethod
    def _complete_payment(
        cls,
        payment_id,
        raw_payload: dict[str, Any],
        amount_minor: int | None,
    ) -> bool:
        """Mark a Payment COMPLETED under a row lock. False if it already left PENDING."""
        log = cls.get_logger()

        with cls.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment_id)

            if payment.status != PaymentStatus.PENDING:
                if payment.status == PaymentStatus.FAILED:
                    log.warning(
                        f"Success reported for FAILED payment {payment.id}",
                        extra={"reference": payment.transaction_id},
                    )
                return False

            if amount_minor is not None and amount_minor != payment.amount_minor:
                log.warning(
                    f"Amount mismatch on payment {payment.id}",
                    extra={
                        "reference": payment.transaction_id,
                        "expected_amount_minor": payment.amount_minor,
                        "reported_amount_minor": amount_minor,
                    },
                )

            payment.complete(raw_payload)
            payment.save()
            Transaction.objects.create(
                reference=payment.transaction_id,
                provider=payment.provider,
                kind=TransactionKind.PAYMENT,
                status=TransactionStatus.SUCCESS,
                amount_minor=payment.amount_minor,
                currency=payment.currency,
                order_id=payment.order_id,
                description=f"Payment completed for order {payment.order_id}",
            )

        log.info(
            f"Payment {payment.id} marked COMPLETED",
            extra={"reference": payment.transaction_id, "order_id": str(payment.order_id)},
        )
        return True

    @classmethod
    def _recreate_missing_payment(
        cls,
        order_id: str,
        provider: str,
        reference: str | None,
        raw_payload: dict[str, Any],
        amount_minor: int | None,
        currency: str | None,
        source: str | None,
    ) -> str | None:
        """
        Store the Payment row a crash left behind. Returns a warning on failure.
        """
        log = cls.get_logger()
        if not reference:
            return "Payment record not created: no reference available"

        try:
            with cls.atomic():
                order = OrderService.find_order(order_id)
                amount = amount_minor if amount_minor else order.total_minor
                payment = Payment(
                    order=order,
                    user_id=order.user_id,
                    amount_minor=amount,
                    currency=currency or settings.PAYMENT_DEFAULT_CURRENCY,
                    provider=provider,
                    transaction_id=reference,
                    metadata={"recovered_from": source},
                )
                payment.complete(raw_payload)
                payment.save()
                Transaction.objects.create(
                    reference=reference,
                    provider=provider,
                    kind=TransactionKind.PAYMENT,
                    status=TransactionStatus.SUCCESS,
                    amount_minor=amount,
                    currency=payment.currency,
                    order=order,
                    description=f"Payment recovered for order {order.id}",
                )
        except DatabaseError as e:
            log.error(
                f"Could not create missing payment record for {reference}",
                extra={"order_id": order_id, "reference": reference, "provider": provider},
                exc_info=True,
            )
            return f"Payment record for {reference} could not be created: {e}"

        log.warning(
            f"Recovered missing payment record for {reference} via {source}",
            extra={"order_id": order_id, "reference": reference, "provider": provider},
        )
        return None

    @classmethod
    def _notify(cls, user_id, notification_type: str, data: dict[str, Any]) -> None:
        """Best-effort in-app notification. Never raises."""
        if not user_id:
            return
        try:
            result = NotificationService.send_payment_notification(user_id, notification_type, data)
        except Exception:
            cls.get_logger().error(
                f"Failed to send {notification_type} notification",
                extra={"user_id": str(user_id), "order_id": data.get("order_id")},
                exc_info=True,
            )
            return
        if not result.success:
            cls.get_logger().error(
                f"Failed to send {notification_type} notification: {result.error}",
                extra={"user_id": str(user_id), "order_id": data.get("order_id")},
            )

    @classmethod
    def _queue_confirmation_email(cls, order_id) -> None:
        """Queue the order confirmation email. Never raises."""
        from payments.tasks import send_order_confirmation_email

        try:
            send_order_confirmation_email.delay(str(order_id))
        except Exception:
            cls.get_logger().error(
                f"Failed to queue confirmation email for order {order_id}",
                extra={"order_id": str(order_id)},
                exc_info=True,
            )


def _unique(values: Iterable[str | None]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(str(value))
    return seen
