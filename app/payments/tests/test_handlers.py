"""
Tests for webhook handling: signature gate, event recording and dispatch.
"""

from unittest.mock import patch

import pytest
from django.core import mail
from django.db import DatabaseError

from core.exceptions import ValidationError
from orders.models import OrderStatus
from payments.exceptions import ReconciliationAmbiguous, Unauthorized
from payments.models import WebhookEvent
from payments.services import ReconciliationService
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import WebhookEventFactory
from payments.tests.payloads import (
    FLUTTERWAVE_HASH,
    encode,
    flutterwave_charge_data,
    flutterwave_event,
    paystack_charge_data,
    paystack_event,
    paystack_signature,
)
from payments.webhooks.handlers import (
    NO_ACTION_MESSAGE,
    dispatch_webhook,
    extract_event_identity,
    order_id_from_metadata,
)


def _paystack(payload):
    body = encode(payload)
    return body, {"x-paystack-signature": paystack_signature(body)}


def _flutterwave(payload):
    return encode(payload), {"verif-hash": FLUTTERWAVE_HASH}


# =============================================================================
# Payload Helpers
# =============================================================================


class TestOrderIdFromMetadata:
    @pytest.mark.parametrize(
        "metadata, expected",
        [
            ({"orderId": "abc"}, "abc"),
            ({"order_id": "abc"}, "abc"),
            ({"custom_fields": [{"variable_name": "order_id", "value": "abc"}]}, "abc"),
            ({"custom_fields": [{"variable_name": "cart", "value": "x"}]}, None),
            ({}, None),
            (None, None),
            ("orderId=abc", None),
        ],
    )
    def test_lookup(self, metadata, expected):
        assert order_id_from_metadata(metadata) == expected


class TestExtractEventIdentity:
    def test_paystack_uses_charge_id(self):
        payload = paystack_event(paystack_charge_data("TX-a-1"))
        assert extract_event_identity("paystack", payload) == ("charge.success", "charge.success:4099260516")

    def test_flutterwave_falls_back_to_tx_ref(self):
        data = flutterwave_charge_data("TX-a-1")
        del data["id"]
        payload = flutterwave_event(data)

        assert extract_event_identity("flutterwave", payload) == ("charge.completed", "charge.completed:TX-a-1")


@pytest.mark.django_db
def test_unregistered_event_is_acknowledged():
    event = WebhookEventFactory(event_type="transfer.success")

    result = dispatch_webhook(event)

    assert result.success is True
    assert result.message == NO_ACTION_MESSAGE


# =============================================================================
# handle_webhook
# =============================================================================


@pytest.mark.django_db
class TestHandleWebhookPaystack:
    def test_charge_success_reconciles(self, order, pending_payment):
        body, headers = _paystack(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        result = ReconciliationService.handle_webhook("paystack", body, headers)

        assert result.transitioned is True
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.delivery_count == 1
        assert event.provider_event_id == "charge.success:4099260516"

    def test_redelivery_is_recorded_and_absorbed(self, order, pending_payment):
        body, headers = _paystack(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        ReconciliationService.handle_webhook("paystack", body, headers)
        second = ReconciliationService.handle_webhook("paystack", body, headers)

        assert second.success is True
        assert second.transitioned is False
        assert WebhookEvent.objects.get().delivery_count == 2
        assert len(mail.outbox) == 1

    def test_success_event_with_non_success_status_is_ignored(self, order, pending_payment):
        data = paystack_charge_data(pending_payment.transaction_id, status="failed")
        body, headers = _paystack(paystack_event(data))

        result = ReconciliationService.handle_webhook("paystack", body, headers)

        assert result.message == NO_ACTION_MESSAGE
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_recovers_order_from_metadata(self, order):
        data = paystack_charge_data("PSK-external-9", order_id=order.id)
        body, headers = _paystack(paystack_event(data))

        result = ReconciliationService.handle_webhook("paystack", body, headers)

        assert result.order_id == str(order.id)
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_bad_signature_rejected_before_parsing(self, order, pending_payment):
        body, _ = _paystack(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        with pytest.raises(Unauthorized):
            ReconciliationService.handle_webhook("paystack", body, {"x-paystack-signature": "0" * 128})

        assert not WebhookEvent.objects.exists()
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_malformed_json(self):
        body = b"not json"

        with pytest.raises(ValidationError) as exc_info:
            ReconciliationService.handle_webhook(
                "paystack", body, {"x-paystack-signature": paystack_signature(body)}
            )

        assert exc_info.value.error_code == "INVALID_WEBHOOK_PAYLOAD"

    def test_json_array_is_malformed(self):
        body = b"[1, 2]"

        with pytest.raises(ValidationError):
            ReconciliationService.handle_webhook(
                "paystack", body, {"x-paystack-signature": paystack_signature(body)}
            )

    def test_unlinkable_success_marks_event_failed(self):
        body, headers = _paystack(paystack_event(paystack_charge_data("foreign-reference")))

        with pytest.raises(ReconciliationAmbiguous):
            ReconciliationService.handle_webhook("paystack", body, headers)

        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.FAILED
        assert "RECONCILIATION_AMBIGUOUS" in event.error_message

    def test_unexpected_error_marks_event_failed(self, order, pending_payment):
        body, headers = _paystack(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        with patch(
            "payments.services.reconciliation_service.dispatch_webhook",
            side_effect=DatabaseError("connection lost"),
        ):
            with pytest.raises(DatabaseError):
                ReconciliationService.handle_webhook("paystack", body, headers)

        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.FAILED
        assert event.error_message == "connection lost"


@pytest.mark.django_db
class TestHandleWebhookFlutterwave:
    def test_successful_charge(self, order, pending_flutterwave_payment):
        data = flutterwave_charge_data(pending_flutterwave_payment.transaction_id)
        body, headers = _flutterwave(flutterwave_event(data))

        result = ReconciliationService.handle_webhook("flutterwave", body, headers)

        assert result.transitioned is True
        pending_flutterwave_payment.refresh_from_db()
        assert pending_flutterwave_payment.status == PaymentStatus.COMPLETED

    @pytest.mark.parametrize("status", ["failed", "cancelled"])
    def test_failed_charge(self, order, pending_flutterwave_payment, status):
        data = flutterwave_charge_data(pending_flutterwave_payment.transaction_id, status=status)
        body, headers = _flutterwave(flutterwave_event(data))

        result = ReconciliationService.handle_webhook("flutterwave", body, headers)

        assert result.success is False
        pending_flutterwave_payment.refresh_from_db()
        assert pending_flutterwave_payment.status == PaymentStatus.FAILED
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_pending_charge_is_acknowledged(self, order, pending_flutterwave_payment):
        data = flutterwave_charge_data(pending_flutterwave_payment.transaction_id, status="pending")
        body, headers = _flutterwave(flutterwave_event(data))

        result = ReconciliationService.handle_webhook("flutterwave", body, headers)

        assert result.message == NO_ACTION_MESSAGE

    def test_amount_converted_from_major_units(self, order, pending_flutterwave_payment):
        data = flutterwave_charge_data(pending_flutterwave_payment.transaction_id, amount=5000)
        body, headers = _flutterwave(flutterwave_event(data))

        with patch.object(
            ReconciliationService,
            "process_success_event",
            wraps=ReconciliationService.process_success_event,
        ) as spy:
            ReconciliationService.handle_webhook("flutterwave", body, headers)

        assert spy.call_args.kwargs["amount_minor"] == 500000

    def test_wrong_hash(self, order):
        body = encode(flutterwave_event(flutterwave_charge_data("TX-a-1")))

        with pytest.raises(Unauthorized):
            ReconciliationService.handle_webhook("flutterwave", body, {"verif-hash": "guess"})
