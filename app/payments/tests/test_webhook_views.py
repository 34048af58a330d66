"""
Tests for the webhook endpoints.

Requests go through the Django test client so the views see the exact
bytes the provider would send.
"""

import pytest
from django.urls import reverse

from orders.models import OrderStatus
from payments.models import WebhookEvent
from payments.tests.payloads import (
    encode,
    flutterwave_charge_data,
    flutterwave_event,
    paystack_charge_data,
    paystack_event,
    paystack_signature,
    post_flutterwave,
    post_paystack,
)


@pytest.mark.django_db
class TestPaystackWebhookView:
    def test_processed(self, client, order, pending_payment):
        body = encode(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        response = post_paystack(client, body, paystack_signature(body))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Payment processed successfully"}
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_missing_signature(self, client, order, pending_payment):
        body = encode(paystack_event(paystack_charge_data(pending_payment.transaction_id)))

        response = post_paystack(client, body)

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_SIGNATURE"

    def test_tampered_body(self, client, order, pending_payment):
        body = encode(paystack_event(paystack_charge_data(pending_payment.transaction_id)))
        signature = paystack_signature(body)
        tampered = body.replace(b'"amount":500000', b'"amount":100')

        response = post_paystack(client, tampered, signature)

        assert response.status_code == 401
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING
        assert not WebhookEvent.objects.exists()

    def test_unrelated_event(self, client, db):
        body = encode({"event": "transfer.success", "data": {"id": 1, "reference": "TRF-1"}})

        response = post_paystack(client, body, paystack_signature(body))

        assert response.status_code == 200
        assert response.json()["message"] == "Webhook received but no action required"

    def test_malformed_body(self, client, db):
        body = b"{not json"

        response = post_paystack(client, body, paystack_signature(body))

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unlinkable_payment(self, client, db):
        body = encode(paystack_event(paystack_charge_data("foreign-reference")))

        response = post_paystack(client, body, paystack_signature(body))

        assert response.status_code == 409
        assert response.json()["error_code"] == "RECONCILIATION_AMBIGUOUS"

    def test_get_not_allowed(self, client, db):
        response = client.get(reverse("payments:paystack_webhook"))
        assert response.status_code == 405


@pytest.mark.django_db
class TestFlutterwaveWebhookView:
    def test_processed(self, client, order, pending_flutterwave_payment):
        body = encode(flutterwave_event(flutterwave_charge_data(pending_flutterwave_payment.transaction_id)))

        response = post_flutterwave(client, body)

        assert response.status_code == 200
        assert response.json()["success"] is True
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_wrong_hash(self, client, order, pending_flutterwave_payment):
        body = encode(flutterwave_event(flutterwave_charge_data(pending_flutterwave_payment.transaction_id)))

        response = post_flutterwave(client, body, verif_hash="wrong")

        assert response.status_code == 401
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_hash_not_configured(self, client, order, provider_settings):
        provider_settings.FLUTTERWAVE_SECRET_HASH = ""
        body = encode(flutterwave_event(flutterwave_charge_data("TX-a-1")))

        response = post_flutterwave(client, body)

        assert response.status_code == 401
