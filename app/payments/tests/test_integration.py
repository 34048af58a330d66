"""
End-to-end payment journeys through the HTTP API.

Each test drives checkout, provider confirmation and refunds the way a
storefront and a gateway would, with only the gateway HTTP faked.
"""

import pytest
from django.core import mail
from freezegun import freeze_time
from django.urls import reverse
from rest_framework import status

from notifications.models import Notification
from orders.models import OrderStatus
from payments.models import Payment, Transaction, WebhookEvent
from payments.state_machines import PaymentStatus, TransactionStatus
from payments.tests.factories import TransactionFactory
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


def _initialize(api_client, order, provider, mock_gateway, make_response, gateway_body):
    mock_gateway.return_value = make_response(200, gateway_body)
    response = api_client.post(
        reverse("payments:initialize", args=[provider]),
        {"orderId": str(order.id), "amount": "5000.00", "email": order.email},
        format="json",
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["providerReference"]


@pytest.mark.django_db
class TestPaystackCheckout:
    def test_webhook_and_verify_race_to_one_confirmation(
        self, api_client, client, order, mock_gateway, make_response
    ):
        reference = _initialize(
            api_client,
            order,
            "paystack",
            mock_gateway,
            make_response,
            {"status": True, "data": {"authorization_url": "https://checkout.paystack.com/a"}},
        )

        # Webhook lands first
        body = encode(paystack_event(paystack_charge_data(reference, order_id=order.id)))
        webhook = post_paystack(client, body, paystack_signature(body))
        assert webhook.status_code == 200

        # Customer returns and verifies
        mock_gateway.return_value = make_response(
            200, {"status": True, "data": paystack_charge_data(reference, order_id=order.id)}
        )
        verify = api_client.get(reverse("payments:verify", args=["paystack", reference]))

        assert verify.status_code == 200
        assert verify.json()["success"] is True
        assert verify.json()["transitioned"] is False

        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING
        assert Payment.objects.get(transaction_id=reference).status == PaymentStatus.COMPLETED
        assert len(mail.outbox) == 1
        assert Notification.objects.filter(recipient=order.user).count() == 1
        assert list(
            Transaction.objects.filter(reference=reference)
            .order_by("created_at")
            .values_list("status", flat=True)
        ) == [TransactionStatus.PENDING, TransactionStatus.SUCCESS]

    def test_tampered_webhook_changes_nothing(self, api_client, client, order, mock_gateway, make_response):
        reference = _initialize(
            api_client,
            order,
            "paystack",
            mock_gateway,
            make_response,
            {"status": True, "data": {"authorization_url": "https://checkout.paystack.com/a"}},
        )
        body = encode(paystack_event(paystack_charge_data(reference)))
        signature = paystack_signature(body)

        response = post_paystack(client, body + b" ", signature)

        assert response.status_code == 401
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING
        assert not WebhookEvent.objects.exists()
        assert len(mail.outbox) == 0


@pytest.mark.django_db
class TestFlutterwaveCheckout:
    def test_amount_round_trip_and_refund(
        self, api_client, client, staff_client, order, mock_gateway, make_response
    ):
        reference = _initialize(
            api_client,
            order,
            "flutterwave",
            mock_gateway,
            make_response,
            {"status": "success", "data": {"link": "https://checkout.flutterwave.com/v3/hosted/pay/x"}},
        )
        # 5000 NGN in, major units on the wire
        assert mock_gateway.call_args.kwargs["json"]["amount"] == 5000
        payment = Payment.objects.get(transaction_id=reference)
        assert payment.amount_minor == 500000

        body = encode(flutterwave_event(flutterwave_charge_data(reference, amount=5000)))
        assert post_flutterwave(client, body).status_code == 200

        payment.refresh_from_db()
        assert payment.status == PaymentStatus.COMPLETED

        refund = staff_client.post(
            reverse("payments:refund-create", args=[reference]),
            {"amount": "2000.00", "reason": "One item missing"},
            format="json",
        )
        assert refund.status_code == status.HTTP_201_CREATED
        assert refund.json()["amount"] == "2000.00"

        settle = staff_client.patch(
            reverse("payments:refund-status", args=[refund.json()["id"]]),
            {"status": "COMPLETED"},
            format="json",
        )
        assert settle.status_code == status.HTTP_200_OK

        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_failed_charge_then_retry(self, api_client, client, order, mock_gateway, make_response):
        gateway_body = {"status": "success", "data": {"link": "https://checkout.flutterwave.com/x"}}
        with freeze_time("2024-01-01 10:00:00"):
            first = _initialize(api_client, order, "flutterwave", mock_gateway, make_response, gateway_body)

        body = encode(flutterwave_event(flutterwave_charge_data(first, status="failed")))
        assert post_flutterwave(client, body).status_code == 200

        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

        with freeze_time("2024-01-01 10:05:00"):
            second = _initialize(api_client, order, "flutterwave", mock_gateway, make_response, gateway_body)
        assert second != first

        data = flutterwave_charge_data(second, id=288200999)
        assert post_flutterwave(client, encode(flutterwave_event(data))).status_code == 200

        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING
        assert Payment.objects.get(transaction_id=first).status == PaymentStatus.FAILED
        assert Payment.objects.get(transaction_id=second).status == PaymentStatus.COMPLETED


@pytest.mark.django_db
def test_refund_without_payment_record(staff_client, order):
    entry = TransactionFactory(order=order)

    response = staff_client.post(reverse("payments:refund-create", args=[entry.reference]), {}, format="json")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error_code"] == "PAYMENT_NOT_FOUND"
