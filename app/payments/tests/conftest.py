"""
Pytest fixtures for payment tests.

Provider credentials are set for every test in this package. Adapters
are built around a MagicMock session so no test talks to a real
gateway; use ``make_response`` to script what the gateway answers.

Usage:
    def test_verify(paystack_adapter, mock_session, make_response):
        mock_session.request.return_value = make_response(200, {...})
        result = paystack_adapter.verify("TX-...")
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from orders.tests.factories import OrderFactory
from payments.adapters import FlutterwaveAdapter, PaystackAdapter
from payments.state_machines import PaymentProvider, TransactionKind, TransactionStatus
from payments.tests.factories import PaymentFactory, PaymentReferenceFactory, TransactionFactory
from payments.tests.payloads import FLUTTERWAVE_HASH, FLUTTERWAVE_SECRET, PAYSTACK_SECRET


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def provider_settings(settings):
    """Configure both gateways with test credentials."""
    settings.PAYSTACK_SECRET_KEY = PAYSTACK_SECRET
    settings.PAYSTACK_PUBLIC_KEY = "pk_test_paystack"
    settings.FLUTTERWAVE_SECRET_KEY = FLUTTERWAVE_SECRET
    settings.FLUTTERWAVE_PUBLIC_KEY = "FLWPUBK_TEST-flutterwave"
    settings.FLUTTERWAVE_SECRET_HASH = FLUTTERWAVE_HASH
    settings.FRONTEND_URL = "https://shop.example.com"
    settings.PAYMENT_DEFAULT_CURRENCY = "NGN"
    return settings


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def make_response():
    """Build a fake ``requests.Response``."""

    def _make(status_code=200, body=None):
        response = MagicMock()
        response.status_code = status_code
        if isinstance(body, Exception):
            response.json.side_effect = body
        else:
            response.json.return_value = body if body is not None else {}
        return response

    return _make


@pytest.fixture
def mock_session():
    return MagicMock()


@pytest.fixture
def paystack_adapter(mock_session):
    return PaystackAdapter(
        secret_key=PAYSTACK_SECRET,
        callback_url="https://shop.example.com/payment/verify",
        session=mock_session,
    )


@pytest.fixture
def flutterwave_adapter(mock_session):
    return FlutterwaveAdapter(
        secret_key=FLUTTERWAVE_SECRET,
        callback_url="https://shop.example.com/payment/verify",
        brand_name="Store",
        session=mock_session,
    )


@pytest.fixture
def mock_gateway():
    """
    Patch ``requests.Session.request`` for code paths that build their own
    adapters (views, webhooks).
    """
    with patch("requests.Session.request") as mocked:
        yield mocked


# =============================================================================
# Order / Payment Fixtures
# =============================================================================


@pytest.fixture
def order(user):
    """PENDING order for 5,000.00 owned by ``user``."""
    return OrderFactory(user=user, email=user.email, total=Decimal("5000.00"))


@pytest.fixture
def guest_order(db):
    return OrderFactory(user=None, email="guest@example.com", total=Decimal("5000.00"))


@pytest.fixture
def pending_payment(order):
    """
    PENDING Paystack payment for ``order`` as initialize leaves it:
    reference mapping, Payment row and a PENDING ledger entry.
    """
    payment = PaymentFactory(order=order, provider=PaymentProvider.PAYSTACK)
    PaymentReferenceFactory(order=order, reference=payment.transaction_id)
    TransactionFactory(
        order=order,
        reference=payment.transaction_id,
        provider=payment.provider,
        kind=TransactionKind.PAYMENT,
        status=TransactionStatus.PENDING,
        amount_minor=payment.amount_minor,
    )
    return payment


@pytest.fixture
def pending_flutterwave_payment(order):
    payment = PaymentFactory(order=order, provider=PaymentProvider.FLUTTERWAVE)
    PaymentReferenceFactory(
        order=order,
        reference=payment.transaction_id,
        provider=PaymentProvider.FLUTTERWAVE,
    )
    TransactionFactory(
        order=order,
        reference=payment.transaction_id,
        provider=payment.provider,
        amount_minor=payment.amount_minor,
    )
    return payment

