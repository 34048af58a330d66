"""
Payment gateway adapters.

Adapters are built from settings once per request at the API boundary
and passed into the reconciliation service.

Usage:
    from payments.adapters import get_adapter

    adapter = get_adapter("paystack")
    result = adapter.initialize(params)
"""

from __future__ import annotations

from django.conf import settings

from core.exceptions import ValidationError

from payments.adapters.base import (
    InitializePaymentParams,
    InitializeResult,
    NormalizedVerificationResult,
    PaymentProviderAdapter,
)
from payments.adapters.flutterwave_adapter import FlutterwaveAdapter
from payments.adapters.paystack_adapter import PaystackAdapter
from payments.state_machines import PaymentProvider


def _callback_url() -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/payment/verify"


def _build_flutterwave(session=None) -> FlutterwaveAdapter:
    return FlutterwaveAdapter(
        secret_key=settings.FLUTTERWAVE_SECRET_KEY,
        public_key=settings.FLUTTERWAVE_PUBLIC_KEY,
        base_url=settings.FLUTTERWAVE_BASE_URL,
        timeout=settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS,
        callback_url=_callback_url(),
        brand_name=settings.PAYMENT_BRAND_NAME,
        logo_url=settings.PAYMENT_BRAND_LOGO_URL,
        session=session,
    )


def _build_paystack(session=None) -> PaystackAdapter:
    return PaystackAdapter(
        secret_key=settings.PAYSTACK_SECRET_KEY,
        public_key=settings.PAYSTACK_PUBLIC_KEY,
        base_url=settings.PAYSTACK_BASE_URL,
        timeout=settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS,
        callback_url=_callback_url(),
        session=session,
    )


ADAPTER_BUILDERS = {
    PaymentProvider.FLUTTERWAVE: _build_flutterwave,
    PaymentProvider.PAYSTACK: _build_paystack,
}


def normalize_provider(provider: str) -> str:
    """
    Validate a provider tag from user input.

    Raises:
        ValidationError: Unknown provider
    """
    value = (provider or "").strip().lower()
    if value not in PaymentProvider.values:
        raise ValidationError(
            f"Unsupported payment provider: {provider}",
            error_code="UNSUPPORTED_PROVIDER",
            details={"provider": provider, "supported": list(PaymentProvider.values)},
        )
    return value


def get_adapter(provider: str, session=None) -> PaymentProviderAdapter:
    """Build the adapter for ``provider`` from settings."""
    return ADAPTER_BUILDERS[normalize_provider(provider)](session=session)


def build_adapters(session=None) -> dict[str, PaymentProviderAdapter]:
    """Build every adapter, keyed by provider tag."""
    return {provider: builder(session=session) for provider, builder in ADAPTER_BUILDERS.items()}


__all__ = [
    "ADAPTER_BUILDERS",
    "FlutterwaveAdapter",
    "InitializePaymentParams",
    "InitializeResult",
    "NormalizedVerificationResult",
    "PaymentProviderAdapter",
    "PaystackAdapter",
    "build_adapters",
    "get_adapter",
    "normalize_provider",
]
