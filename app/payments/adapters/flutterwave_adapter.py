"""
Flutterwave v3 adapter.

Flutterwave works in major currency units: ``amount`` is sent and
returned as Naira, not kobo. Conversion happens here and nowhere else.

Endpoints used:
    POST /v3/payments                                   hosted checkout
    GET  /v3/transactions/{id}/verify                   verify by numeric id
    GET  /v3/transactions/verify_by_reference?tx_ref=   verify by tx_ref
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from urllib.parse import quote

from payments.adapters.base import (
    InitializePaymentParams,
    InitializeResult,
    NormalizedVerificationResult,
    PaymentProviderAdapter,
)
from payments.exceptions import GatewayRejected, NotFound
from payments.money import to_major_units, to_minor_units
from payments.references import looks_local
from payments.state_machines import PaymentProvider, VerificationStatus

# Flutterwave payment_options values by our payment method name
PAYMENT_OPTIONS = {
    "card": "card",
    "bank_transfer": "banktransfer",
    "banktransfer": "banktransfer",
    "ussd": "ussd",
    "ng": "card,banktransfer,ussd",
}

SUCCESS_STATUSES = {"successful"}
FAILED_STATUSES = {"failed", "cancelled"}


def _json_amount(amount: Decimal) -> int | float:
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def map_status(provider_status: str | None) -> str:
    status = (provider_status or "").lower()
    if status in SUCCESS_STATUSES:
        return VerificationStatus.SUCCEEDED
    if status in FAILED_STATUSES:
        return VerificationStatus.FAILED
    return VerificationStatus.PENDING


class FlutterwaveAdapter(PaymentProviderAdapter):
    """
    Adapter for the Flutterwave card/bank-transfer gateway.

    Usage:
        adapter = FlutterwaveAdapter(secret_key="FLWSECK-...")
        result = adapter.initialize(params)
        verification = adapter.verify(result.provider_reference)
    """

    provider = PaymentProvider.FLUTTERWAVE
    default_base_url = "https://api.flutterwave.com"

    def __init__(self, *args, brand_name: str = "", logo_url: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.brand_name = brand_name
        self.logo_url = logo_url

    def initialize(self, params: InitializePaymentParams) -> InitializeResult:
        """
        Create a Flutterwave hosted payment link.

        Raises:
            ProviderUnavailable: Secret key not configured
            GatewayRejected: Flutterwave did not return a link
            TransientNetwork: Timeout, connection error or 5xx
        """
        payload: dict[str, Any] = {
            "tx_ref": params.reference,
            "amount": _json_amount(to_major_units(params.amount_minor)),
            "currency": params.currency,
            "redirect_url": params.redirect_url or self.callback_url,
            "payment_options": PAYMENT_OPTIONS.get(params.payment_method, "card"),
            "customer": {
                "email": params.email,
                "name": params.customer_name or params.email,
                "phonenumber": params.customer_phone or "",
            },
            "customizations": {
                "title": self.brand_name,
                "description": f"Payment for order {params.order_id}",
                "logo": self.logo_url,
            },
            "meta": {"order_id": params.order_id},
        }

        status_code, body = self._request(
            "POST",
            "/v3/payments",
            operation="initialize",
            json=payload,
            log_context={"reference": params.reference, "order_id": params.order_id},
        )

        data = body.get("data") or {}
        link = data.get("link") if isinstance(data, dict) else None
        if status_code >= 400 or body.get("status") != "success" or not link:
            raise self._reject("initialize", status_code, body)

        return InitializeResult(
            provider=self.provider,
            provider_reference=params.reference,
            redirect_url=link,
            raw_payload=body,
        )

    def verify(self, reference: str) -> NormalizedVerificationResult:
        """
        Verify a charge by local tx_ref or by Flutterwave transaction id.

        A reference with the local prefix is looked up by tx_ref. A numeric
        reference is tried as a transaction id first, then as a tx_ref.

        Raises:
            NotFound: Flutterwave has no matching charge
            GatewayRejected: Non-success response
            TransientNetwork: Timeout, connection error or 5xx
        """
        reference = str(reference)
        if not looks_local(reference) and reference.isdigit():
            try:
                return self._verify_by_id(reference)
            except NotFound:
                return self._verify_by_tx_ref(reference)
        return self._verify_by_tx_ref(reference)

    # =========================================================================
    # Internals
    # =========================================================================

    def _verify_by_id(self, transaction_id: str) -> NormalizedVerificationResult:
        status_code, body = self._request(
            "GET",
            f"/v3/transactions/{quote(transaction_id, safe='')}/verify",
            operation="verify_by_id",
            log_context={"reference": transaction_id},
        )
        return self._normalize(status_code, body, transaction_id)

    def _verify_by_tx_ref(self, reference: str) -> NormalizedVerificationResult:
        status_code, body = self._request(
            "GET",
            "/v3/transactions/verify_by_reference",
            operation="verify_by_reference",
            params={"tx_ref": reference},
            log_context={"reference": reference},
        )
        return self._normalize(status_code, body, reference)

    def _normalize(
        self,
        status_code: int,
        body: dict[str, Any],
        reference: str,
    ) -> NormalizedVerificationResult:
        if self._not_found_message(status_code, body):
            raise NotFound(
                f"Flutterwave has no transaction for {reference}",
                details={"provider": self.provider, "reference": reference},
            )
        if status_code >= 400 or body.get("status") != "success":
            raise self._reject("verify", status_code, body)

        data = body.get("data")
        if not isinstance(data, dict):
            raise GatewayRejected(
                "Flutterwave verify response has no data",
                provider=self.provider,
                status_code=status_code,
            )

        try:
            amount_minor = to_minor_units(data.get("amount", 0))
        except ValueError as e:
            raise GatewayRejected(
                "Flutterwave returned an invalid amount",
                provider=self.provider,
                status_code=status_code,
            ) from e

        provider_status = str(data.get("status") or "")
        status = map_status(provider_status)
        customer = data.get("customer") or {}
        transaction_id = data.get("id")

        return NormalizedVerificationResult(
            success=status == VerificationStatus.SUCCEEDED,
            provider_status=provider_status,
            status=status,
            amount_minor=amount_minor,
            currency=data.get("currency") or "",
            customer_email=customer.get("email"),
            provider_reference=data.get("tx_ref") or reference,
            provider_transaction_id=str(transaction_id) if transaction_id is not None else None,
            metadata=data.get("meta") or {},
            raw_payload=data,
        )
