"""
Paystack adapter.

Paystack works in minor units (kobo) on both initialize and verify, so
amounts pass through unchanged.

Endpoints used:
    POST /transaction/initialize
    GET  /transaction/verify/{reference}
    GET  /transaction/{id}
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from payments.adapters.base import (
    InitializePaymentParams,
    InitializeResult,
    NormalizedVerificationResult,
    PaymentProviderAdapter,
)
from payments.exceptions import GatewayRejected, NotFound
from payments.state_machines import PaymentProvider, VerificationStatus

SUCCESS_STATUSES = {"success"}
FAILED_STATUSES = {"failed", "abandoned", "reversed"}


def map_status(provider_status: str | None) -> str:
    status = (provider_status or "").lower()
    if status in SUCCESS_STATUSES:
        return VerificationStatus.SUCCEEDED
    if status in FAILED_STATUSES:
        return VerificationStatus.FAILED
    return VerificationStatus.PENDING


class PaystackAdapter(PaymentProviderAdapter):
    """
    Adapter for the Paystack card gateway.

    Usage:
        adapter = PaystackAdapter(secret_key="sk_test_...")
        result = adapter.initialize(params)
        verification = adapter.verify(result.provider_reference)
    """

    provider = PaymentProvider.PAYSTACK
    default_base_url = "https://api.paystack.co"

    def initialize(self, params: InitializePaymentParams) -> InitializeResult:
        """
        Create a Paystack checkout.

        Raises:
            ProviderUnavailable: Secret key not configured
            GatewayRejected: Paystack returned status false or no URL
            TransientNetwork: Timeout, connection error or 5xx
        """
        payload: dict[str, Any] = {
            "amount": params.amount_minor,
            "email": params.email,
            "reference": params.reference,
            "currency": params.currency,
            "metadata": {
                "orderId": params.order_id,
                "custom_fields": [
                    {
                        "display_name": "Order ID",
                        "variable_name": "order_id",
                        "value": params.order_id,
                    }
                ],
            },
        }
        callback_url = params.redirect_url or self.callback_url
        if callback_url:
            payload["callback_url"] = callback_url

        status_code, body = self._request(
            "POST",
            "/transaction/initialize",
            operation="initialize",
            json=payload,
            log_context={"reference": params.reference, "order_id": params.order_id},
        )

        data = body.get("data") or {}
        authorization_url = data.get("authorization_url") if isinstance(data, dict) else None
        if status_code >= 400 or body.get("status") is not True or not authorization_url:
            raise self._reject("initialize", status_code, body)

        return InitializeResult(
            provider=self.provider,
            provider_reference=data.get("reference") or params.reference,
            redirect_url=authorization_url,
            access_code=data.get("access_code"),
            raw_payload=body,
        )

    def verify(self, reference: str) -> NormalizedVerificationResult:
        """
        Verify a charge by reference, falling back to the numeric id.

        Raises:
            NotFound: Paystack has no matching charge
            GatewayRejected: Non-success response
            TransientNetwork: Timeout, connection error or 5xx
        """
        reference = str(reference)
        try:
            status_code, body = self._request(
                "GET",
                f"/transaction/verify/{quote(reference, safe='')}",
                operation="verify",
                log_context={"reference": reference},
            )
            return self._normalize(status_code, body, reference)
        except NotFound:
            if not reference.isdigit():
                raise

        status_code, body = self._request(
            "GET",
            f"/transaction/{reference}",
            operation="fetch_by_id",
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
                f"Paystack has no transaction for {reference}",
                details={"provider": self.provider, "reference": reference},
            )
        if status_code >= 400 or body.get("status") is not True:
            raise self._reject("verify", status_code, body)

        data = body.get("data")
        if not isinstance(data, dict):
            raise GatewayRejected(
                "Paystack verify response has no data",
                provider=self.provider,
                status_code=status_code,
            )

        try:
            amount_minor = int(data.get("amount") or 0)
        except (TypeError, ValueError) as e:
            raise GatewayRejected(
                "Paystack returned an invalid amount",
                provider=self.provider,
                status_code=status_code,
            ) from e

        provider_status = str(data.get("status") or "")
        status = map_status(provider_status)
        customer = data.get("customer") or {}
        transaction_id = data.get("id")
        metadata = data.get("metadata")

        return NormalizedVerificationResult(
            success=status == VerificationStatus.SUCCEEDED,
            provider_status=provider_status,
            status=status,
            amount_minor=amount_minor,
            currency=data.get("currency") or "",
            customer_email=customer.get("email"),
            provider_reference=data.get("reference") or reference,
            provider_transaction_id=str(transaction_id) if transaction_id is not None else None,
            metadata=metadata if isinstance(metadata, dict) else {},
            raw_payload=data,
        )
