"""
Provider-agnostic adapter interface and result types.

Each gateway adapter is a plain object constructed with its own
credentials and a ``requests.Session``; nothing is configured at module
level, so several adapters (or test doubles) can coexist in a process.

Amounts cross this interface in minor units. Adapters convert to and
from the provider's own unit exactly once.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests

from payments.exceptions import GatewayRejected, ProviderUnavailable, TransientNetwork
from payments.money import to_major_units
from payments.state_machines import VerificationStatus

DEFAULT_TIMEOUT_SECONDS = 30


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class InitializePaymentParams:
    """
    Parameters for starting a hosted checkout at a provider.

    Attributes:
        order_id: Order being paid for
        amount_minor: Amount in minor currency units
        email: Customer email
        reference: Locally generated reference (TX-{order_id}-{epoch_ms})
        currency: ISO 4217 code
        payment_method: card, bank_transfer, ussd ...
        customer_name: Optional display name
        customer_phone: Optional phone number
        redirect_url: Where the provider sends the customer afterwards
    """

    order_id: str
    amount_minor: int
    email: str
    reference: str
    currency: str = "NGN"
    payment_method: str = "card"
    customer_name: str | None = None
    customer_phone: str | None = None
    redirect_url: str | None = None

    def __post_init__(self) -> None:
        if self.amount_minor is None or self.amount_minor <= 0:
            raise ValueError("amount_minor must be positive")
        if not self.email:
            raise ValueError("email is required")
        if not self.reference:
            raise ValueError("reference is required")
        if not self.currency:
            raise ValueError("currency is required")
        self.order_id = str(self.order_id)


@dataclass
class InitializeResult:
    """
    Hosted checkout created by a provider.

    Attributes:
        provider: Provider tag
        provider_reference: Reference the provider will report back
        redirect_url: Checkout URL for the customer
        access_code: Paystack inline access code, if any
        raw_payload: Provider response body
    """

    provider: str
    provider_reference: str
    redirect_url: str
    access_code: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedVerificationResult:
    """
    Provider verification mapped onto a common shape.

    Attributes:
        success: True when the charge succeeded
        provider_status: Status string exactly as the provider reported it
        status: succeeded, pending or failed
        amount_minor: Charged amount in minor units
        currency: ISO 4217 code
        customer_email: Email on the provider record
        provider_reference: Local reference (tx_ref / reference)
        provider_transaction_id: Provider's own id for the charge
        metadata: Metadata echoed back by the provider
        raw_payload: Provider ``data`` object
    """

    success: bool
    provider_status: str
    status: str
    amount_minor: int
    currency: str
    customer_email: str | None = None
    provider_reference: str | None = None
    provider_transaction_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    raw_payload: dict[str, Any] = field(default_factory=dict)

    @property
    def amount(self):
        """Charged amount in major units."""
        return to_major_units(self.amount_minor)

    @property
    def is_pending(self) -> bool:
        return self.status == VerificationStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "provider_status": self.provider_status,
            "status": self.status,
            "amount": str(self.amount),
            "currency": self.currency,
            "customer_email": self.customer_email,
            "provider_reference": self.provider_reference,
            "provider_transaction_id": self.provider_transaction_id,
        }


# =============================================================================
# Adapter Base
# =============================================================================


class PaymentProviderAdapter(ABC):
    """
    Base class for gateway adapters.

    Subclasses set ``provider`` and implement ``initialize`` and
    ``verify``. The shared ``_request`` helper applies auth, timeout,
    timing logs and transport error mapping.
    """

    provider: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        secret_key: str | None,
        public_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        callback_url: str | None = None,
        session: requests.Session | None = None,
    ):
        self.secret_key = secret_key or ""
        self.public_key = public_key or ""
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.callback_url = callback_url
        self.session = session or requests.Session()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} configured={self.is_configured}>"

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Operations
    # =========================================================================

    @abstractmethod
    def initialize(self, params: InitializePaymentParams) -> InitializeResult:
        """Create a hosted checkout for ``params``."""

    @abstractmethod
    def verify(self, reference: str) -> NormalizedVerificationResult:
        """Fetch the provider's view of a charge."""

    # =========================================================================
    # HTTP
    # =========================================================================

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ProviderUnavailable(
                f"{self.provider} is not configured",
                provider=self.provider,
            )

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        log_context: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        """
        Perform an authenticated call and return ``(status_code, body)``.

        Raises:
            ProviderUnavailable: No secret key configured
            TransientNetwork: Timeout, connection error or HTTP 5xx
            GatewayRejected: Body is not a JSON object
        """
        self.ensure_configured()
        logger = self.get_logger()

        log_context = {
            "provider": self.provider,
            "operation": operation,
            **(log_context or {}),
        }

        start_time = time.time()
        logger.info("Starting provider call", extra=log_context)

        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                headers={
                    "Authorization": f"Bearer {self.secret_key}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "Provider call failed in transport",
                extra={**log_context, "duration_ms": duration_ms, "error": str(e)},
            )
            raise TransientNetwork(
                f"{self.provider} is unreachable: {e}",
                provider=self.provider,
            ) from e
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Provider call failed",
                extra={**log_context, "duration_ms": duration_ms, "error": str(e)},
            )
            raise GatewayRejected(
                f"{self.provider} request failed: {e}",
                provider=self.provider,
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Provider call completed",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        if response.status_code >= 500:
            raise TransientNetwork(
                f"{self.provider} returned HTTP {response.status_code}",
                provider=self.provider,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayRejected(
                f"{self.provider} returned a malformed response",
                provider=self.provider,
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise GatewayRejected(
                f"{self.provider} returned a malformed response",
                provider=self.provider,
                status_code=response.status_code,
            )

        return response.status_code, body

    def _reject(
        self,
        operation: str,
        status_code: int,
        body: dict[str, Any],
    ) -> GatewayRejected:
        provider_message = body.get("message") if isinstance(body, dict) else None
        self.get_logger().warning(
            "Provider rejected request",
            extra={
                "provider": self.provider,
                "operation": operation,
                "status_code": status_code,
                "provider_message": provider_message,
            },
        )
        return GatewayRejected(
            provider_message or f"{self.provider} rejected {operation}",
            provider=self.provider,
            provider_message=provider_message,
            status_code=status_code,
        )

    @staticmethod
    def _not_found_message(status_code: int, body: dict[str, Any]) -> bool:
        """Both gateways answer an unknown reference with 400/404 and a message."""
        if status_code == 404:
            return True
        message = str(body.get("message") or "").lower()
        return status_code == 400 and (
            "not found" in message or "no transaction" in message
        )
