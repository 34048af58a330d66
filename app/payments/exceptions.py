"""
Payment-specific exceptions for payment operations.

Every payment error carries ``is_retryable`` so callers can tell a
network blip from a permanent failure without matching on types.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── ProviderUnavailable - Provider not configured (400)
    ├── GatewayRejected - Provider refused a well-formed request (502)
    ├── TransientNetwork - Timeout / connection error / 5xx (503, retryable)
    ├── NotFound - No matching record (404)
    │   ├── OrderNotFound
    │   ├── PaymentNotFound
    │   ├── TransactionNotFound
    │   └── RefundNotFound
    ├── Unauthorized - Webhook signature mismatch (401)
    ├── ReconciliationAmbiguous - Success event with no recoverable order (409)
    ├── PaymentValidationError - Business rule violation (400)
    └── InvalidStateTransitionError - FSM transition not allowed (409)

Usage:
    from payments.exceptions import GatewayRejected, TransientNetwork

    try:
        adapter.verify(reference)
    except TransientNetwork:
        ...  # safe to retry, nothing was mutated
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Attributes:
        is_retryable: True when the same call may succeed if repeated
    """

    default_error_code: str = "PAYMENT_ERROR"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Provider Errors
# -----------------------------------------------------------------------------


class ProviderError(PaymentError, ExternalServiceError):
    """
    Base for errors raised by provider adapters.

    Keeps the provider tag and, where the provider returned one, its own
    message and HTTP status in ``details``.
    """

    default_error_code: str = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        error_code: str | None = None,
        provider_message: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if provider_message:
            details["provider_message"] = provider_message
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider = provider
        self.provider_message = provider_message
        self.status_code = status_code


class ProviderUnavailable(ProviderError):
    """
    Provider credentials are not configured.

    Only the affected provider is disabled; the other keeps working.
    """

    default_error_code: str = "PROVIDER_UNAVAILABLE"
    http_status: int = 400
    is_retryable: bool = False


class GatewayRejected(ProviderError):
    """
    Provider returned a non-success status or a malformed response.

    The provider's own message is surfaced in ``details`` when present.
    """

    default_error_code: str = "GATEWAY_REJECTED"
    http_status: int = 502
    is_retryable: bool = False


class TransientNetwork(ProviderError):
    """
    Timeout, connection failure or provider-side 5xx.

    Safe to retry; raised before any local state is mutated.
    """

    default_error_code: str = "TRANSIENT_NETWORK"
    http_status: int = 503
    is_retryable: bool = True


# -----------------------------------------------------------------------------
# Lookup Errors
# -----------------------------------------------------------------------------


class NotFound(PaymentError, NotFoundError):
    """No matching record locally or at the provider."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class OrderNotFound(NotFound):
    default_error_code: str = "ORDER_NOT_FOUND"


class PaymentNotFound(NotFound):
    default_error_code: str = "PAYMENT_NOT_FOUND"


class TransactionNotFound(NotFound):
    default_error_code: str = "TRANSACTION_NOT_FOUND"


class RefundNotFound(NotFound):
    default_error_code: str = "REFUND_NOT_FOUND"


# -----------------------------------------------------------------------------
# Webhook / Reconciliation Errors
# -----------------------------------------------------------------------------


class Unauthorized(PaymentError, PermissionDeniedError):
    """
    Webhook signature did not verify.

    The payload must not be processed. Logged as a security event.
    """

    default_error_code: str = "INVALID_SIGNATURE"
    http_status: int = 401


class ReconciliationAmbiguous(PaymentError, ConflictError):
    """
    A success event arrived but no order could be linked to it.

    Needs manual intervention; never retried automatically.
    """

    default_error_code: str = "RECONCILIATION_AMBIGUOUS"
    http_status: int = 409


# -----------------------------------------------------------------------------
# Validation / State Errors
# -----------------------------------------------------------------------------


class PaymentValidationError(PaymentError, ValidationError):
    """
    Raised when a payment request breaks a business rule.

    Example:
        raise PaymentValidationError(
            "Refund exceeds refundable balance",
            details={"requested": 60000, "refundable": 50000},
        )
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"
    http_status: int = 400


class InvalidStateTransitionError(PaymentError, ConflictError):
    """FSM transition not allowed from the record's current state."""

    default_error_code: str = "INVALID_STATE_TRANSITION"
    http_status: int = 409


__all__ = [
    "PaymentError",
    "ProviderError",
    "ProviderUnavailable",
    "GatewayRejected",
    "TransientNetwork",
    "NotFound",
    "OrderNotFound",
    "PaymentNotFound",
    "TransactionNotFound",
    "RefundNotFound",
    "Unauthorized",
    "ReconciliationAmbiguous",
    "PaymentValidationError",
    "InvalidStateTransitionError",
]
