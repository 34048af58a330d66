"""
Webhook authenticity checks.

Flutterwave sends the dashboard "secret hash" verbatim in the
``verif-hash`` header. Paystack signs the raw request body with
HMAC-SHA512 keyed by the account secret key and sends the hex digest in
``x-paystack-signature``.

Both checks run on the exact bytes received; re-serializing a parsed
payload changes whitespace and key order and breaks the signature.
Missing configuration or headers fail closed (False), never raise.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Mapping

from django.conf import settings

from payments.state_machines import PaymentProvider

logger = logging.getLogger(__name__)

FLUTTERWAVE_SIGNATURE_HEADER = "verif-hash"
PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


def verify_flutterwave_signature(
    raw_body: bytes,
    signature_header: str | None,
    secret_hash: str | None,
) -> bool:
    """
    Check a Flutterwave ``verif-hash`` header.

    The body is not part of the check; it is accepted so both verifiers
    share one signature.
    """
    if not secret_hash or not signature_header:
        return False
    return hmac.compare_digest(
        signature_header.strip().encode("utf-8"),
        secret_hash.encode("utf-8"),
    )


def compute_paystack_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_paystack_signature(
    raw_body: bytes,
    signature_header: str | None,
    secret: str | None,
) -> bool:
    """Check an ``x-paystack-signature`` HMAC-SHA512 hex digest."""
    if not secret or not signature_header or raw_body is None:
        return False
    expected = compute_paystack_signature(raw_body, secret)
    try:
        return hmac.compare_digest(
            expected.encode("ascii"),
            signature_header.strip().lower().encode("ascii"),
        )
    except UnicodeEncodeError:
        return False


def _header(headers: Mapping[str, str], name: str) -> str | None:
    # Django's request.headers is case-insensitive; plain dicts are not.
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value


def verify_webhook(provider: str, raw_body: bytes, headers: Mapping[str, str]) -> bool:
    """Verify a delivery for ``provider`` using the configured secret."""
    if provider == PaymentProvider.FLUTTERWAVE:
        return verify_flutterwave_signature(
            raw_body,
            _header(headers, FLUTTERWAVE_SIGNATURE_HEADER),
            settings.FLUTTERWAVE_SECRET_HASH,
        )
    if provider == PaymentProvider.PAYSTACK:
        return verify_paystack_signature(
            raw_body,
            _header(headers, PAYSTACK_SIGNATURE_HEADER),
            settings.PAYSTACK_SECRET_KEY,
        )

    logger.warning("Webhook verification requested for unknown provider", extra={"provider": provider})
    return False
