"""
Payment reference generation and parsing.

References have the form ``TX-{order_id}-{epoch_ms}``. The order id may
itself contain dashes (UUIDs do), so parsing strips the fixed prefix and
the trailing timestamp and treats everything in between as the order id.

Parsing is the last-resort recovery path; the PaymentReference table is
consulted first.
"""

from __future__ import annotations

import time

REFERENCE_PREFIX = "TX-"


def current_epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_reference(order_id, now_ms: int | None = None) -> str:
    """
    Build a payment reference for an order.

    Args:
        order_id: Order primary key (UUID or string)
        now_ms: Epoch milliseconds, defaults to the current time
    """
    if now_ms is None:
        now_ms = current_epoch_ms()
    return f"{REFERENCE_PREFIX}{order_id}-{now_ms}"


def parse_reference(reference: str | None) -> str | None:
    """
    Recover the order id embedded in a reference.

    Returns None when the reference does not follow the
    ``TX-{order_id}-{epoch_ms}`` shape.

    Example:
        >>> parse_reference("TX-order123-1699999999999")
        'order123'
    """
    if not reference or not reference.startswith(REFERENCE_PREFIX):
        return None

    body = reference[len(REFERENCE_PREFIX):]
    order_id, sep, timestamp = body.rpartition("-")
    if not sep or not order_id or not timestamp.isdigit():
        return None
    return order_id


def looks_local(reference: str | None) -> bool:
    """True if the reference was generated by this service."""
    return bool(reference) and reference.startswith(REFERENCE_PREFIX)
