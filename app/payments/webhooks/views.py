"""
Webhook endpoint views for Flutterwave and Paystack.

Each view hands the raw request body and headers to
ReconciliationService.handle_webhook, which verifies the signature on the
unparsed bytes, records the delivery and dispatches it synchronously.

Response codes:
    - 200: Delivery accepted (processed, or nothing to do)
    - 400: Body is not a JSON object
    - 401: Signature did not verify
    - 404 / 409 / 5xx: Reconciliation error; the provider will redeliver

Usage:
    # In urls.py
    from payments.webhooks.views import flutterwave_webhook, paystack_webhook

    urlpatterns = [
        path("webhook/flutterwave/", flutterwave_webhook, name="flutterwave_webhook"),
        path("webhook/paystack/", paystack_webhook, name="paystack_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.exceptions import BaseApplicationError
from payments.state_machines import PaymentProvider

logger = logging.getLogger(__name__)


def _handle(provider: str, request: HttpRequest) -> JsonResponse:
    from payments.services import ReconciliationService

    try:
        result = ReconciliationService.handle_webhook(provider, request.body, request.headers)
    except BaseApplicationError as e:
        if e.http_status >= 500:
            logger.error(
                f"{provider} webhook failed: {e.message}",
                extra={"provider": provider, "error_code": e.error_code},
            )
        else:
            logger.warning(
                f"{provider} webhook rejected: {e.message}",
                extra={"provider": provider, "error_code": e.error_code},
            )
        body = {"success": False, "message": e.message, "error_code": e.error_code}
        return JsonResponse(body, status=e.http_status)

    body = {"success": True, "message": result.message}
    if result.warnings:
        body["warnings"] = result.warnings
    return JsonResponse(body, status=200)


@csrf_exempt
@require_POST
def flutterwave_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Flutterwave webhook.

    Flutterwave sends the dashboard secret hash verbatim in ``verif-hash``.
    """
    return _handle(PaymentProvider.FLUTTERWAVE, request)


@csrf_exempt
@require_POST
def paystack_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Paystack webhook.

    Paystack signs the body with HMAC-SHA512 of the secret key and sends
    the hex digest in ``x-paystack-signature``.
    """
    return _handle(PaymentProvider.PAYSTACK, request)
