"""
Infrastructure endpoints that sit outside the business apps.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness/readiness probe.

    The database is required; the cache and the payment providers are
    reported but do not make the service unhealthy (a missing provider
    only disables that provider).

    Returns:
        200 when the database answers, 503 otherwise.

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "providers": {"flutterwave": true, "paystack": false}
        }
    """
    from payments.adapters import build_adapters

    health_status = {
        "status": "healthy",
        "database": "connected",
        "cache": "connected",
    }
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        logger.error("Health check: database unreachable", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        status_code = 503

    # django-redis is configured with IGNORE_EXCEPTIONS, so an outage reads as a miss
    cache.set("health_check", "ok", timeout=1)
    if cache.get("health_check") != "ok":
        health_status["cache"] = "disconnected"

    health_status["providers"] = {
        provider: adapter.is_configured for provider, adapter in build_adapters().items()
    }

    return JsonResponse(health_status, status=status_code)
