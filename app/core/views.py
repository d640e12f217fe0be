"""
Core views providing infrastructure endpoints.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness/readiness probe.

    The database is required; the cache (Redis) only degrades the report,
    since the sweep lock is the one feature that needs it.

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    health_status = {"status": "healthy", "database": "connected", "cache": "connected"}
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except Exception:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        status_code = 503

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") != "ok":
            health_status["cache"] = "disconnected"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=status_code)
