"""
Infrastructure endpoints outside the payments API.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness and readiness check.

    GET /health/

    The database decides the verdict: 200 when it answers, 503 when it
    does not. A broken cache is reported but still answers 200.

    Response:
        {"status": "healthy" | "unhealthy",
         "database": "connected" | "disconnected",
         "cache": "connected" | "disconnected"}
    """
    body = {"status": "healthy", "database": "unknown", "cache": "unknown"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        body["database"] = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        body["database"] = "disconnected"
        body["status"] = "unhealthy"

    try:
        cache.set("health_check", "ok", timeout=1)
        body["cache"] = "connected" if cache.get("health_check") == "ok" else "disconnected"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        body["cache"] = "disconnected"

    return JsonResponse(body, status=200 if body["status"] == "healthy" else 503)
