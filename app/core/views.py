"""
Core views providing infrastructure endpoints.

These views are not part of the messaging domain but are needed by the
deployment: the health check used by Docker and load balancers, and the
DRF exception handler that renders application errors.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import connection
from django.http import JsonResponse
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - channel_layer: "connected", "disconnected" or "not_configured"

    HTTP Status Codes:
        200: Database reachable (live delivery may be degraded)
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Live delivery degrades to push and history fetch without the layer,
    # so it never fails the check.
    channel_layer = get_channel_layer()
    if channel_layer is None:
        health_status["channel_layer"] = "not_configured"
    else:
        try:
            channel_name = async_to_sync(channel_layer.new_channel)()
            async_to_sync(channel_layer.send)(channel_name, {"type": "health.check"})
            health_status["channel_layer"] = "connected"
        except Exception:
            logger.warning("Health check: channel layer unreachable", exc_info=True)
            health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)


def api_exception_handler(exc, context):
    """
    DRF exception handler that also renders application errors.

    BaseApplicationError subclasses raised out of a view (for example
    TransientStoreError once store retries are exhausted) become
    ``{"error", "error_code"}`` responses with the error's http_status.
    Everything else is left to DRF's default handler.

    Configured via REST_FRAMEWORK["EXCEPTION_HANDLER"].
    """
    if isinstance(exc, BaseApplicationError):
        if exc.http_status >= 500:
            view = context.get("view")
            logger.error(f"{exc} raised in {view.__class__.__name__}")
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
