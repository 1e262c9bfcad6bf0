"""
Core views providing infrastructure endpoints.

The health check and the shared ServiceResult-to-Response helper live here;
domain endpoints belong to their apps.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.services import ServiceResult

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for container probes and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable (cache problems only degrade)
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.error("Health check: database unreachable", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache failure is not critical: settlement runs on the database alone
    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)


# HTTP status for failed ServiceResults, by error code
ERROR_CODE_STATUS = {
    "PROJECT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MILESTONE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TRANSACTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "WALLET_TRANSACTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ARBITRATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ARBITRATOR_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "NOT_PROJECT_EMPLOYER": status.HTTP_403_FORBIDDEN,
    "NOT_PROJECT_PARTY": status.HTTP_403_FORBIDDEN,
    "NOT_TRANSACTION_PARTY": status.HTTP_403_FORBIDDEN,
    "ADMIN_REQUIRED": status.HTTP_403_FORBIDDEN,
    "ARBITRATOR_NOT_ASSIGNED": status.HTTP_403_FORBIDDEN,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "DUPLICATE_MILESTONE_PAYMENT": status.HTTP_409_CONFLICT,
    "CONTRACTOR_NOT_ASSIGNED": status.HTTP_409_CONFLICT,
    "INVALID_TRANSACTION_STATE": status.HTTP_409_CONFLICT,
    "CASE_NOT_IN_ASSIGNED_STATE": status.HTTP_409_CONFLICT,
    "CASE_NOT_PENDING": status.HTTP_409_CONFLICT,
    "CASE_ALREADY_OPEN": status.HTTP_409_CONFLICT,
    "CASE_NOT_RESOLVED": status.HTTP_409_CONFLICT,
    "ALREADY_RATED": status.HTTP_409_CONFLICT,
    "EXTERNAL_SERVICE_ERROR": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_ERROR": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
}


def failure_response(result: ServiceResult) -> Response:
    """
    Turn a failed ServiceResult into a DRF Response.

    Unknown error codes are client errors (400).
    """
    http_status = ERROR_CODE_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return Response(result.to_response(), status=http_status)
