"""
Core views providing infrastructure endpoints and view helpers.

This module contains:
- health_check: Liveness endpoint for containers and load balancers
- failure_response: Render a failed ServiceResult with the right status
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)

# Error codes that are not plain 400s. Codes ending in _NOT_FOUND are 404.
ERROR_CODE_STATUS = {
    "NOT_PARTICIPANT": status.HTTP_403_FORBIDDEN,
    "NOT_MESSAGE_OWNER": status.HTTP_403_FORBIDDEN,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "POLICY_EXISTS": status.HTTP_409_CONFLICT,
    "EMAIL_EXISTS": status.HTTP_409_CONFLICT,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
}


def failure_response(result: ServiceResult) -> Response:
    """
    Convert a failed ServiceResult into a DRF Response.

    Status is looked up in ERROR_CODE_STATUS, then inferred from a
    ``*_NOT_FOUND`` suffix, and defaults to 400.
    """
    code = result.error_code or ""
    if code in ERROR_CODE_STATUS:
        http_status = ERROR_CODE_STATUS[code]
    elif code.endswith("NOT_FOUND"):
        http_status = status.HTTP_404_NOT_FOUND
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response(result.to_response(), status=http_status)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable
    """
    health_status = {"status": "healthy", "database": "unknown"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.error("Health check database query failed", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)
