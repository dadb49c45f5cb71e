"""
Custom Exception Handler for API
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

from apps.core.exceptions import BazaarException

logger = logging.getLogger(__name__)


def _message_from(data, fallback: str) -> str:
    if isinstance(data, dict) and 'detail' in data:
        return str(data['detail'])
    if isinstance(data, list) and data:
        return str(data[0])
    return fallback


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error responses:
    ``{"success": false, "error", "details", "status_code"}``.
    """
    if isinstance(exc, BazaarException):
        details = {"code": exc.code}
        if getattr(exc, 'field', None):
            details["field"] = exc.field
        if exc.status_code >= 500:
            logger.error(f"Domain error: {exc.message}")
        else:
            logger.info(f"Request rejected ({exc.status_code}): {exc.message}")
        return Response(
            {
                "success": False,
                "error": exc.message,
                "details": details,
                "status_code": exc.status_code,
            },
            status=exc.status_code,
        )

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        response.data = {
            "success": False,
            "error": _message_from(response.data, "Invalid request"),
            "details": response.data if isinstance(response.data, dict) else {"detail": response.data},
            "status_code": response.status_code
        }
    else:
        # Handle unexpected exceptions
        logger.exception(f"Unhandled exception: {exc}")
        response = Response(
            {
                "success": False,
                "error": "An unexpected error occurred",
                "details": {"exception": str(exc)},
                "status_code": 500
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
