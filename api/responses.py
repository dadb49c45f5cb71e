"""
Response helpers shared by the API views
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response

from apps.core.exceptions import ResourceNotFoundException
from apps.core.utils import empty_pagination, get_page_params, paginate

logger = logging.getLogger(__name__)


def paginated_response(request, queryset, serializer_class, extra=None, context=None):
    """
    Serialize one page of ``queryset`` as
    ``{"success": true, "data": [...], "pagination": {...}}``.

    A database failure is logged and answered with an empty page and 500.
    """
    page, limit = get_page_params(request.query_params)
    try:
        records, pagination = paginate(queryset, page, limit)
    except DatabaseError as e:
        logger.error(f"List query failed for {request.path}: {e}")
        return Response(
            {
                "success": False,
                "error": "Failed to load records",
                "data": [],
                "pagination": empty_pagination(page, limit),
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    serializer_context = {"request": request}
    serializer_context.update(context or {})
    payload = {
        "success": True,
        "data": serializer_class(records, many=True, context=serializer_context).data,
        "pagination": pagination,
    }
    if extra:
        payload.update(extra)
    return Response(payload)


def invalid_request(serializer):
    return Response(
        {
            "success": False,
            "error": "Invalid request",
            "details": serializer.errors,
            "status_code": status.HTTP_400_BAD_REQUEST,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def get_or_404(model, label: str = None, **lookup):
    """Fetch one record or raise ``ResourceNotFoundException``."""
    try:
        return model.objects.get(**lookup)
    except (model.DoesNotExist, ValueError, ValidationError):
        raise ResourceNotFoundException(label or model._meta.verbose_name.title(), lookup)
