"""
Health check endpoint
"""
import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from api.serializers.health import HealthCheckSerializer

logger = logging.getLogger(__name__)


class HealthCheckView(APIView):
    """
    System health check endpoint.

    Returns the status of the API and database connectivity.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        responses={200: HealthCheckSerializer},
        description="Check system health status"
    )
    def get(self, request):
        db_status = "healthy"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except DatabaseError as e:
            logger.error(f"Health check database failure: {e}")
            db_status = f"unhealthy: {str(e)}"

        response_data = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.SPECTACULAR_SETTINGS['VERSION'],
            "database": db_status,
            "timestamp": timezone.now().isoformat()
        }

        return Response(response_data, status=status.HTTP_200_OK)
