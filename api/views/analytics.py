"""
Analytics report endpoints

``GET /api/analytics/<report>`` answers JSON, or a CSV download when
``format=csv`` is given.
"""
import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.analytics.cache import cached_report
from apps.analytics.reports import CSV_LAYOUTS, GROUPINGS, build_report
from apps.core.csv_export import csv_response, dated_filename
from apps.core.exceptions import ResourceNotFoundException, ValidationException
from apps.core.utils import parse_date_range
from api.permissions import IsStaffMember

logger = logging.getLogger(__name__)


class AnalyticsReportView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=[
            OpenApiParameter('startDate', str),
            OpenApiParameter('endDate', str, description='Inclusive through the end of the day'),
            OpenApiParameter('groupBy', str, description='day, week, month or year (revenue only)'),
            OpenApiParameter('format', str, description='csv for a file download'),
        ],
        description="Sales, product, customer, order, inventory, category and payment reports",
    )
    def get(self, request, report):
        if report not in CSV_LAYOUTS:
            raise ResourceNotFoundException("Report", report)

        params = request.query_params
        group_by = params.get('groupBy') or 'day'
        if group_by not in GROUPINGS:
            raise ValidationException(
                f"groupBy must be one of: {', '.join(GROUPINGS)}", field='groupBy'
            )

        start, end = parse_date_range(params)
        cache_params = {"start": start, "end": end, "groupBy": group_by if report == 'revenue' else None}
        data = cached_report(report, cache_params, lambda: build_report(report, start, end, group_by))

        if params.get('format') == 'csv':
            flatten, fields, filename = CSV_LAYOUTS[report]
            return csv_response(flatten(data), fields, dated_filename(filename))

        return Response({"success": True, "data": data})
