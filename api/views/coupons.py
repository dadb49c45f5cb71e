"""
Coupon endpoints
"""
import logging

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.csv_export import (
    csv_response,
    dated_filename,
    field,
    format_currency,
    format_date,
    format_yes_no,
    json_response,
)
from apps.sales.models import Coupon
from apps.sales.services import resolve_coupon
from api.permissions import IsStaffMember
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.sales import CouponSerializer, CouponValidateSerializer

logger = logging.getLogger(__name__)


def _discount_label(value, record):
    if record.discount_type == 'percentage':
        return f"{value}%"
    return format_currency(value)


COUPON_CSV_FIELDS = [
    field('Campaign Name', 'campaign_name'),
    field('Code', 'code'),
    field('Discount Type', 'discount_type'),
    field('Discount', 'discount_value', _discount_label),
    field('Min Purchase', 'min_purchase', format_currency),
    field('Max Discount', 'max_discount', format_currency),
    field('Usage Limit', 'usage_limit'),
    field('Used', 'used_count'),
    field('Start Date', 'start_date', format_date),
    field('End Date', 'end_date', format_date),
    field('Published', 'published', format_yes_no),
    field('Expired', 'is_expired', format_yes_no),
]


def filter_coupons(params):
    queryset = Coupon.objects.all().order_by('-created_at')
    search = params.get('search')
    if search:
        queryset = queryset.filter(Q(campaign_name__icontains=search) | Q(code__icontains=search))
    return queryset


class CouponListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str, description='Campaign name or code'),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: CouponSerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_coupons(request.query_params), CouponSerializer)

    @extend_schema(request=CouponSerializer, responses={201: CouponSerializer})
    def post(self, request):
        serializer = CouponSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        coupon = serializer.save()
        logger.info(f"Coupon {coupon.code} created")
        return Response({"success": True, "data": CouponSerializer(coupon).data}, status=status.HTTP_201_CREATED)


class CouponDetailView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, coupon_id):
        coupon = get_or_404(Coupon, "Coupon", pk=coupon_id)
        return Response({"success": True, "data": CouponSerializer(coupon).data})

    @extend_schema(request=CouponSerializer, responses={200: CouponSerializer})
    def put(self, request, coupon_id):
        coupon = get_or_404(Coupon, "Coupon", pk=coupon_id)
        serializer = CouponSerializer(coupon, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        coupon = serializer.save()
        return Response({"success": True, "data": CouponSerializer(coupon).data})

    def delete(self, request, coupon_id):
        coupon = get_or_404(Coupon, "Coupon", pk=coupon_id)
        coupon.delete()
        logger.info(f"Coupon {coupon.code} deleted")
        return Response({"success": True, "message": "Coupon deleted successfully"})


class CouponTogglePublishedView(APIView):
    permission_classes = [IsStaffMember]

    def patch(self, request, coupon_id):
        coupon = get_or_404(Coupon, "Coupon", pk=coupon_id)
        coupon.published = not coupon.published
        coupon.save(update_fields=['published', 'updated_at'])
        return Response({"success": True, "data": CouponSerializer(coupon).data})


class CouponValidateView(APIView):
    """
    Check a code against a cart subtotal and report the discount it gives.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=CouponValidateSerializer)
    def post(self, request):
        serializer = CouponValidateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        subtotal = serializer.validated_data['subtotal']
        coupon = resolve_coupon(serializer.validated_data['code'], subtotal)
        discount = coupon.compute_discount(subtotal)
        return Response({
            "success": True,
            "data": {
                "code": coupon.code,
                "discountType": coupon.discount_type,
                "discountValue": coupon.discount_value,
                "discount": discount,
                "totalAfterDiscount": subtotal - discount,
            },
        })


class CouponExportView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(parameters=[OpenApiParameter('search', str)])
    def get(self, request, export_format):
        coupons = list(filter_coupons(request.query_params))
        filename = dated_filename('coupons')
        if export_format == 'csv':
            return csv_response(coupons, COUPON_CSV_FIELDS, filename)
        return json_response(
            CouponSerializer(coupons, many=True).data, filename, {"search": request.query_params.get('search')}
        )
