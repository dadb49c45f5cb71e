"""
Stock endpoints: stock records, alerts, exports and the inventory log
"""
import logging

from django.db.models import F, Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.csv_export import csv_response, dated_filename, field, format_date, json_response
from apps.core.utils import parse_bool, parse_uuid
from apps.inventory import services as inventory_services
from apps.inventory.models import InventoryLog, Stock
from api.permissions import IsStaffMember
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.inventory import (
    InventoryLogSerializer,
    StockBulkSyncSerializer,
    StockBulkUpdateSerializer,
    StockCreateSerializer,
    StockQuantitySerializer,
    StockSerializer,
    StockUpdateSerializer,
)

logger = logging.getLogger(__name__)

STOCK_FILTER_PARAMETERS = [
    OpenApiParameter('productId', str),
    OpenApiParameter('variantId', str),
    OpenApiParameter('lowStock', bool, description='Only entries at or below their minimum'),
]


def _stock_label(value, record):
    quantity = record.quantity or 0
    if quantity <= 0:
        return 'Out of Stock'
    if quantity <= record.min_stock:
        return 'Low Stock'
    return 'In Stock'


STOCK_CSV_FIELDS = [
    field('Product Name', 'product.name'),
    field('SKU', 'product.sku', lambda value, record: value or 'N/A'),
    field('Product Type', 'product.product_type'),
    field('Variant', 'variant.slug', lambda value, record: value or 'Base Product'),
    field('Quantity', 'quantity'),
    field('Min Stock', 'min_stock'),
    field('Status', 'quantity', _stock_label),
    field('Notes', 'notes'),
    field('Last Updated', 'updated_at', format_date),
]


def filter_stock(params):
    queryset = Stock.objects.select_related('product', 'variant').order_by('-updated_at')
    if params.get('productId'):
        queryset = queryset.filter(product_id=parse_uuid(params['productId']))
    if params.get('variantId'):
        queryset = queryset.filter(variant_id=parse_uuid(params['variantId']))
    if parse_bool(params.get('lowStock'), False):
        queryset = queryset.filter(Q(quantity__lte=F('min_stock')) | Q(quantity__isnull=True))
    return queryset


class StockListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=STOCK_FILTER_PARAMETERS + [OpenApiParameter('page', int), OpenApiParameter('limit', int)],
        responses={200: StockSerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_stock(request.query_params), StockSerializer)

    @extend_schema(request=StockCreateSerializer, responses={201: StockSerializer})
    def post(self, request):
        serializer = StockCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        stock = inventory_services.create_stock(staff=request.user, **serializer.validated_data)
        return Response({"success": True, "data": StockSerializer(stock).data}, status=status.HTTP_201_CREATED)


class StockDetailView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, stock_id):
        stock = get_or_404(Stock, "Stock entry", pk=stock_id)
        return Response({"success": True, "data": StockSerializer(stock).data})

    @extend_schema(request=StockUpdateSerializer, responses={200: StockSerializer})
    def put(self, request, stock_id):
        stock = get_or_404(Stock, "Stock entry", pk=stock_id)
        serializer = StockUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        stock = inventory_services.update_stock(stock, serializer.validated_data, staff=request.user)
        return Response({"success": True, "data": StockSerializer(stock).data})

    def delete(self, request, stock_id):
        stock = get_or_404(Stock, "Stock entry", pk=stock_id)
        inventory_services.delete_stock(stock)
        return Response({"success": True, "message": "Stock entry deleted successfully"})


class StockQuantityView(APIView):
    """Quick quantity change from the stock table."""
    permission_classes = [IsStaffMember]

    @extend_schema(request=StockQuantitySerializer, responses={200: StockSerializer})
    def patch(self, request, stock_id):
        stock = get_or_404(Stock, "Stock entry", pk=stock_id)
        serializer = StockQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        stock = inventory_services.update_stock(
            stock, serializer.validated_data, staff=request.user, reason="Quick quantity update"
        )
        return Response({"success": True, "data": StockSerializer(stock).data})


class StockBulkUpdateView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=StockBulkUpdateSerializer)
    def post(self, request):
        serializer = StockBulkUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        result = inventory_services.bulk_update(serializer.validated_data['updates'], staff=request.user)
        return Response({
            "success": True,
            "data": StockSerializer(result['results'], many=True).data,
            "syncResults": result['syncResults'],
        })


class StockBulkSyncView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=StockBulkSyncSerializer)
    def post(self, request):
        serializer = StockBulkSyncSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        summary = inventory_services.bulk_sync(**serializer.validated_data)
        return Response({
            "success": True,
            "message": f"Synced {summary['success']} stock entries",
            "results": summary,
        })


class LowStockAlertsView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(parameters=[OpenApiParameter('threshold', float, description='Multiplier on min stock')])
    def get(self, request):
        try:
            threshold = float(request.query_params.get('threshold', 1))
        except ValueError:
            threshold = 1.0
        alerts = inventory_services.low_stock_alerts(threshold)
        return Response({
            "success": True,
            "data": alerts,
            "count": len(alerts),
            "criticalCount": sum(1 for a in alerts if a['severity'] == 'critical'),
            "highCount": sum(1 for a in alerts if a['severity'] == 'high'),
            "mediumCount": sum(1 for a in alerts if a['severity'] == 'medium'),
        })


class StockExportView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(parameters=STOCK_FILTER_PARAMETERS)
    def get(self, request, export_format):
        stocks = list(filter_stock(request.query_params))
        filename = dated_filename('stock')
        if export_format == 'csv':
            return csv_response(stocks, STOCK_CSV_FIELDS, filename)
        filters = {key: request.query_params.get(key) for key in ('productId', 'variantId', 'lowStock')}
        return json_response(StockSerializer(stocks, many=True).data, filename, filters)


class InventoryLogListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=[
            OpenApiParameter('productId', str),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: InventoryLogSerializer(many=True)},
    )
    def get(self, request):
        queryset = InventoryLog.objects.select_related('product', 'staff').order_by('-created_at')
        product_id = request.query_params.get('productId')
        if product_id:
            queryset = queryset.filter(product_id=parse_uuid(product_id))
        return paginated_response(request, queryset, InventoryLogSerializer)
