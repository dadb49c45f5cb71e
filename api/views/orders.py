"""
Order endpoints

Admin order management (listing, status changes, exports) plus the
storefront checkout, order history and tracking lookups.
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
    json_response,
)
from apps.core.exceptions import ResourceNotFoundException
from apps.core.utils import apply_date_range, parse_date_range
from apps.sales import services as sales_services
from apps.sales.models import Order
from api.permissions import IsCustomer, IsStaffMember, is_customer, is_staff
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.sales import (
    AdminOrderCreateSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    PlaceOrderSerializer,
)

logger = logging.getLogger(__name__)

ORDER_FILTER_PARAMETERS = [
    OpenApiParameter('search', str, description='Invoice number, shipping name or email'),
    OpenApiParameter('status', str),
    OpenApiParameter('method', str, description='Payment method'),
    OpenApiParameter('startDate', str),
    OpenApiParameter('endDate', str),
]


def _customer_name(value, record):
    return (record.customer.name if record.customer else '') or record.shipping_name or 'N/A'


def _customer_email(value, record):
    return record.shipping_email or (record.customer.email if record.customer else '') or 'N/A'


def _customer_phone(value, record):
    return record.shipping_phone or (record.customer.phone if record.customer else '') or 'N/A'


def _address_line(value, record):
    return f"{record.shipping_street}, {record.shipping_city}, {record.shipping_state} {record.shipping_pincode}".strip()


ORDER_CSV_FIELDS = [
    field('Invoice No', 'invoice_no'),
    field('Order Date', 'order_time', format_date),
    field('Customer Name', 'customer', _customer_name),
    field('Customer Email', 'customer', _customer_email),
    field('Customer Phone', 'customer', _customer_phone),
    field('Payment Method', 'payment_method'),
    field('Payment Status', 'payment_status'),
    field('Order Status', 'status'),
    field('Subtotal', 'subtotal', format_currency),
    field('Discount', 'discount_amount', format_currency),
    field('Tax', 'tax_amount', format_currency),
    field('Shipping Cost', 'shipping_cost', format_currency),
    field('Total Amount', 'total_amount', format_currency),
    field('Shipping Address', 'shipping_street', _address_line),
]


def filter_orders(params):
    queryset = Order.objects.select_related('customer', 'coupon').prefetch_related('items')

    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(invoice_no__icontains=search)
            | Q(shipping_name__icontains=search)
            | Q(shipping_email__icontains=search)
        )
    if params.get('status'):
        queryset = queryset.filter(status=params['status'])
    if params.get('method'):
        queryset = queryset.filter(payment_method=params['method'])

    start, end = parse_date_range(params)
    return apply_date_range(queryset, 'order_time', start, end).order_by('-order_time')


class OrderListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=ORDER_FILTER_PARAMETERS + [OpenApiParameter('page', int), OpenApiParameter('limit', int)],
        responses={200: OrderSerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_orders(request.query_params), OrderSerializer)

    @extend_schema(request=AdminOrderCreateSerializer, responses={201: OrderSerializer})
    def post(self, request):
        serializer = AdminOrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        order = sales_services.create_order(serializer.validated_data)
        return Response({"success": True, "data": OrderSerializer(order).data}, status=status.HTTP_201_CREATED)


class PlaceOrderView(APIView):
    """Storefront checkout for the signed-in customer."""
    permission_classes = [IsCustomer]

    @extend_schema(request=PlaceOrderSerializer, responses={201: OrderSerializer})
    def post(self, request):
        serializer = PlaceOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        order = sales_services.place_order(request.user, serializer.validated_data)
        return Response(
            {"success": True, "message": "Order placed successfully", "data": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )


class MyOrdersView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request):
        queryset = Order.objects.filter(customer=request.user).prefetch_related('items').order_by('-order_time')
        return paginated_response(request, queryset, OrderSerializer)


class CheckPurchaseView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request, product_id):
        return Response({
            "success": True,
            "hasPurchased": sales_services.has_purchased(request.user, product_id),
        })


class OrderDetailView(APIView):
    """
    Staff see any order; a customer only sees their own.
    """
    permission_classes = [AllowAny]

    def get(self, request, order_id):
        order = get_or_404(Order, "Order", pk=order_id)
        user = request.user
        if not (is_staff(user) or (is_customer(user) and order.customer_id == user.pk)):
            raise ResourceNotFoundException("Order", order_id)
        return Response({"success": True, "data": OrderSerializer(order).data})

    def delete(self, request, order_id):
        if not is_staff(request.user):
            return Response(
                {"success": False, "error": "Staff access required", "status_code": 403},
                status=status.HTTP_403_FORBIDDEN,
            )
        order = get_or_404(Order, "Order", pk=order_id)
        sales_services.delete_order(order)
        return Response({"success": True, "message": "Order deleted successfully"})


class OrderStatusView(APIView):
    """
    Change an order's status.

    Moving into ``dispatched`` takes the ordered units out of stock; a
    shortfall on any line answers 409 and leaves the order unchanged.
    """
    permission_classes = [IsStaffMember]

    @extend_schema(request=OrderStatusSerializer, responses={200: OrderSerializer})
    def put(self, request, order_id):
        serializer = OrderStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        order = sales_services.change_order_status(
            order_id,
            serializer.validated_data['status'],
            tracking_number=serializer.validated_data.get('trackingNumber'),
            staff=request.user,
        )
        return Response({
            "success": True,
            "message": "Order status updated successfully",
            "data": OrderSerializer(order).data,
        })

    patch = put


class TrackOrderView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, tracking_number):
        order = Order.objects.filter(tracking_number=tracking_number).prefetch_related('items').first()
        if order is None:
            raise ResourceNotFoundException("Tracking number", tracking_number)
        return Response({
            "success": True,
            "orderId": order.invoice_no,
            "status": order.status,
            "estimatedDelivery": order.estimated_delivery,
            "trackingNumber": order.tracking_number,
            "shippingAddress": order.shipping_address,
            "items": OrderSerializer(order).data['items'],
            "orderTime": order.order_time,
        })


class OrderExportView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(parameters=ORDER_FILTER_PARAMETERS)
    def get(self, request, export_format):
        orders = list(filter_orders(request.query_params))
        filename = dated_filename('orders_export')
        if export_format == 'csv':
            return csv_response(orders, ORDER_CSV_FIELDS, filename)
        filters = {key: request.query_params.get(key) for key in ('search', 'status', 'method', 'startDate', 'endDate')}
        return json_response(OrderSerializer(orders, many=True).data, filename, filters)
