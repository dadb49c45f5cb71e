"""
Customer endpoints: admin management, storefront login and exports
"""
import logging

from django.db.models import Count, Max, Q, Sum
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts import services as account_services
from apps.accounts.models import Customer
from apps.core.csv_export import csv_response, dated_filename, field, format_currency, format_date, json_response
from apps.sales.models import Order
from apps.sales.services import customer_statistics
from api.permissions import IsStaffMember, is_customer
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.accounts import CustomerSerializer, CustomerWriteSerializer, LoginSerializer
from api.serializers.sales import OrderSerializer
from api.views.auth import set_auth_cookie

logger = logging.getLogger(__name__)

RECENT_ORDER_COUNT = 5

CUSTOMER_CSV_FIELDS = [
    field('Name', 'name'),
    field('Email', 'email'),
    field('Phone', 'phone'),
    field('Address', 'address'),
    field('Total Orders', 'order_count'),
    field('Total Spent', 'order_total', format_currency),
    field('Last Order', 'last_order', format_date),
    field('Active', 'is_active'),
    field('Joined', 'created_at', format_date),
]


def filter_customers(params):
    queryset = Customer.objects.all().order_by('-created_at')
    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search)
        )
    return queryset


class CustomerListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: CustomerSerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_customers(request.query_params), CustomerSerializer)

    @extend_schema(request=CustomerWriteSerializer, responses={201: CustomerSerializer})
    def post(self, request):
        serializer = CustomerWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        customer = serializer.save()
        logger.info(f"Customer {customer.pk} created")
        return Response({"success": True, "data": CustomerSerializer(customer).data}, status=status.HTTP_201_CREATED)


class CustomerDetailView(APIView):
    """
    Customer detail with derived order statistics and the most recent
    orders.
    """
    permission_classes = [IsStaffMember]

    def get(self, request, customer_id):
        customer = get_or_404(Customer, "Customer", pk=customer_id)
        recent = Order.objects.filter(customer=customer).prefetch_related('items')[:RECENT_ORDER_COUNT]
        return Response({
            "success": True,
            "data": CustomerSerializer(customer).data,
            "statistics": customer_statistics(customer),
            "recentOrders": OrderSerializer(recent, many=True).data,
        })

    @extend_schema(request=CustomerWriteSerializer, responses={200: CustomerSerializer})
    def put(self, request, customer_id):
        customer = get_or_404(Customer, "Customer", pk=customer_id)
        serializer = CustomerWriteSerializer(customer, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        customer = serializer.save()
        return Response({"success": True, "data": CustomerSerializer(customer).data})

    def delete(self, request, customer_id):
        customer = get_or_404(Customer, "Customer", pk=customer_id)
        customer.delete()
        logger.info(f"Customer {customer_id} deleted by {request.user.email}")
        return Response({"success": True, "message": "Customer deleted successfully"})


class CustomerOrdersView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, customer_id):
        customer = get_or_404(Customer, "Customer", pk=customer_id)
        queryset = Order.objects.filter(customer=customer).prefetch_related('items')
        return paginated_response(request, queryset, OrderSerializer)


class CustomerByFirebaseView(APIView):
    """Look up a customer by Firebase UID; staff or the customer themself."""
    permission_classes = [AllowAny]

    def get(self, request, firebase_uid):
        customer = get_or_404(Customer, "Customer", firebase_uid=firebase_uid)
        user = request.user
        allowed = IsStaffMember().has_permission(request, self) or (
            is_customer(user) and user.pk == customer.pk
        )
        if not allowed:
            return Response(
                {"success": False, "error": "Access denied", "status_code": 403},
                status=status.HTTP_403_FORBIDDEN,
            )
        return Response({"success": True, "data": CustomerSerializer(customer).data})


class CustomerLoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=LoginSerializer)
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        customer, token = account_services.login_customer(
            serializer.validated_data['email'], serializer.validated_data['password']
        )
        response = Response({
            "success": True,
            "message": "Login successful",
            "token": token,
            "user": CustomerSerializer(customer).data,
        })
        return set_auth_cookie(response, token)


def customers_with_totals(params):
    return filter_customers(params).annotate(
        order_count=Count('orders'),
        order_total=Sum('orders__total_amount'),
        last_order=Max('orders__order_time'),
    )


class CustomerExportView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(parameters=[OpenApiParameter('search', str)])
    def get(self, request, export_format):
        customers = list(customers_with_totals(request.query_params))
        filename = dated_filename('customers')
        if export_format == 'csv':
            return csv_response(customers, CUSTOMER_CSV_FIELDS, filename)

        records = []
        for customer in customers:
            record = CustomerSerializer(customer).data
            record['totalOrders'] = customer.order_count
            record['totalSpent'] = customer.order_total or 0
            record['lastOrder'] = customer.last_order
            records.append(record)
        return json_response(records, filename, {"search": request.query_params.get('search')})
