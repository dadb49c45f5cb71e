"""
Staff management endpoints
"""
import logging

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.models import Staff
from api.permissions import IsAdminRole, IsStaffMember
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.accounts import StaffSerializer, StaffWriteSerializer

logger = logging.getLogger(__name__)


class StaffListView(APIView):
    """
    List staff members or add a new one.

    Reads are open to any staff member; writes need the admin role.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdminRole()]
        return [IsStaffMember()]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str, description='Match name, email or phone'),
            OpenApiParameter('role', str),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: StaffSerializer(many=True)},
    )
    def get(self, request):
        queryset = Staff.objects.all().order_by('-created_at')

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search)
            )
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        return paginated_response(request, queryset, StaffSerializer)

    @extend_schema(request=StaffWriteSerializer, responses={201: StaffSerializer})
    def post(self, request):
        serializer = StaffWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        staff = serializer.save()
        logger.info(f"Staff {staff.email} created by {request.user.email}")
        return Response({"success": True, "data": StaffSerializer(staff).data}, status=status.HTTP_201_CREATED)


class StaffDetailView(APIView):

    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsStaffMember()]
        return [IsAdminRole()]

    def get(self, request, staff_id):
        staff = get_or_404(Staff, "Staff", pk=staff_id)
        return Response({"success": True, "data": StaffSerializer(staff).data})

    @extend_schema(request=StaffWriteSerializer, responses={200: StaffSerializer})
    def put(self, request, staff_id):
        staff = get_or_404(Staff, "Staff", pk=staff_id)
        serializer = StaffWriteSerializer(staff, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        staff = serializer.save()
        return Response({"success": True, "data": StaffSerializer(staff).data})

    def delete(self, request, staff_id):
        staff = get_or_404(Staff, "Staff", pk=staff_id)
        if staff.pk == request.user.pk:
            return Response(
                {"success": False, "error": "You cannot delete your own account", "status_code": 400},
                status=status.HTTP_400_BAD_REQUEST,
            )
        staff.delete()
        logger.info(f"Staff {staff.email} deleted by {request.user.email}")
        return Response({"success": True, "message": "Staff deleted successfully"})


class StaffToggleActiveView(APIView):
    permission_classes = [IsAdminRole]

    def patch(self, request, staff_id):
        staff = get_or_404(Staff, "Staff", pk=staff_id)
        staff.is_active = not staff.is_active
        staff.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Staff {staff.email} active={staff.is_active}")
        return Response({"success": True, "data": StaffSerializer(staff).data})
