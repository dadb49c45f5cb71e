"""
Authentication endpoints: register, login, logout, me, password changes
"""
import logging

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts import services as account_services
from api.permissions import IsAuthenticatedPrincipal, is_staff
from api.responses import invalid_request
from api.serializers.accounts import (
    CustomerSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    RegisterSerializer,
    StaffSerializer,
    UpdatePasswordSerializer,
)

logger = logging.getLogger(__name__)


def serialize_principal(principal):
    if is_staff(principal):
        return StaffSerializer(principal).data
    return CustomerSerializer(principal).data


def set_auth_cookie(response, token: str):
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRY_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Lax',
    )
    return response


class RegisterView(APIView):
    """Request a staff account: inactive, plain staff role, until an admin activates it."""
    permission_classes = [AllowAny]

    @extend_schema(request=RegisterSerializer, responses={201: StaffSerializer})
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        staff = account_services.register_staff(
            {**serializer.validated_data, 'role': 'staff'}, is_active=False
        )
        return Response(
            {
                "success": True,
                "message": "Registration received; an admin must activate the account",
                "user": StaffSerializer(staff).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=LoginSerializer, description="Staff login; sets the auth cookie and returns the token")
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        staff, token = account_services.login_staff(
            serializer.validated_data['email'], serializer.validated_data['password']
        )
        response = Response({
            "success": True,
            "message": "Login successful",
            "token": token,
            "user": StaffSerializer(staff).data,
        })
        return set_auth_cookie(response, token)


class LogoutView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        response = Response({"success": True, "message": "Logged out successfully"})
        response.delete_cookie(settings.AUTH_COOKIE_NAME)
        return response


class MeView(APIView):
    permission_classes = [IsAuthenticatedPrincipal]

    def get(self, request):
        return Response({"success": True, "user": serialize_principal(request.user)})


class UpdatePasswordView(APIView):
    """
    Change the current password, or complete a reset with the emailed code.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=UpdatePasswordSerializer)
    def put(self, request):
        serializer = UpdatePasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        data = serializer.validated_data

        if data.get('code'):
            account_services.reset_password(data['code'], data['password'], data['confirmPassword'])
            return Response({"success": True, "message": "Password has been reset"})

        if not IsAuthenticatedPrincipal().has_permission(request, self):
            return Response(
                {"success": False, "error": "Authentication required", "status_code": 401},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        account_services.change_password(request.user, data['currentPassword'], data['newPassword'])
        return Response({"success": True, "message": "Password updated successfully"})


class ForgotPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=ForgotPasswordSerializer)
    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        account_services.request_password_reset(serializer.validated_data['email'])
        return Response({
            "success": True,
            "message": "If an account exists for this email, a reset link has been sent",
        })
