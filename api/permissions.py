"""
Permission classes for admin and storefront endpoints
"""
from rest_framework.permissions import SAFE_METHODS, BasePermission


def is_staff(user) -> bool:
    return user is not None and getattr(user, 'principal_type', None) == 'staff'


def is_customer(user) -> bool:
    return user is not None and getattr(user, 'principal_type', None) == 'customer'


class IsStaffMember(BasePermission):
    message = 'Staff access required'

    def has_permission(self, request, view):
        return is_staff(request.user)


class IsAdminRole(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return is_staff(request.user) and request.user.role in ('admin', 'superadmin')


class IsCustomer(BasePermission):
    message = 'Customer access required'

    def has_permission(self, request, view):
        return is_customer(request.user)


class IsAuthenticatedPrincipal(BasePermission):
    def has_permission(self, request, view):
        return is_staff(request.user) or is_customer(request.user)


class ReadOnlyOrStaff(BasePermission):
    """Public reads, staff-only writes."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return is_staff(request.user)
