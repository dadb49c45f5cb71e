"""
Account workflows: staff registration, login and password changes
"""
import logging
from typing import Dict, Tuple

from apps.core.exceptions import (
    AuthenticationException,
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
)
from .models import Customer, Staff
from .tokens import RESET_TOKEN_TYPE, create_access_token, create_password_reset_token, decode_token

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _check_password_length(password: str):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field='password',
        )


def register_staff(data: Dict, is_active: bool = True) -> Staff:
    email = data['email'].lower()
    if Staff.objects.filter(email__iexact=email).exists():
        raise ValidationException("Email already registered", field='email')
    _check_password_length(data.get('password'))

    staff = Staff(
        name=data['name'],
        email=email,
        phone=data.get('phone', ''),
        role=data.get('role', 'staff'),
        is_active=is_active,
    )
    staff.set_password(data['password'])
    staff.save()
    logger.info(f"Registered staff {staff.email}")
    return staff


def login_staff(email: str, password: str) -> Tuple[Staff, str]:
    staff = Staff.objects.filter(email__iexact=email).first()
    if staff is None or not staff.check_password(password):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationException("Invalid credentials")
    if not staff.is_active:
        raise AuthenticationException("Account is deactivated")
    logger.info(f"Staff login: {staff.email}")
    return staff, create_access_token(staff)


def login_customer(email: str, password: str) -> Tuple[Customer, str]:
    customer = Customer.objects.filter(email__iexact=email).first()
    if customer is None or not customer.check_password(password):
        logger.warning(f"Failed customer login for {email}")
        raise AuthenticationException("Invalid credentials")
    if not customer.is_active:
        raise AuthenticationException("Account is deactivated")
    return customer, create_access_token(customer)


def change_password(principal, current_password: str, new_password: str):
    if not principal.check_password(current_password):
        raise AuthenticationException("Current password is incorrect")
    _check_password_length(new_password)
    principal.set_password(new_password)
    principal.save(update_fields=['password', 'updated_at'])
    logger.info(f"Password changed for {principal.email}")


def request_password_reset(email: str):
    """
    Issue a reset token for a known staff email. Unknown emails are ignored
    so callers cannot probe which addresses exist.
    """
    staff = Staff.objects.filter(email__iexact=email, is_active=True).first()
    if staff is None:
        logger.info(f"Password reset requested for unknown email {email}")
        return None
    token = create_password_reset_token(staff)
    logger.info(f"Password reset token issued for {staff.email}")
    logger.debug(f"Reset code for {staff.email}: {token}")
    return token


def reset_password(code: str, password: str, confirm_password: str) -> Staff:
    if password != confirm_password:
        raise ValidationException("Passwords do not match", field='confirmPassword')
    _check_password_length(password)

    payload = decode_token(code, expected_type=RESET_TOKEN_TYPE)
    staff = Staff.objects.filter(pk=payload.get('id')).first()
    if staff is None:
        raise ResourceNotFoundException("Staff", payload.get('id'))
    staff.set_password(password)
    staff.save(update_fields=['password', 'updated_at'])
    logger.info(f"Password reset completed for {staff.email}")
    return staff


def ensure_unique_customer_contact(email=None, phone=None, exclude_id=None):
    qs = Customer.objects.all()
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    if email and qs.filter(email__iexact=email).exists():
        raise ConflictException("Customer with this email already exists")
    if phone and qs.filter(phone=phone).exists():
        raise ConflictException("Customer with this phone already exists")
