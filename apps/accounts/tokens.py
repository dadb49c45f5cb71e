"""
JWT issuing and verification for staff and customer sessions
"""
import logging
from datetime import timedelta
from typing import Dict, Optional

from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt

from apps.core.exceptions import AuthenticationException

logger = logging.getLogger(__name__)

RESET_TOKEN_TYPE = 'password_reset'


def _encode(payload: Dict, expires_in: timedelta) -> str:
    claims = dict(payload)
    claims['exp'] = timezone.now() + expires_in
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(principal) -> str:
    """
    Issue a session token carrying ``{id, email, role, type}``.
    """
    payload = {
        "id": str(principal.id),
        "email": principal.email,
        "role": principal.role,
        "type": principal.principal_type,
    }
    return _encode(payload, timedelta(days=settings.JWT_EXPIRY_DAYS))


def create_password_reset_token(staff) -> str:
    payload = {"id": str(staff.id), "email": staff.email, "type": RESET_TOKEN_TYPE}
    return _encode(payload, timedelta(minutes=settings.PASSWORD_RESET_EXPIRY_MINUTES))


def decode_token(token: str, expected_type: Optional[str] = None) -> Dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected token: {e}")
        raise AuthenticationException("Invalid or expired token")

    if expected_type and payload.get('type') != expected_type:
        raise AuthenticationException("Invalid token type")
    return payload
