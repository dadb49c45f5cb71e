"""
Utility functions for the Bazaar commerce backend
"""
import re
import random
import uuid
import logging
from datetime import datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    """
    Lowercase the value, collapse every run of non-alphanumerics into a
    single hyphen and strip hyphens from both ends.
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (value or '').lower())
    return slug.strip('-')


def parse_bool(value: Any, default: Optional[bool] = None) -> Optional[bool]:
    """
    Interpret query-string booleans ("true", "1", "yes" and their negatives).
    """
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('true', '1', 'yes', 'on'):
        return True
    if lowered in ('false', '0', 'no', 'off'):
        return False
    return default


def parse_int(value: Any, default: int, minimum: Optional[int] = None,
              maximum: Optional[int] = None) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        result = default
    if minimum is not None and result < minimum:
        result = minimum
    if maximum is not None and result > maximum:
        result = maximum
    return result


def parse_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default


def _to_datetime(value: str, end_of_day: bool = False) -> Optional[datetime]:
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            logger.warning(f"Ignoring unparseable date value: {value}")
            return None
        parsed = datetime.combine(day, time.max if end_of_day else time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_default_timezone())
    return parsed


def parse_date_range(params) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Read ``startDate`` / ``endDate`` from query parameters.

    A bare end date covers the whole day, through 23:59:59.999999.
    """
    start = _to_datetime(params.get('startDate'))
    end = _to_datetime(params.get('endDate'), end_of_day=True)
    return start, end


def apply_date_range(queryset, field: str, start: Optional[datetime], end: Optional[datetime]):
    if start:
        queryset = queryset.filter(**{f'{field}__gte': start})
    if end:
        queryset = queryset.filter(**{f'{field}__lte': end})
    return queryset


def get_page_params(params) -> Tuple[int, int]:
    page = parse_int(params.get('page'), 1, minimum=1)
    limit = parse_int(
        params.get('limit'),
        settings.PAGINATION_DEFAULT_LIMIT,
        minimum=1,
        maximum=settings.PAGINATION_MAX_LIMIT,
    )
    return page, limit


def empty_pagination(page: int = 1, limit: int = 0) -> Dict:
    return {
        "items": 0,
        "current": page,
        "limit": limit,
        "pages": 0,
        "prev": None,
        "next": None,
    }


def paginate(queryset, page: int, limit: int) -> Tuple[List, Dict]:
    """
    Slice a queryset into one page.

    Returns the page's records and the pagination block
    ``{items, current, limit, pages, prev, next}`` where ``items`` is the
    total number of matching records. A page past the end yields no records.
    """
    paginator = Paginator(queryset, limit)
    total = paginator.count
    pages = paginator.num_pages if total else 0
    try:
        records = list(paginator.page(page).object_list)
    except EmptyPage:
        records = []

    pagination = {
        "items": total,
        "current": page,
        "limit": limit,
        "pages": pages,
        "prev": page - 1 if page > 1 else None,
        "next": page + 1 if page < pages else None,
    }
    return records, pagination


def generate_invoice_number() -> str:
    """Invoice numbers look like ``ORD-<epoch millis>-<3 digits>``."""
    millis = int(timezone.now().timestamp() * 1000)
    return f"ORD-{millis}-{random.randint(0, 999):03d}"


def end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999999)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def unique_slug(model, value: str, exclude_pk=None, field: str = 'slug') -> str:
    """
    Slugify ``value`` and append ``-2``, ``-3``... until no other row of
    ``model`` uses it.
    """
    base = slugify(value) or 'item'
    candidate = base
    suffix = 2
    qs = model.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    while qs.filter(**{field: candidate}).exists():
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
