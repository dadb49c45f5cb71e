"""
CSV export helpers shared by every resource.

A field map is a list of ``{"label", "key", "formatter"}`` dicts. ``key`` may
be a dotted path into nested dicts or attributes, and ``formatter`` (when
given) is called as ``formatter(value, record)``.
"""
import csv
import io
import json
import logging
from decimal import Decimal
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse, StreamingHttpResponse
from django.utils import timezone

logger = logging.getLogger(__name__)

CSV_DIALECT = {
    'delimiter': ',',
    'quotechar': '"',
    'quoting': csv.QUOTE_MINIMAL,
    'lineterminator': '\r\n',
}


def field(label: str, key: str, formatter: Optional[Callable] = None) -> Dict:
    return {"label": label, "key": key, "formatter": formatter}


def resolve(record: Any, key: str) -> Any:
    """Follow a dotted key through dicts and attributes."""
    value = record
    for part in key.split('.'):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _render(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (list, tuple)):
        return '; '.join(_render(item) for item in value)
    return str(value)


def _rows(records: Iterable, fields: List[Dict]) -> Iterable[List[str]]:
    yield [f.get('label') or f['key'] for f in fields]
    for record in records:
        row = []
        for f in fields:
            value = resolve(record, f['key'])
            formatter = f.get('formatter')
            if formatter is not None:
                value = formatter(value, record)
            row.append(_render(value))
        yield row


def generate_csv(records: Iterable, fields: List[Dict]) -> str:
    """
    Render records as RFC 4180 text. An empty record set renders as ''.
    """
    records = list(records)
    if not records:
        return ''
    buffer = io.StringIO()
    writer = csv.writer(buffer, **CSV_DIALECT)
    writer.writerows(_rows(records, fields))
    return buffer.getvalue()


class Echo:
    """An object that implements just the write method of the file-like interface."""
    def write(self, value):
        return value


def csv_response(records: Iterable, fields: List[Dict], filename: str) -> StreamingHttpResponse:
    """
    Stream records as a CSV attachment named ``<filename>.csv``.
    """
    records = list(records)
    writer = csv.writer(Echo(), **CSV_DIALECT)
    rows = _rows(records, fields) if records else iter(())
    response = StreamingHttpResponse(
        (writer.writerow(row) for row in rows),
        content_type='text/csv',
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}.csv"'
    logger.info(f"CSV export {filename}: {len(records)} records")
    return response


def json_response(records: List[Dict], filename: str, filters: Optional[Dict] = None) -> HttpResponse:
    """
    Serve records as a JSON attachment with export metadata.
    """
    payload = {
        "exportedAt": timezone.now().isoformat(),
        "totalRecords": len(records),
        "filters": filters or {},
        "data": records,
    }
    response = HttpResponse(
        json.dumps(payload, cls=DjangoJSONEncoder, indent=2),
        content_type='application/json',
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}.json"'
    logger.info(f"JSON export {filename}: {len(records)} records")
    return response


def dated_filename(name: str) -> str:
    return f"{name}_{timezone.localdate().isoformat()}"


# Formatters

def format_currency(value, record=None) -> str:
    if value is None or value == '':
        return '0.00'
    return f"{Decimal(str(value)):.2f}"


def format_date(value, record=None) -> str:
    if not value:
        return ''
    if isinstance(value, datetime):
        value = timezone.localtime(value) if timezone.is_aware(value) else value
    if isinstance(value, (datetime, date)):
        return f"{value.strftime('%b')} {value.day}, {value.year}"
    return str(value)


def format_datetime(value, record=None) -> str:
    if not value:
        return ''
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return f"{format_date(value)}, {value.strftime('%I:%M %p')}"
    return format_date(value)


def format_yes_no(value, record=None) -> str:
    return 'Yes' if value else 'No'
