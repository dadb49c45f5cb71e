"""
CSV upload parsing shared by the import endpoints.

Rows are numbered the way a spreadsheet shows them: the header is row 1,
so the first data row is row 2.
"""
import csv
import io
import logging
from contextlib import contextmanager
from decimal import InvalidOperation
from typing import Dict, Iterator, List, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError

from .exceptions import BazaarException, ValidationException

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2


def read_rows(upload) -> Iterator[Tuple[int, Dict[str, str]]]:
    """
    Yield ``(row_number, row)`` for each data row of an uploaded CSV file,
    with surrounding whitespace stripped from headers and values.
    """
    try:
        text = upload.read().decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationException("CSV file must be UTF-8 encoded", field='file')

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationException("CSV file is empty", field='file')
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    for index, row in enumerate(reader):
        yield index + FIRST_DATA_ROW, {
            key: (value or '').strip() for key, value in row.items() if key is not None
        }


def missing_columns(row: Dict[str, str], required: List[str]) -> List[str]:
    return [column for column in required if not row.get(column)]


def split_list(value: str, separator: str = ';') -> List[str]:
    return [part.strip() for part in (value or '').split(separator) if part.strip()]


class ImportReport:
    """Accumulates the ``{imported, skipped, errors}`` summary of an import."""

    def __init__(self):
        self.imported = 0
        self.skipped = 0
        self.errors = []

    def skip(self, row: int, message: str):
        """Count a row as skipped and record why."""
        self.skipped += 1
        self.errors.append({"row": row, "error": message})

    @contextmanager
    def row(self, row: int):
        """
        Run one row's writes; a failure skips the row instead of aborting
        the import. Wrap the row's ``transaction.atomic()`` block in this so
        its savepoint is rolled back first.
        """
        try:
            yield
        except (DatabaseError, DjangoValidationError, InvalidOperation, BazaarException) as e:
            logger.warning(f"Import row {row} failed: {e}")
            self.skip(row, str(e))

    def as_dict(self) -> Dict:
        return {"imported": self.imported, "skipped": self.skipped, "errors": self.errors}
