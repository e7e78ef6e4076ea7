"""
CSV and JSON export of the records currently on screen.

Rows keep the order they were displayed in; every CSV cell is quoted.
"""

import csv
import io
import json
from datetime import date
from typing import Any, Iterable, Mapping

import structlog

from .errors import ExportError
from .models.contact import Contact
from .models.product import ProductContactMatch

logger = structlog.get_logger(__name__)

CONTACT_COLUMNS = [
    'id',
    'firstName',
    'lastName',
    'email',
    'phone',
    'title',
    'company',
    'industry',
    'interestLevel',
    'status',
    'aiScore',
]

MATCH_COLUMNS = ['Name', 'Email', 'Company', 'Title', 'Industry', 'Match Score', 'Top Reason']

FORMATS = {
    'csv': 'text/csv',
    'json': 'application/json',
}


def _cell(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(getattr(value, 'value', value))


def to_csv(records: Iterable[Mapping[str, Any]], columns: list[str]) -> str:
    """One header row, then one row per record; quotes inside cells are doubled."""
    if not columns:
        raise ExportError('At least one column is required')
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(columns)
    for record in records:
        writer.writerow([_cell(record.get(column)) for column in columns])
    return buffer.getvalue().rstrip('\n')


def to_json(records: Iterable[Any]) -> str:
    return json.dumps(list(records), indent=2, default=str)


def export_filename(prefix: str, fmt: str, today: date | None = None) -> str:
    """``contacts-2024-01-15.csv``"""
    return f'{prefix}-{(today or date.today()).isoformat()}.{fmt}'


def export_contacts(contacts: list[Contact], fmt: str = 'csv') -> str:
    if fmt not in FORMATS:
        raise ExportError(f'Unsupported export format: {fmt}', context={'format': fmt})
    records = [c.to_export_dict() for c in contacts]
    logger.info('export.contacts', count=len(records), format=fmt)
    if fmt == 'json':
        return to_json(records)
    return to_csv(records, CONTACT_COLUMNS)


def match_export_rows(matches: list[ProductContactMatch]) -> list[dict[str, Any]]:
    rows = []
    for match in matches:
        contact = match.contact
        rows.append(
            {
                'Name': contact.name if contact else '',
                'Email': contact.email if contact else '',
                'Company': contact.company if contact else '',
                'Title': contact.title if contact else '',
                'Industry': contact.industry if contact else '',
                'Match Score': match.match_score,
                'Top Reason': match.match_reasons[0].reason if match.match_reasons else '',
            }
        )
    return rows


def export_matches(matches: list[ProductContactMatch]) -> str:
    logger.info('export.matches', count=len(matches))
    return to_csv(match_export_rows(matches), MATCH_COLUMNS)
