"""
Month calendar of contact touchpoints.

Entries are derived from the contacts themselves: a last-contact entry for
contacts that have been connected with and a follow-up meeting for everyone.
"""

import calendar
from datetime import date, timedelta

from pydantic import BaseModel

from ..models.contact import Contact
from ..models.views import CalendarEntry, EventType

LAST_CONTACT_TYPES = (EventType.EMAIL, EventType.CALL, EventType.MEETING, EventType.NOTE)


class MonthGrid(BaseModel):
    year: int
    month: int
    days_in_month: int
    starting_day_of_week: int
    total_cells: int


def month_grid(year: int, month: int) -> MonthGrid:
    """
    Layout of one month with Sunday as the first column.

    ``total_cells`` is rounded up to whole weeks.
    """
    days = calendar.monthrange(year, month)[1]
    # date.weekday(): Monday=0; shift so Sunday=0
    starting = (date(year, month, 1).weekday() + 1) % 7
    cells = -(-(days + starting) // 7) * 7
    return MonthGrid(
        year=year,
        month=month,
        days_in_month=days,
        starting_day_of_week=starting,
        total_cells=cells,
    )


def build_entries(contacts: list[Contact], today: date | None = None) -> list[CalendarEntry]:
    today = today or date.today()
    entries: list[CalendarEntry] = []
    for index, contact in enumerate(contacts):
        name = contact.display_name()
        if contact.last_connected:
            entries.append(
                CalendarEntry(
                    id=f'{contact.id}-last',
                    contact_id=contact.id,
                    contact_name=name,
                    type=LAST_CONTACT_TYPES[index % 4],
                    date=today - timedelta(days=index % 30),
                    title=f'Last contact with {name}',
                )
            )
        entries.append(
            CalendarEntry(
                id=f'{contact.id}-followup',
                contact_id=contact.id,
                contact_name=name,
                type=EventType.MEETING,
                date=today + timedelta(days=index % 14),
                title=f'Follow-up with {name}',
            )
        )
    return entries


def entries_for_date(entries: list[CalendarEntry], day: date) -> list[CalendarEntry]:
    return [e for e in entries if e.date == day]


def entries_by_date(entries: list[CalendarEntry]) -> dict[date, list[CalendarEntry]]:
    buckets: dict[date, list[CalendarEntry]] = {}
    for entry in entries:
        buckets.setdefault(entry.date, []).append(entry)
    return buckets


def navigate_month(current: date, delta: int) -> date:
    """First day of the month ``delta`` months away from ``current``."""
    months = current.year * 12 + (current.month - 1) + delta
    return date(months // 12, months % 12 + 1, 1)
