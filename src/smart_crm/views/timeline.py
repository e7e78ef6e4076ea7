"""
Activity timeline across contacts, newest first.
"""

from datetime import date, datetime, time, timedelta, timezone

from ..models.contact import Contact
from ..models.views import EventType, TimelineEvent

LAST_CONTACT_TYPES = (EventType.EMAIL, EventType.CALL, EventType.MEETING, EventType.NOTE)

EVENT_LABELS = {
    EventType.EMAIL: 'Email',
    EventType.CALL: 'Call',
    EventType.MEETING: 'Meeting',
    EventType.NOTE: 'Note',
    EventType.STATUS_CHANGE: 'Status Change',
    EventType.CREATED: 'Created',
}


def _at(day: date) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def build_events(contacts: list[Contact], today: date | None = None) -> list[TimelineEvent]:
    today = today or date.today()
    events: list[TimelineEvent] = []

    for index, contact in enumerate(contacts):
        name = contact.display_name()
        if contact.created_at:
            events.append(
                TimelineEvent(
                    id=f'{contact.id}-created',
                    contact_id=contact.id,
                    contact_name=name,
                    type=EventType.CREATED,
                    title='Contact Added',
                    description=f'{name} was added to the system',
                    timestamp=_aware(contact.created_at),
                )
            )

        if contact.last_connected:
            kind = LAST_CONTACT_TYPES[index % 4]
            events.append(
                TimelineEvent(
                    id=f'{contact.id}-last-contact',
                    contact_id=contact.id,
                    contact_name=name,
                    type=kind,
                    title=f'{EVENT_LABELS[kind]} with {name}',
                    description=(
                        f"Had a productive {kind.value} discussion about {contact.company}'s needs"
                    ),
                    timestamp=_at(today - timedelta(days=index % 15)),
                )
            )

        if contact.status:
            events.append(
                TimelineEvent(
                    id=f'{contact.id}-status',
                    contact_id=contact.id,
                    contact_name=name,
                    type=EventType.STATUS_CHANGE,
                    title='Status Updated',
                    description=f'Contact status changed to {contact.status}',
                    timestamp=_at(today - timedelta(days=index % 20)),
                )
            )

    events.sort(key=lambda e: e.timestamp, reverse=True)
    return events


def filter_events(events: list[TimelineEvent], types: set[EventType]) -> list[TimelineEvent]:
    return [e for e in events if e.type in types]


def group_by_date(events: list[TimelineEvent]) -> dict[date, list[TimelineEvent]]:
    """Events bucketed by calendar day, keeping their order."""
    groups: dict[date, list[TimelineEvent]] = {}
    for event in events:
        groups.setdefault(event.timestamp.date(), []).append(event)
    return groups
