"""
Table view: sortable columns, column visibility/order and row selection.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel

from ..models.contact import Contact
from ..models.views import TableColumnPreferences


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(getattr(value, 'value', value))


@dataclass(frozen=True)
class TableColumn:
    id: str
    label: str
    accessor: Callable[[Contact], Any]
    sortable: bool = True


COLUMNS: list[TableColumn] = [
    TableColumn('name', 'Name', lambda c: c.display_name()),
    TableColumn('email', 'Email', lambda c: c.email),
    TableColumn('company', 'Company', lambda c: c.company),
    TableColumn('title', 'Title', lambda c: c.role),
    TableColumn('status', 'Status', lambda c: c.status),
    TableColumn('interest_level', 'Interest', lambda c: c.interest_level),
    TableColumn('ai_score', 'AI Score', lambda c: c.ai_score or 0),
    TableColumn('last_connected', 'Last Contact', lambda c: c.last_connected or 'Never'),
    TableColumn('industry', 'Industry', lambda c: c.industry or '-'),
    TableColumn('phone', 'Phone', lambda c: c.phone or '-', sortable=False),
    TableColumn('tags', 'Tags', lambda c: c.tags, sortable=False),
]

COLUMNS_BY_ID = {column.id: column for column in COLUMNS}


class SortState(BaseModel):
    field: str = 'name'
    direction: str = 'asc'

    def toggle(self, field: str) -> 'SortState':
        """Same column flips direction; a new column starts ascending."""
        if field == self.field:
            return SortState(field=field, direction='desc' if self.direction == 'asc' else 'asc')
        return SortState(field=field, direction='asc')


def _sort_key(column: TableColumn) -> Callable[[Contact], Any]:
    def key(contact: Contact) -> Any:
        value = column.accessor(contact)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return _text(value).lower()

    return key


def sort_contacts(contacts: list[Contact], sort: SortState) -> list[Contact]:
    """Stable sort by the column's accessor; unknown columns keep input order."""
    column = COLUMNS_BY_ID.get(sort.field)
    if column is None:
        return list(contacts)
    return sorted(contacts, key=_sort_key(column), reverse=sort.direction == 'desc')


@dataclass
class TableColumns:
    """Visible columns in display order, widths and the selected rows."""

    visible: list[str] = field(default_factory=lambda: [c.id for c in COLUMNS])
    order: list[str] = field(default_factory=lambda: [c.id for c in COLUMNS])
    widths: dict[str, int] = field(default_factory=dict)
    selected: set[str] = field(default_factory=set)

    @classmethod
    def from_preferences(cls, prefs: TableColumnPreferences | None) -> 'TableColumns':
        columns = cls()
        if prefs:
            if prefs.visible_columns:
                columns.visible = list(prefs.visible_columns)
            if prefs.column_order:
                columns.order = list(prefs.column_order)
            columns.widths = dict(prefs.column_widths)
        return columns

    def to_preferences(self) -> TableColumnPreferences:
        return TableColumnPreferences(
            visible_columns=list(self.visible),
            column_order=list(self.order),
            column_widths=dict(self.widths),
        )

    def displayed(self) -> list[TableColumn]:
        return [COLUMNS_BY_ID[c] for c in self.order if c in self.visible and c in COLUMNS_BY_ID]

    def toggle_visibility(self, column_id: str) -> None:
        if column_id in self.visible:
            self.visible.remove(column_id)
        else:
            self.visible.append(column_id)

    def move(self, column_id: str, new_index: int) -> None:
        if column_id not in self.order:
            return
        self.order.remove(column_id)
        self.order.insert(max(0, min(new_index, len(self.order))), column_id)

    # Row selection

    def toggle_row(self, contact_id: str) -> None:
        if contact_id in self.selected:
            self.selected.discard(contact_id)
        else:
            self.selected.add(contact_id)

    def toggle_all(self, contacts: list[Contact]) -> None:
        """Select every row, or clear the selection when all are already selected."""
        ids = {c.id for c in contacts}
        self.selected = set() if ids and ids <= self.selected else ids

    def all_selected(self, contacts: list[Contact]) -> bool:
        return bool(contacts) and len(self.selected) == len(contacts)
