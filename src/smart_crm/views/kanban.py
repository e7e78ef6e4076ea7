"""
Kanban board over one contact field (``status`` by default).
"""

from typing import Any, Awaitable, Callable

import structlog

from ..models.contact import Contact
from ..models.views import KanbanColumn, KanbanConfig
from ..result import Result

logger = structlog.get_logger(__name__)

DEFAULT_COLUMN_FIELD = 'status'

ContactUpdater = Callable[[str, dict[str, Any]], Awaitable[Result[Contact]]]


def default_columns() -> list[KanbanColumn]:
    return [
        KanbanColumn(id='lead', title='Lead', order=0, color='#3B82F6'),
        KanbanColumn(id='prospect', title='Prospect', order=1, color='#8B5CF6'),
        KanbanColumn(id='customer', title='Customer', order=2, color='#10B981'),
        KanbanColumn(id='churned', title='Churned', order=3, color='#EF4444'),
    ]


def _field_value(contact: Contact, field: str) -> str | None:
    value = getattr(contact, field, None)
    if value is None:
        return None
    return str(getattr(value, 'value', value))


class KanbanBoard:
    """
    Columns of contacts keyed by ``column_field``.

    Args:
        update_contact: Persists a contact change; called with the contact id
            and the changed fields only
        config: Saved board layout (default lifecycle columns when omitted)
    """

    def __init__(self, update_contact: ContactUpdater, config: KanbanConfig | None = None):
        self.update_contact = update_contact
        if config and config.columns:
            self.column_field = config.column_field
            self.columns = sorted(config.columns, key=lambda c: c.order)
        else:
            self.column_field = config.column_field if config else DEFAULT_COLUMN_FIELD
            self.columns = default_columns()

    def to_config(self) -> KanbanConfig:
        return KanbanConfig(column_field=self.column_field, columns=self.columns)

    def group(self, contacts: list[Contact]) -> dict[str, list[Contact]]:
        """Bucket contacts by column; values without a column are left out."""
        groups: dict[str, list[Contact]] = {c.id: [] for c in self.columns}
        for contact in contacts:
            value = _field_value(contact, self.column_field)
            if value in groups:
                groups[value].append(contact)
        return groups

    async def move_card(self, contact: Contact, column_id: str) -> Result[Contact]:
        """Move a card; a drop on its own column changes nothing."""
        if _field_value(contact, self.column_field) == column_id:
            return Result.ok(contact)
        result = await self.update_contact(contact.id, {self.column_field: column_id})
        if not result.success:
            logger.warning(
                'kanban.move.failed', contact_id=contact.id, column=column_id, error=result.error_message
            )
        return result

    # =========================================================================
    # Column management
    # =========================================================================

    def _renumber(self) -> None:
        for index, column in enumerate(self.columns):
            column.order = index

    def move_column_up(self, index: int) -> None:
        if index <= 0 or index >= len(self.columns):
            return
        self.columns[index - 1], self.columns[index] = self.columns[index], self.columns[index - 1]
        self._renumber()

    def move_column_down(self, index: int) -> None:
        if index < 0 or index >= len(self.columns) - 1:
            return
        self.columns[index + 1], self.columns[index] = self.columns[index], self.columns[index + 1]
        self._renumber()

    def add_column(self, column_id: str, title: str, color: str = '#6B7280') -> KanbanColumn:
        column = KanbanColumn(id=column_id, title=title, color=color, order=len(self.columns))
        self.columns.append(column)
        return column

    def remove_column(self, column_id: str) -> None:
        self.columns = [c for c in self.columns if c.id != column_id]
        self._renumber()

    def rename_column(self, column_id: str, title: str) -> None:
        for column in self.columns:
            if column.id == column_id:
                column.title = title
