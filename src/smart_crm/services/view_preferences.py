"""
Per-user view preferences stored in the backend.

Tables:
- user_view_preferences: current/last used view
- view_filters: filter and sort config per view (unique on user_id, view_type)
- kanban_column_configs, table_column_preferences, dashboard_widget_layouts,
  timeline_view_preferences: one row per user
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from ..clients.backend_client import BackendClient, Filter
from ..errors import BackendAuthError
from ..models.views import (
    DashboardLayout,
    KanbanColumn,
    KanbanConfig,
    TableColumnPreferences,
    TimelinePreferences,
    ViewFilterConfig,
    ViewType,
)
from ..result import Result, capture

logger = structlog.get_logger(__name__)

USER_VIEW_TABLE = 'user_view_preferences'
VIEW_FILTERS_TABLE = 'view_filters'
KANBAN_TABLE = 'kanban_column_configs'
TABLE_COLUMNS_TABLE = 'table_column_preferences'
DASHBOARD_TABLE = 'dashboard_widget_layouts'
TIMELINE_TABLE = 'timeline_view_preferences'

# Cleared by a full reset; the current-view row is kept
RESETTABLE_TABLES = (
    VIEW_FILTERS_TABLE,
    KANBAN_TABLE,
    TABLE_COLUMNS_TABLE,
    DASHBOARD_TABLE,
    TIMELINE_TABLE,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ViewPreferencesService:
    """
    Reads and writes one user's view preferences.

    Singleton rows are updated when present and inserted otherwise.
    """

    def __init__(self, backend: BackendClient, user_id: str | None):
        self.backend = backend
        self.user_id = user_id

    def _owner(self) -> list[Filter]:
        if not self.user_id:
            raise BackendAuthError('You must be logged in')
        return [Filter.eq('user_id', self.user_id)]

    async def _get_row(self, table: str, *extra: Filter) -> dict[str, Any] | None:
        result = await self.backend.select(table, filters=[*self._owner(), *extra], limit=1)
        return result.first

    async def _save_singleton(self, table: str, values: dict[str, Any]) -> None:
        owner = self._owner()
        if await self._get_row(table):
            await self.backend.update(table, {**values, 'updated_at': _now()}, filters=owner)
        else:
            await self.backend.insert(table, {'user_id': self.user_id, **values})
        logger.info('view_preferences.saved', table=table)

    # =========================================================================
    # Current view
    # =========================================================================

    async def get_current_view(self) -> Result[ViewType | None]:
        return await capture(self._get_current_view(), 'view_preferences.current.failed')

    async def _get_current_view(self) -> ViewType | None:
        row = await self._get_row(USER_VIEW_TABLE)
        if not row:
            return None
        value = row.get('last_used_view') or row.get('view_type')
        return ViewType(value) if value else None

    async def set_current_view(self, view_type: ViewType) -> Result[ViewType]:
        async def save() -> ViewType:
            await self._save_singleton(
                USER_VIEW_TABLE,
                {'view_type': view_type.value, 'last_used_view': view_type.value},
            )
            return view_type

        return await capture(save(), 'view_preferences.set_view.failed', view=view_type.value)

    # =========================================================================
    # Filters and sort
    # =========================================================================

    async def get_view_filters(self, view_type: ViewType) -> Result[ViewFilterConfig | None]:
        async def load() -> ViewFilterConfig | None:
            row = await self._get_row(VIEW_FILTERS_TABLE, Filter.eq('view_type', view_type))
            return ViewFilterConfig.model_validate(row) if row else None

        return await capture(load(), 'view_preferences.filters.failed', view=view_type.value)

    async def save_view_filters(
        self,
        view_type: ViewType,
        filter_config: dict[str, Any],
        sort_config: dict[str, Any],
    ) -> Result[ViewFilterConfig]:
        async def save() -> ViewFilterConfig:
            self._owner()
            await self.backend.upsert(
                VIEW_FILTERS_TABLE,
                {
                    'user_id': self.user_id,
                    'view_type': view_type.value,
                    'filter_config': filter_config,
                    'sort_config': sort_config,
                    'updated_at': _now(),
                },
                on_conflict='user_id,view_type',
            )
            return ViewFilterConfig(
                view_type=view_type, filter_config=filter_config, sort_config=sort_config
            )

        return await capture(save(), 'view_preferences.save_filters.failed', view=view_type.value)

    # =========================================================================
    # Per-view layouts
    # =========================================================================

    async def get_kanban_config(self) -> Result[KanbanConfig | None]:
        async def load() -> KanbanConfig | None:
            row = await self._get_row(KANBAN_TABLE)
            return KanbanConfig.model_validate(row) if row else None

        return await capture(load(), 'view_preferences.kanban.failed')

    async def save_kanban_config(
        self, column_field: str, columns: list[KanbanColumn]
    ) -> Result[KanbanConfig]:
        config = KanbanConfig(column_field=column_field, columns=columns)

        async def save() -> KanbanConfig:
            await self._save_singleton(KANBAN_TABLE, config.model_dump(mode='json'))
            return config

        return await capture(save(), 'view_preferences.save_kanban.failed')

    async def get_table_columns(self) -> Result[TableColumnPreferences | None]:
        async def load() -> TableColumnPreferences | None:
            row = await self._get_row(TABLE_COLUMNS_TABLE)
            return TableColumnPreferences.model_validate(row) if row else None

        return await capture(load(), 'view_preferences.table.failed')

    async def save_table_columns(
        self, preferences: TableColumnPreferences
    ) -> Result[TableColumnPreferences]:
        async def save() -> TableColumnPreferences:
            await self._save_singleton(TABLE_COLUMNS_TABLE, preferences.model_dump(mode='json'))
            return preferences

        return await capture(save(), 'view_preferences.save_table.failed')

    async def get_dashboard_layout(self) -> Result[DashboardLayout | None]:
        async def load() -> DashboardLayout | None:
            row = await self._get_row(DASHBOARD_TABLE)
            return DashboardLayout.model_validate(row) if row else None

        return await capture(load(), 'view_preferences.dashboard.failed')

    async def save_dashboard_layout(self, layout: DashboardLayout) -> Result[DashboardLayout]:
        async def save() -> DashboardLayout:
            await self._save_singleton(DASHBOARD_TABLE, layout.model_dump(mode='json'))
            return layout

        return await capture(save(), 'view_preferences.save_dashboard.failed')

    async def get_timeline_preferences(self) -> Result[TimelinePreferences | None]:
        async def load() -> TimelinePreferences | None:
            row = await self._get_row(TIMELINE_TABLE)
            return TimelinePreferences.model_validate(row) if row else None

        return await capture(load(), 'view_preferences.timeline.failed')

    async def save_timeline_preferences(
        self, preferences: TimelinePreferences
    ) -> Result[TimelinePreferences]:
        async def save() -> TimelinePreferences:
            await self._save_singleton(TIMELINE_TABLE, preferences.model_dump(mode='json'))
            return preferences

        return await capture(save(), 'view_preferences.save_timeline.failed')

    # =========================================================================
    # Reset
    # =========================================================================

    async def reset(self, view_type: ViewType | None = None) -> Result[list[str]]:
        """
        Forget saved preferences.

        With a view type only that view's filters go; without one every
        preference table is cleared for the user.
        """

        async def clear() -> list[str]:
            owner = self._owner()
            if view_type is not None:
                await self.backend.delete(
                    VIEW_FILTERS_TABLE, filters=[*owner, Filter.eq('view_type', view_type)]
                )
                logger.info('view_preferences.reset', view=view_type.value)
                return [VIEW_FILTERS_TABLE]
            for table in RESETTABLE_TABLES:
                await self.backend.delete(table, filters=owner)
            logger.info('view_preferences.reset_all')
            return list(RESETTABLE_TABLES)

        return await capture(clear(), 'view_preferences.reset.failed')
