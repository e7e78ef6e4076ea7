"""
View preference container: the active view plus per-view filters, sort and
board/table layouts, persisted through ViewPreferencesService.
"""

from typing import Any

import structlog

from ..models.views import KanbanConfig, TableColumnPreferences, ViewType
from ..result import Result
from ..services.view_preferences import ViewPreferencesService
from ..views.filtering import ContactFilters
from ..views.table import SortState

logger = structlog.get_logger(__name__)


class ViewState:
    """Local copy of a user's view settings; every action writes through."""

    def __init__(self, service: ViewPreferencesService):
        self.service = service
        self.current_view: ViewType = ViewType.LIST
        self.filters: dict[ViewType, ContactFilters] = {}
        self.sort: dict[ViewType, SortState] = {}
        self.kanban: KanbanConfig | None = None
        self.table: TableColumnPreferences | None = None

    def filters_for(self, view: ViewType) -> ContactFilters:
        return self.filters.get(view, ContactFilters())

    def sort_for(self, view: ViewType) -> SortState:
        return self.sort.get(view, SortState())

    async def load(self, view: ViewType | None = None) -> Result[ViewType]:
        """Pull the saved current view and the saved filters for ``view`` (or the current one)."""
        current = await self.service.get_current_view()
        if not current.success:
            return Result.fail(current.error)
        if current.data:
            self.current_view = current.data

        target = view or self.current_view
        saved = await self.service.get_view_filters(target)
        if not saved.success:
            return Result.fail(saved.error)
        if saved.data:
            self.filters[target] = ContactFilters.model_validate(saved.data.filter_config)
            if saved.data.sort_config:
                self.sort[target] = SortState.model_validate(saved.data.sort_config)
        return Result.ok(self.current_view)

    async def set_view(self, view: ViewType) -> Result[ViewType]:
        previous = self.current_view
        self.current_view = view
        result = await self.service.set_current_view(view)
        if not result.success:
            self.current_view = previous
        return result

    async def set_filters(self, view: ViewType, filters: ContactFilters) -> Result[Any]:
        self.filters[view] = filters
        return await self._persist(view)

    async def set_sort(self, view: ViewType, sort: SortState) -> Result[Any]:
        self.sort[view] = sort
        return await self._persist(view)

    async def toggle_sort(self, view: ViewType, field: str) -> Result[Any]:
        return await self.set_sort(view, self.sort_for(view).toggle(field))

    async def _persist(self, view: ViewType) -> Result[Any]:
        return await self.service.save_view_filters(
            view,
            self.filters_for(view).model_dump(mode='json', exclude_defaults=True),
            self.sort_for(view).model_dump(mode='json'),
        )

    async def save_kanban(self, config: KanbanConfig) -> Result[KanbanConfig]:
        self.kanban = config
        return await self.service.save_kanban_config(config.column_field, config.columns)

    async def save_table(self, prefs: TableColumnPreferences) -> Result[TableColumnPreferences]:
        self.table = prefs
        return await self.service.save_table_columns(prefs)

    async def reset(self, view: ViewType | None = None) -> Result[list[str]]:
        result = await self.service.reset(view)
        if result.success:
            if view is None:
                self.filters.clear()
                self.sort.clear()
                self.kanban = None
                self.table = None
            else:
                self.filters.pop(view, None)
                self.sort.pop(view, None)
            logger.info('view_state.reset', view=view.value if view else 'all')
        return result
