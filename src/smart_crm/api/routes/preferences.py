"""Saved view preferences for the signed-in user."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from smart_crm.models.views import (
    DashboardLayout,
    KanbanConfig,
    TableColumnPreferences,
    TimelinePreferences,
    ViewType,
)
from smart_crm.services.view_preferences import ViewPreferencesService
from smart_crm.views.kanban import default_columns

from ..dependencies import get_view_preferences, unwrap

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/preferences", tags=["preferences"])


class CurrentView(BaseModel):
    view_type: ViewType


class FilterUpdate(BaseModel):
    filter_config: dict[str, Any] = Field(default_factory=dict)
    sort_config: dict[str, Any] = Field(default_factory=dict)


class ResetRequest(BaseModel):
    view_type: ViewType | None = None


def _dump(model: BaseModel | None) -> dict[str, Any] | None:
    return model.model_dump(mode="json") if model is not None else None


@router.get("/current")
async def get_current_view(prefs: ViewPreferencesService = Depends(get_view_preferences)):
    view = unwrap(await prefs.get_current_view())
    return {"view_type": (view or ViewType.LIST).value}


@router.put("/current")
async def set_current_view(body: CurrentView, prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return {"view_type": unwrap(await prefs.set_current_view(body.view_type)).value}


@router.get("/filters/{view_type}")
async def get_filters(view_type: ViewType, prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.get_view_filters(view_type)))


@router.put("/filters/{view_type}")
async def save_filters(
    view_type: ViewType,
    body: FilterUpdate,
    prefs: ViewPreferencesService = Depends(get_view_preferences),
):
    return _dump(unwrap(await prefs.save_view_filters(view_type, body.filter_config, body.sort_config)))


@router.get("/kanban")
async def get_kanban(prefs: ViewPreferencesService = Depends(get_view_preferences)):
    config = unwrap(await prefs.get_kanban_config())
    return _dump(config or KanbanConfig(columns=default_columns()))


@router.put("/kanban")
async def save_kanban(body: KanbanConfig, prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.save_kanban_config(body.column_field, body.columns)))


@router.get("/table")
async def get_table(prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.get_table_columns()))


@router.put("/table")
async def save_table(
    body: TableColumnPreferences,
    prefs: ViewPreferencesService = Depends(get_view_preferences),
):
    return _dump(unwrap(await prefs.save_table_columns(body)))


@router.get("/dashboard")
async def get_dashboard(prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.get_dashboard_layout()) or DashboardLayout())


@router.put("/dashboard")
async def save_dashboard(body: DashboardLayout, prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.save_dashboard_layout(body)))


@router.get("/timeline")
async def get_timeline(prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return _dump(unwrap(await prefs.get_timeline_preferences()) or TimelinePreferences())


@router.put("/timeline")
async def save_timeline(
    body: TimelinePreferences,
    prefs: ViewPreferencesService = Depends(get_view_preferences),
):
    return _dump(unwrap(await prefs.save_timeline_preferences(body)))


@router.post("/reset")
async def reset(body: ResetRequest, prefs: ViewPreferencesService = Depends(get_view_preferences)):
    return {"cleared": unwrap(await prefs.reset(body.view_type))}
