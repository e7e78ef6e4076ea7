"""Kanban, calendar, timeline and dashboard views over the user's contacts."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from smart_crm.models.contact import Contact
from smart_crm.models.views import EventType
from smart_crm.services.contacts import ContactRepository
from smart_crm.services.view_preferences import ViewPreferencesService
from smart_crm.views import calendar, timeline
from smart_crm.views.dashboard import compute_metrics
from smart_crm.views.kanban import KanbanBoard

from ..dependencies import get_contact_repository, get_view_preferences, unwrap

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/views", tags=["views"])

MAX_VIEW_CONTACTS = 1000


class MoveCard(BaseModel):
    contact_id: str
    column_id: str


async def _all_contacts(repo: ContactRepository) -> list[Contact]:
    return unwrap(await repo.list(limit=MAX_VIEW_CONTACTS)).contacts


async def _board(repo: ContactRepository, prefs: ViewPreferencesService) -> KanbanBoard:
    config = unwrap(await prefs.get_kanban_config())
    return KanbanBoard(update_contact=repo.update, config=config)


@router.get("/kanban")
async def kanban(
    repo: ContactRepository = Depends(get_contact_repository),
    prefs: ViewPreferencesService = Depends(get_view_preferences),
):
    board = await _board(repo, prefs)
    groups = board.group(await _all_contacts(repo))
    return {
        "column_field": board.column_field,
        "columns": [
            {
                **column.model_dump(),
                "contacts": [c.model_dump(mode="json", by_alias=True) for c in groups[column.id]],
            }
            for column in board.columns
        ],
    }


@router.post("/kanban/move")
async def move_card(
    move: MoveCard,
    repo: ContactRepository = Depends(get_contact_repository),
    prefs: ViewPreferencesService = Depends(get_view_preferences),
):
    board = await _board(repo, prefs)
    contact = unwrap(await repo.get(move.contact_id))
    moved = unwrap(await board.move_card(contact, move.column_id))
    return moved.model_dump(mode="json", by_alias=True)


@router.get("/calendar")
async def calendar_view(
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    repo: ContactRepository = Depends(get_contact_repository),
):
    today = date.today()
    year = year or today.year
    month = month or today.month
    grid = calendar.month_grid(year, month)
    entries = [
        e
        for e in calendar.build_entries(await _all_contacts(repo), today)
        if e.date.year == year and e.date.month == month
    ]
    return {
        "grid": grid.model_dump(),
        "entries": [e.model_dump(mode="json") for e in entries],
    }


@router.get("/timeline")
async def timeline_view(
    types: list[EventType] = Query(default=[]),
    repo: ContactRepository = Depends(get_contact_repository),
):
    events = timeline.build_events(await _all_contacts(repo))
    if types:
        events = timeline.filter_events(events, set(types))
    return {"events": [e.model_dump(mode="json") for e in events]}


@router.get("/dashboard")
async def dashboard(repo: ContactRepository = Depends(get_contact_repository)):
    return compute_metrics(await _all_contacts(repo)).model_dump(mode="json")
