"""Contact CRUD, search, import, export and activity endpoints."""

from typing import Any, Literal

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from smart_crm.export import FORMATS, export_contacts, export_filename
from smart_crm.models.contact import ContactCreate
from smart_crm.services.activity import ContactActivityService
from smart_crm.services.contacts import ContactQuery, ContactRepository
from smart_crm.views.filtering import ContactFilters, apply_filters
from smart_crm.views.table import SortState, sort_contacts

from ..auth import Session, require_session
from ..dependencies import get_contact_repository, unwrap

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])

MAX_EXPORT_ROWS = 1000


def contact_query(
    search: str | None = None,
    interest_level: str | None = None,
    status: str | None = None,
    industry: str | None = None,
    has_ai_score: bool | None = None,
    score_min: int | None = Query(default=None, ge=0, le=100),
    score_max: int | None = Query(default=None, ge=0, le=100),
) -> ContactQuery:
    return ContactQuery(
        search=search,
        interest_level=interest_level,
        status=status,
        industry=industry,
        has_ai_score=has_ai_score,
        score_min=score_min,
        score_max=score_max,
    )


def _dump(contact) -> dict[str, Any]:
    return contact.model_dump(mode="json", by_alias=True)


@router.get("")
async def list_contacts(
    query: ContactQuery = Depends(contact_query),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    sort_by: str | None = None,
    sort_order: Literal["asc", "desc"] = "desc",
    repo: ContactRepository = Depends(get_contact_repository),
):
    page = unwrap(await repo.list(query, limit=limit, offset=offset, sort_by=sort_by, sort_order=sort_order))
    return {
        "contacts": [_dump(c) for c in page.contacts],
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
        "has_more": page.has_more,
    }


@router.get("/search")
async def search_contacts(
    q: str = Query(..., min_length=1),
    repo: ContactRepository = Depends(get_contact_repository),
):
    page = unwrap(await repo.search(q))
    return {"contacts": [_dump(c) for c in page.contacts], "total": page.total}


@router.get("/export")
async def export(
    format: Literal["csv", "json"] = "csv",
    query: ContactQuery = Depends(contact_query),
    sort_field: str = "name",
    sort_direction: Literal["asc", "desc"] = "asc",
    tags: list[str] = Query(default=[]),
    is_favorite: bool | None = None,
    repo: ContactRepository = Depends(get_contact_repository),
):
    """Download the filtered, sorted contact list as an attachment."""
    page = unwrap(await repo.list(query, limit=MAX_EXPORT_ROWS))
    contacts = apply_filters(page.contacts, ContactFilters(tags=tags, is_favorite=is_favorite))
    contacts = sort_contacts(contacts, SortState(field=sort_field, direction=sort_direction))
    body = export_contacts(contacts, format)
    filename = export_filename("contacts", format)
    return Response(
        content=body,
        media_type=FORMATS[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", status_code=201)
async def import_contacts(
    contacts: list[ContactCreate],
    repo: ContactRepository = Depends(get_contact_repository),
):
    created = unwrap(await repo.bulk_create(contacts))
    return {"contacts": [_dump(c) for c in created], "count": len(created)}


@router.post("", status_code=201)
async def create_contact(
    data: ContactCreate,
    repo: ContactRepository = Depends(get_contact_repository),
):
    return _dump(unwrap(await repo.create(data)))


@router.get("/{contact_id}")
async def get_contact(contact_id: str, repo: ContactRepository = Depends(get_contact_repository)):
    return _dump(unwrap(await repo.get(contact_id)))


@router.get("/{contact_id}/activity")
async def contact_activity(contact_id: str, session: Session = Depends(require_session)):
    service = ContactActivityService(session.backend, session.user_id)
    return unwrap(await service.for_contact(contact_id)).model_dump(mode="json")


@router.patch("/{contact_id}")
async def update_contact(
    contact_id: str,
    updates: dict[str, Any],
    repo: ContactRepository = Depends(get_contact_repository),
):
    return _dump(unwrap(await repo.update(contact_id, updates)))


@router.delete("/{contact_id}")
async def delete_contact(contact_id: str, repo: ContactRepository = Depends(get_contact_repository)):
    return {"deleted": unwrap(await repo.delete(contact_id))}
