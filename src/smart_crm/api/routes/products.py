"""Product catalog, contact matching and outreach draft endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from smart_crm.errors import PartialSuccessResult
from smart_crm.export import export_matches
from smart_crm.models.contact import Contact
from smart_crm.models.product import (
    DraftTone,
    DraftType,
    MatchTier,
    ProductContactMatch,
    ProductDraft,
    ProductInput,
    UserProduct,
)
from smart_crm.services.contacts import ContactRepository
from smart_crm.services.drafts import DraftFilters, DraftService
from smart_crm.services.matches import MatchFilters, MatchService, match_stats
from smart_crm.services.matching import ReasoningEffort
from smart_crm.services.products import ProductService

from ..dependencies import (
    get_contact_repository,
    get_draft_service,
    get_match_service,
    get_product_service,
    unwrap,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["products"])


class DuplicateProduct(BaseModel):
    name: str = Field(..., min_length=1)


class AIMatchRequest(BaseModel):
    contact_id: str
    effort: ReasoningEffort = ReasoningEffort.MEDIUM


class DraftRequest(BaseModel):
    contact_id: str
    draft_type: DraftType = DraftType.EMAIL
    tone: DraftTone = DraftTone.PROFESSIONAL


class BatchDraftRequest(BaseModel):
    contact_ids: list[str] = Field(..., min_length=1)
    draft_type: DraftType = DraftType.EMAIL
    tone: DraftTone = DraftTone.PROFESSIONAL


class RegenerateRequest(BaseModel):
    tone: DraftTone | None = None


def match_filters(
    min_score: int | None = Query(default=None, ge=0, le=100),
    max_score: int | None = Query(default=None, ge=0, le=100),
    tier: MatchTier | None = None,
    industries: list[str] = Query(default=[]),
    companies: list[str] = Query(default=[]),
    statuses: list[str] = Query(default=[]),
) -> MatchFilters:
    return MatchFilters(
        min_score=min_score,
        max_score=max_score,
        tier=tier,
        industries=industries,
        companies=companies,
        statuses=statuses,
    )


def _outcome(outcome: PartialSuccessResult) -> dict[str, Any]:
    return {
        "succeeded": outcome.success_count,
        "failed": outcome.failure_count,
        "failed_ids": [item.item_id for item in outcome.failed],
    }


def _match(match: ProductContactMatch) -> dict[str, Any]:
    return {**match.model_dump(mode="json"), "tier": match.tier.value}


def _draft(draft: ProductDraft) -> dict[str, Any]:
    return draft.model_dump(mode="json")


async def _contacts_by_id(repo: ContactRepository, contact_ids: list[str]) -> list[Contact]:
    return [unwrap(await repo.get(contact_id)) for contact_id in dict.fromkeys(contact_ids)]


# =============================================================================
# Products
# =============================================================================


@router.get("/products")
async def list_products(products: ProductService = Depends(get_product_service)):
    return {"products": [p.model_dump(mode="json") for p in unwrap(await products.list())]}


@router.post("/products", status_code=201)
async def create_product(data: ProductInput, products: ProductService = Depends(get_product_service)):
    return unwrap(await products.create(data)).model_dump(mode="json")


@router.get("/products/{product_id}")
async def get_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return unwrap(await products.get_by_id(product_id)).model_dump(mode="json")


@router.patch("/products/{product_id}")
async def update_product(
    product_id: str,
    updates: dict[str, Any],
    products: ProductService = Depends(get_product_service),
):
    return unwrap(await products.update(product_id, updates)).model_dump(mode="json")


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return {"deleted": unwrap(await products.delete(product_id))}


@router.post("/products/{product_id}/archive")
async def archive_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return unwrap(await products.archive(product_id)).model_dump(mode="json")


@router.post("/products/{product_id}/duplicate", status_code=201)
async def duplicate_product(
    product_id: str,
    body: DuplicateProduct,
    products: ProductService = Depends(get_product_service),
):
    product = unwrap(await products.get_by_id(product_id))
    return unwrap(await products.duplicate(product, body.name)).model_dump(mode="json")


@router.get("/products/{product_id}/stats")
async def product_stats(product_id: str, products: ProductService = Depends(get_product_service)):
    return unwrap(await products.stats(product_id)).model_dump(mode="json")


# =============================================================================
# Matches
# =============================================================================


@router.post("/products/{product_id}/matches/calculate")
async def calculate_matches(
    product_id: str,
    products: ProductService = Depends(get_product_service),
    matches: MatchService = Depends(get_match_service),
):
    """Score every contact against the product and save the results."""
    product: UserProduct = unwrap(await products.get_by_id(product_id))
    batch = unwrap(await matches.calculate_for_product(product))
    return {"matches": [_match(m) for m in batch.matches], **_outcome(batch.outcome)}


@router.post("/products/{product_id}/matches/ai")
async def ai_match(
    product_id: str,
    body: AIMatchRequest,
    products: ProductService = Depends(get_product_service),
    repo: ContactRepository = Depends(get_contact_repository),
    matches: MatchService = Depends(get_match_service),
):
    product = unwrap(await products.get_by_id(product_id))
    contact = unwrap(await repo.get(body.contact_id))
    return _match(unwrap(await matches.calculate_ai_enhanced_and_save(product, contact, body.effort)))


@router.get("/products/{product_id}/matches")
async def list_matches(
    product_id: str,
    filters: MatchFilters = Depends(match_filters),
    matches: MatchService = Depends(get_match_service),
):
    return {"matches": [_match(m) for m in unwrap(await matches.fetch_for_product(product_id, filters))]}


@router.get("/products/{product_id}/matches/stats")
async def matches_stats(product_id: str, matches: MatchService = Depends(get_match_service)):
    return match_stats(unwrap(await matches.fetch_for_product(product_id))).model_dump()


@router.get("/products/{product_id}/matches/export")
async def export_product_matches(
    product_id: str,
    filters: MatchFilters = Depends(match_filters),
    products: ProductService = Depends(get_product_service),
    matches: MatchService = Depends(get_match_service),
):
    product = unwrap(await products.get_by_id(product_id))
    body = export_matches(unwrap(await matches.fetch_for_product(product_id, filters)))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{product.name}-matches.csv"'},
    )


# =============================================================================
# Drafts
# =============================================================================


@router.post("/products/{product_id}/drafts", status_code=201)
async def create_draft(
    product_id: str,
    body: DraftRequest,
    products: ProductService = Depends(get_product_service),
    repo: ContactRepository = Depends(get_contact_repository),
    matches: MatchService = Depends(get_match_service),
    drafts: DraftService = Depends(get_draft_service),
):
    product = unwrap(await products.get_by_id(product_id))
    contact = unwrap(await repo.get(body.contact_id))
    match = unwrap(await matches.get_match(product_id, contact.id))
    draft = unwrap(await drafts.create_and_save(product, contact, body.draft_type, body.tone, match))
    return _draft(draft)


@router.post("/products/{product_id}/drafts/batch", status_code=201)
async def batch_create_drafts(
    product_id: str,
    body: BatchDraftRequest,
    products: ProductService = Depends(get_product_service),
    repo: ContactRepository = Depends(get_contact_repository),
    matches: MatchService = Depends(get_match_service),
    drafts: DraftService = Depends(get_draft_service),
):
    """Render one draft per contact; failed chunks are reported, not raised."""
    product = unwrap(await products.get_by_id(product_id))
    contacts = await _contacts_by_id(repo, body.contact_ids)
    found = unwrap(await matches.get_matches_for_contacts(product_id, [c.id for c in contacts]))
    batch = await drafts.batch_create(product, contacts, body.draft_type, body.tone, found)
    return {"drafts": [_draft(d) for d in batch.drafts], **_outcome(batch.outcome)}


@router.get("/drafts")
async def list_drafts(
    product_id: str | None = None,
    contact_id: str | None = None,
    draft_type: DraftType | None = None,
    is_sent: bool | None = None,
    drafts: DraftService = Depends(get_draft_service),
):
    filters = DraftFilters(
        product_id=product_id, contact_id=contact_id, draft_type=draft_type, is_sent=is_sent
    )
    return {"drafts": [_draft(d) for d in unwrap(await drafts.fetch(filters))]}


@router.patch("/drafts/{draft_id}")
async def update_draft(
    draft_id: str,
    updates: dict[str, Any],
    drafts: DraftService = Depends(get_draft_service),
):
    return _draft(unwrap(await drafts.update(draft_id, updates)))


@router.post("/drafts/{draft_id}/sent")
async def mark_draft_sent(draft_id: str, drafts: DraftService = Depends(get_draft_service)):
    return _draft(unwrap(await drafts.mark_sent(draft_id)))


@router.delete("/drafts/{draft_id}")
async def delete_draft(draft_id: str, drafts: DraftService = Depends(get_draft_service)):
    return {"deleted": unwrap(await drafts.delete(draft_id))}


@router.post("/drafts/{draft_id}/regenerate")
async def regenerate_draft(
    draft_id: str,
    body: RegenerateRequest,
    products: ProductService = Depends(get_product_service),
    repo: ContactRepository = Depends(get_contact_repository),
    matches: MatchService = Depends(get_match_service),
    drafts: DraftService = Depends(get_draft_service),
):
    current = unwrap(await drafts.get(draft_id))
    product = unwrap(await products.get_by_id(current.product_id))
    contact = unwrap(await repo.get(current.contact_id))
    match = unwrap(await matches.get_match(product.id, contact.id))
    return _draft(unwrap(await drafts.regenerate(current, product, contact, body.tone, match)))
