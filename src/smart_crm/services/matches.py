"""
Persisted product/contact matches.

Provides:
- Scoring and saving single matches (rule-based or AI-enhanced)
- Batch scoring in chunks of 50, one upsert per chunk
- Listing a product's matches with server- and client-side filters
- Tier grouping and summary statistics
"""

from dataclasses import dataclass, field
from typing import Callable

import structlog
from pydantic import BaseModel, Field

from ..clients.backend_client import BackendClient, Filter
from ..clients.openai_client import OpenAIClient
from ..errors import BackendAuthError, PartialSuccessResult
from ..logging import OperationTimer
from ..models.contact import Contact
from ..models.product import MatchTier, ProductContactMatch, UserProduct, get_match_tier
from ..result import Result, capture
from .matching import ProductMatcher, ReasoningEffort, round_half_up

logger = structlog.get_logger(__name__)

MATCHES_TABLE = 'product_contact_matches'
CONTACTS_TABLE = 'contacts'
MATCH_CONFLICT_KEY = 'product_id,contact_id'
MATCH_BATCH_SIZE = 50

MATCH_SELECT = (
    '*,contact:contacts(id,name,email,company,title,industry,company_size,status,tags,avatar_url)'
)

ProgressCallback = Callable[[int, int], None]


class MatchFilters(BaseModel):
    min_score: int | None = None
    max_score: int | None = None
    tier: MatchTier | None = None
    industries: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    statuses: list[str] = Field(default_factory=list)


class MatchStats(BaseModel):
    total: int = 0
    high_fit: int = 0
    medium_fit: int = 0
    low_fit: int = 0
    average_score: int = 0


@dataclass
class MatchBatchResult:
    """Saved matches plus per-contact success/failure of a batch run."""

    matches: list[ProductContactMatch] = field(default_factory=list)
    outcome: PartialSuccessResult = field(default_factory=PartialSuccessResult)


# =============================================================================
# Client-side views over loaded matches
# =============================================================================


def _contains_any(value: str | None, needles: list[str]) -> bool:
    haystack = (value or '').lower()
    return bool(haystack) and any(n.lower() in haystack for n in needles)


def filter_matches(
    matches: list[ProductContactMatch], filters: MatchFilters
) -> list[ProductContactMatch]:
    """Apply the filters the backend query cannot express."""
    result = matches
    if filters.industries:
        result = [
            m for m in result if m.contact and _contains_any(m.contact.industry, filters.industries)
        ]
    if filters.companies:
        result = [
            m for m in result if m.contact and _contains_any(m.contact.company, filters.companies)
        ]
    if filters.statuses:
        result = [
            m for m in result if ((m.contact.status if m.contact else None) or '') in filters.statuses
        ]
    if filters.tier:
        result = [m for m in result if m.tier == filters.tier]
    return result


def group_by_tier(matches: list[ProductContactMatch]) -> dict[MatchTier, list[ProductContactMatch]]:
    groups: dict[MatchTier, list[ProductContactMatch]] = {tier: [] for tier in MatchTier}
    for match in matches:
        groups[get_match_tier(match.match_score)].append(match)
    return groups


def match_stats(matches: list[ProductContactMatch]) -> MatchStats:
    groups = group_by_tier(matches)
    average = (
        round_half_up(sum(m.match_score for m in matches) / len(matches)) if matches else 0
    )
    return MatchStats(
        total=len(matches),
        high_fit=len(groups[MatchTier.HIGH]),
        medium_fit=len(groups[MatchTier.MEDIUM]),
        low_fit=len(groups[MatchTier.LOW]),
        average_score=average,
    )


# =============================================================================
# Service
# =============================================================================


class MatchService:
    """
    Scores contacts for a product and persists the results.

    Args:
        backend: Session-bound backend client
        user_id: Owner of the matches
        matcher: Scorer (default weights when omitted)
        openai: Client for AI-enhanced matching; fallback analysis when None
    """

    def __init__(
        self,
        backend: BackendClient,
        user_id: str | None,
        matcher: ProductMatcher | None = None,
        openai: OpenAIClient | None = None,
    ):
        self.backend = backend
        self.user_id = user_id
        self.matcher = matcher or ProductMatcher()
        self.openai = openai

    def _require_user(self) -> str:
        if not self.user_id:
            raise BackendAuthError('You must be logged in')
        return self.user_id

    # =========================================================================
    # Scoring and saving
    # =========================================================================

    async def calculate_and_save(
        self, product: UserProduct, contact: Contact
    ) -> Result[ProductContactMatch]:
        return await capture(
            self._calculate_and_save(product, contact),
            'matches.save.failed',
            product_id=product.id,
            contact_id=contact.id,
        )

    async def _calculate_and_save(
        self, product: UserProduct, contact: Contact
    ) -> ProductContactMatch:
        user_id = self._require_user()
        calculation = self.matcher.calculate_match(product, contact)
        result = await self.backend.upsert(
            MATCHES_TABLE,
            calculation.to_row(product.id, contact.id, user_id),
            on_conflict=MATCH_CONFLICT_KEY,
        )
        return ProductContactMatch.model_validate(result.first)

    async def calculate_ai_enhanced_and_save(
        self,
        product: UserProduct,
        contact: Contact,
        effort: ReasoningEffort = ReasoningEffort.MEDIUM,
    ) -> Result[ProductContactMatch]:
        return await capture(
            self._calculate_ai_enhanced_and_save(product, contact, effort),
            'matches.ai_save.failed',
            product_id=product.id,
            contact_id=contact.id,
        )

    async def _calculate_ai_enhanced_and_save(
        self,
        product: UserProduct,
        contact: Contact,
        effort: ReasoningEffort,
    ) -> ProductContactMatch:
        user_id = self._require_user()
        enhanced = await self.matcher.calculate_ai_enhanced_match(
            product, contact, self.openai, effort
        )
        result = await self.backend.upsert(
            MATCHES_TABLE,
            enhanced.to_row(product.id, contact.id, user_id),
            on_conflict=MATCH_CONFLICT_KEY,
        )
        return ProductContactMatch.model_validate(result.first)

    async def batch_calculate(
        self,
        product: UserProduct,
        contacts: list[Contact],
        on_progress: ProgressCallback | None = None,
    ) -> MatchBatchResult:
        """
        Score and save matches in chunks of 50.

        A failed chunk is recorded against each of its contacts and the next
        chunk still runs. Progress is reported after every chunk.
        """
        user_id = self._require_user()
        batch = MatchBatchResult()
        timer = OperationTimer()
        total = len(contacts)

        for start in range(0, total, MATCH_BATCH_SIZE):
            chunk = contacts[start:start + MATCH_BATCH_SIZE]
            with timer.stage('score'):
                rows = [
                    self.matcher.calculate_match(product, c).to_row(product.id, c.id, user_id)
                    for c in chunk
                ]
            with timer.stage('save'):
                saved = await capture(
                    self.backend.upsert(MATCHES_TABLE, rows, on_conflict=MATCH_CONFLICT_KEY),
                    'matches.batch_save.failed',
                    product_id=product.id,
                    batch_start=start,
                )
            if saved.success:
                for row in saved.data.rows:
                    match = ProductContactMatch.model_validate(row)
                    batch.matches.append(match)
                    batch.outcome.add_success(match.contact_id)
            else:
                for contact in chunk:
                    batch.outcome.add_failure(saved.error, contact.id)

            if on_progress:
                on_progress(min(start + MATCH_BATCH_SIZE, total), total)

        logger.info(
            'matches.batch_calculated',
            product_id=product.id,
            saved=batch.outcome.success_count,
            failed=batch.outcome.failure_count,
            **timer.summary(),
        )
        return batch

    async def calculate_for_product(
        self,
        product: UserProduct,
        on_progress: ProgressCallback | None = None,
    ) -> Result[MatchBatchResult]:
        """Score every contact the user owns against ``product``."""
        return await capture(
            self._calculate_for_product(product, on_progress),
            'matches.calculate_for_product.failed',
            product_id=product.id,
        )

    async def _calculate_for_product(
        self, product: UserProduct, on_progress: ProgressCallback | None
    ) -> MatchBatchResult:
        user_id = self._require_user()
        result = await self.backend.select(
            CONTACTS_TABLE, filters=[Filter.eq('user_id', user_id)]
        )
        contacts = [Contact.model_validate(row) for row in result.rows]
        if not contacts:
            return MatchBatchResult()
        if on_progress:
            on_progress(0, len(contacts))
        return await self.batch_calculate(product, contacts, on_progress)

    # =========================================================================
    # Reads
    # =========================================================================

    async def fetch_for_product(
        self, product_id: str, filters: MatchFilters | None = None
    ) -> Result[list[ProductContactMatch]]:
        """Best matches first; score bounds apply server-side, the rest locally."""
        return await capture(
            self._fetch_for_product(product_id, filters or MatchFilters()),
            'matches.fetch.failed',
            product_id=product_id,
        )

    async def _fetch_for_product(
        self, product_id: str, filters: MatchFilters
    ) -> list[ProductContactMatch]:
        query = [Filter.eq('product_id', product_id)]
        if filters.min_score is not None:
            query.append(Filter.gte('match_score', filters.min_score))
        if filters.max_score is not None:
            query.append(Filter.lte('match_score', filters.max_score))

        result = await self.backend.select(
            MATCHES_TABLE,
            filters=query,
            columns=MATCH_SELECT,
            order=[('match_score', False)],
        )
        matches = [ProductContactMatch.model_validate(row) for row in result.rows]
        return filter_matches(matches, filters)

    async def get_match(
        self, product_id: str, contact_id: str
    ) -> Result[ProductContactMatch | None]:
        """The saved match for one pair, or None when never calculated."""
        return await capture(
            self._get_match(product_id, contact_id), 'matches.get.failed', product_id=product_id
        )

    async def _get_match(self, product_id: str, contact_id: str) -> ProductContactMatch | None:
        result = await self.backend.select(
            MATCHES_TABLE,
            filters=[Filter.eq('product_id', product_id), Filter.eq('contact_id', contact_id)],
            limit=1,
        )
        return ProductContactMatch.model_validate(result.first) if result.first else None

    async def get_matches_for_contacts(
        self, product_id: str, contact_ids: list[str]
    ) -> Result[dict[str, ProductContactMatch]]:
        """Saved matches keyed by contact id."""
        return await capture(
            self._matches_for_contacts(product_id, contact_ids),
            'matches.get_many.failed',
            product_id=product_id,
        )

    async def _matches_for_contacts(
        self, product_id: str, contact_ids: list[str]
    ) -> dict[str, ProductContactMatch]:
        if not contact_ids:
            return {}
        result = await self.backend.select(
            MATCHES_TABLE,
            filters=[Filter.eq('product_id', product_id), Filter.in_('contact_id', contact_ids)],
        )
        matches = [ProductContactMatch.model_validate(row) for row in result.rows]
        return {m.contact_id: m for m in matches}
