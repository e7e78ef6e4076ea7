"""
Client-side contact filtering.

All active filters must hold for a contact to be kept.
"""

from pydantic import BaseModel, Field

from ..models.contact import Contact


class ContactFilters(BaseModel):
    status: list[str] = Field(default_factory=list)
    interest_level: list[str] = Field(default_factory=list)
    is_favorite: bool | None = None
    ai_score_min: int | None = None
    ai_score_max: int | None = None
    tags: list[str] = Field(default_factory=list)
    industry: list[str] = Field(default_factory=list)


def _interest(contact: Contact) -> str | None:
    level = contact.interest_level
    return level.value if level is not None else None


def passes(contact: Contact, filters: ContactFilters) -> bool:
    """True when ``contact`` satisfies every active filter."""
    if filters.status and contact.status not in filters.status:
        return False
    if filters.interest_level and _interest(contact) not in filters.interest_level:
        return False
    if filters.is_favorite is not None and contact.is_favorite != filters.is_favorite:
        return False

    score = contact.ai_score or 0
    if filters.ai_score_min is not None and score < filters.ai_score_min:
        return False
    if filters.ai_score_max is not None and score > filters.ai_score_max:
        return False

    if filters.tags and not set(filters.tags) & set(contact.tags):
        return False
    # A contact without an industry never passes an industry filter
    if filters.industry and (not contact.industry or contact.industry not in filters.industry):
        return False
    return True


def apply_filters(contacts: list[Contact], filters: ContactFilters) -> list[Contact]:
    return [c for c in contacts if passes(c, filters)]


def active_filter_count(filters: ContactFilters) -> int:
    """Number of filter groups currently narrowing the list (score range counts once)."""
    count = 0
    count += bool(filters.status)
    count += bool(filters.interest_level)
    count += filters.is_favorite is not None
    count += filters.ai_score_min is not None or filters.ai_score_max is not None
    count += bool(filters.tags)
    count += bool(filters.industry)
    return count


def matches_query(contact: Contact, query: str) -> bool:
    """Case-insensitive substring match on name, email, company or title."""
    needle = query.strip().lower()
    if not needle:
        return True
    fields = (contact.display_name(), contact.email, contact.company, contact.role)
    return any(needle in value.lower() for value in fields if value)
