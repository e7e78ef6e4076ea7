"""
User product catalog, product/contact matches and outreach drafts.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PricingModel(str, Enum):
    SUBSCRIPTION = 'subscription'
    ONE_TIME = 'one-time'
    FREEMIUM = 'freemium'
    CUSTOM = 'custom'


class CompanySize(str, Enum):
    STARTUP = 'startup'
    SMB = 'smb'
    MID_MARKET = 'mid-market'
    ENTERPRISE = 'enterprise'


class DraftType(str, Enum):
    EMAIL = 'email'
    CALL_SCRIPT = 'call_script'
    SMS = 'sms'
    LINKEDIN = 'linkedin'


class DraftTone(str, Enum):
    FORMAL = 'formal'
    CASUAL = 'casual'
    URGENT = 'urgent'
    FRIENDLY = 'friendly'
    PROFESSIONAL = 'professional'


class MatchTier(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


# =============================================================================
# Products
# =============================================================================


class PricingTier(BaseModel):
    name: str
    price: str
    period: str | None = None
    features: list[str] = Field(default_factory=list)


class ValueProposition(BaseModel):
    title: str
    description: str = ''
    metrics: str | None = None


class ProductInput(BaseModel):
    """Create/update payload; unset fields take catalog defaults."""

    name: str
    tagline: str | None = None
    description: str | None = None
    category: str | None = None
    pricing_model: PricingModel = PricingModel.CUSTOM
    pricing_tiers: list[PricingTier] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    target_industries: list[str] = Field(default_factory=list)
    target_company_sizes: list[CompanySize] = Field(default_factory=list)
    target_titles: list[str] = Field(default_factory=list)
    target_departments: list[str] = Field(default_factory=list)
    ideal_customer_profile: str | None = None
    value_propositions: list[ValueProposition] = Field(default_factory=list)
    pain_points_addressed: list[str] = Field(default_factory=list)
    competitive_advantages: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list)
    collateral_urls: list[str] = Field(default_factory=list)


class UserProduct(ProductInput):
    """A product the user sells, used to score and draft outreach for contacts."""

    id: str
    user_id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# Matches
# =============================================================================


class MatchScoreWeights(BaseModel):
    """Maximum points each scoring dimension can contribute."""

    industry: int = 30
    company_size: int = 20
    title: int = 25
    tags: int = 15
    status: int = 10


class MatchReason(BaseModel):
    category: str
    reason: str
    score_contribution: int


class MatchContactSummary(BaseModel):
    """Contact columns joined onto a match row."""

    id: str
    name: str = ''
    email: str | None = None
    company: str | None = None
    title: str | None = None
    industry: str | None = None
    company_size: str | None = None
    status: str | None = None
    tags: list[str] = Field(default_factory=list)
    avatar_url: str | None = None


class ProductContactMatch(BaseModel):
    id: str | None = None
    product_id: str
    contact_id: str
    user_id: str | None = None
    match_score: int
    match_reasons: list[MatchReason] = Field(default_factory=list)
    recommended_approach: str | None = None
    personalized_pitch: str | None = None
    why_buy_reasons: list[str] = Field(default_factory=list)
    objections_anticipated: list[str] = Field(default_factory=list)
    industry_score: float = 0
    company_size_score: float = 0
    title_score: float = 0
    tags_score: float = 0
    status_score: float = 0
    ai_confidence: float | None = None
    ai_reasoning: str | None = None
    predicted_conversion: float | None = None
    optimal_outreach_time: str | None = None
    calculated_at: datetime | None = None
    contact: MatchContactSummary | None = None

    @property
    def tier(self) -> MatchTier:
        return get_match_tier(self.match_score)


def get_match_tier(score: float) -> MatchTier:
    """Bucket a numeric match score: >=80 high, >=50 medium, else low."""
    if score >= 80:
        return MatchTier.HIGH
    if score >= 50:
        return MatchTier.MEDIUM
    return MatchTier.LOW


_TIER_LABELS = {
    MatchTier.HIGH: 'High Fit',
    MatchTier.MEDIUM: 'Medium Fit',
    MatchTier.LOW: 'Low Fit',
}


def get_match_tier_label(tier: MatchTier) -> str:
    return _TIER_LABELS[tier]


# =============================================================================
# Drafts
# =============================================================================


class PersonalizationToken(BaseModel):
    key: str
    value: str
    source: str = Field(..., description="'contact', 'product' or 'ai_generated'")


class ProductDraft(BaseModel):
    id: str | None = None
    product_id: str
    contact_id: str
    user_id: str | None = None
    draft_type: DraftType
    subject: str | None = None
    body: str
    tone: DraftTone = DraftTone.PROFESSIONAL
    personalization_tokens: dict[str, PersonalizationToken] = Field(default_factory=dict)
    is_edited: bool = False
    is_sent: bool = False
    sent_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    product: dict[str, Any] | None = None
    contact: dict[str, Any] | None = None
