"""
Rule-based product/contact fit scoring, with optional AI blending.

Each dimension (industry, company size, title, tags, status) contributes up to
its configured weight. Unknown contact data earns partial credit so sparse
records are not ranked below clear mismatches.

The AI-enhanced variant blends the rule score with a semantic score from
OpenAI; when the model call fails a deterministic fallback analysis is used.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from ..clients.openai_client import OpenAIClient
from ..errors import OpenAIError
from ..models.contact import Contact
from ..models.intelligence import (
    AIMatchAnalysis,
    AnticipatedObjection,
    Priority,
    TalkingPoint,
)
from ..models.product import (
    CompanySize,
    MatchReason,
    MatchScoreWeights,
    MatchTier,
    PricingModel,
    UserProduct,
    get_match_tier,
)
from ..prompts.match_analysis import build_match_analysis_prompt

logger = structlog.get_logger(__name__)

COMPANY_SIZE_MAPPING: dict[str, list[CompanySize]] = {
    '1-10': [CompanySize.STARTUP],
    '11-50': [CompanySize.STARTUP, CompanySize.SMB],
    '51-200': [CompanySize.SMB],
    '201-500': [CompanySize.SMB, CompanySize.MID_MARKET],
    '501-1000': [CompanySize.MID_MARKET],
    '1001-5000': [CompanySize.MID_MARKET, CompanySize.ENTERPRISE],
    '5000+': [CompanySize.ENTERPRISE],
    'startup': [CompanySize.STARTUP],
    'small': [CompanySize.STARTUP, CompanySize.SMB],
    'medium': [CompanySize.SMB, CompanySize.MID_MARKET],
    'large': [CompanySize.MID_MARKET, CompanySize.ENTERPRISE],
    'enterprise': [CompanySize.ENTERPRISE],
}

QUALIFIED_STATUSES = ('hot', 'warm', 'qualified', 'opportunity', 'proposal')
SEMI_QUALIFIED_STATUSES = ('new', 'contacted', 'meeting scheduled')
EXECUTIVE_KEYWORDS = ('ceo', 'cto', 'cfo', 'coo', 'vp', 'director', 'head', 'chief')

DEFAULT_OUTREACH_TIME = 'Tuesday-Thursday, 10am-2pm'


class ReasoningEffort(str, Enum):
    NONE = 'none'
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


_AI_WEIGHTS = {ReasoningEffort.HIGH: 0.6, ReasoningEffort.MEDIUM: 0.5}
_RELEVANCE_POINTS = {Priority.HIGH: 15, Priority.MEDIUM: 10, Priority.LOW: 5}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class DimensionScore(BaseModel):
    score: float
    max_score: int
    reasons: list[MatchReason]


class MatchCalculation(BaseModel):
    """Outcome of scoring one product against one contact."""

    match_score: int
    match_reasons: list[MatchReason]
    industry_score: float
    company_size_score: float
    title_score: float
    tags_score: float
    status_score: float
    recommended_approach: str
    why_buy_reasons: list[str]
    objections_anticipated: list[str]

    @property
    def tier(self) -> MatchTier:
        return get_match_tier(self.match_score)

    def to_row(self, product_id: str, contact_id: str, user_id: str | None) -> dict[str, Any]:
        """Row for the ``product_contact_matches`` upsert."""
        row = self.model_dump(mode='json')
        row.update(
            product_id=product_id,
            contact_id=contact_id,
            user_id=user_id,
            calculated_at=datetime.now(timezone.utc).isoformat(),
        )
        return row


class AIEnhancedMatch(BaseModel):
    rule_based: MatchCalculation
    ai_score: float
    combined_score: int
    ai_analysis: AIMatchAnalysis
    match_reasons: list[MatchReason] = Field(default_factory=list)

    def to_row(self, product_id: str, contact_id: str, user_id: str | None) -> dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        row = self.rule_based.to_row(product_id, contact_id, user_id)
        analysis = self.ai_analysis.model_dump(mode='json')
        row.update(
            match_score=self.combined_score,
            match_reasons=[r.model_dump() for r in self.match_reasons],
            ai_confidence=self.ai_analysis.ai_confidence,
            ai_reasoning=self.ai_analysis.ai_reasoning,
            ai_talking_points=analysis['talking_points'],
            ai_objections=analysis['anticipated_objections'],
            predicted_conversion=self.ai_analysis.predicted_conversion,
            optimal_outreach_time=self.ai_analysis.optimal_outreach_time,
            ai_processed_at=now,
        )
        return row


class ProductMatcher:
    """
    Scores contacts against a product's targeting.

    Args:
        weights: Maximum points per dimension (defaults 30/20/25/15/10)
    """

    def __init__(self, weights: MatchScoreWeights | None = None):
        self.weights = weights or MatchScoreWeights()

    # =========================================================================
    # Dimension Scores
    # =========================================================================

    def industry_score(self, product: UserProduct, contact: Contact) -> DimensionScore:
        max_score = self.weights.industry

        def result(score: float, reason: str) -> DimensionScore:
            return DimensionScore(
                score=score,
                max_score=max_score,
                reasons=[MatchReason(category='Industry', reason=reason, score_contribution=int(score))],
            )

        if not product.target_industries:
            return result(
                max_score, 'No industry targeting specified - all industries considered a fit'
            )

        contact_industry = (contact.industry or '').lower()
        if not contact_industry:
            return result(
                math.floor(max_score * 0.3), 'Contact industry unknown - partial score applied'
            )

        targets = [t.lower() for t in product.target_industries]
        if any(
            contact_industry == t or t in contact_industry or contact_industry in t
            for t in targets
        ):
            matched = next(
                (
                    t
                    for t in product.target_industries
                    if t.lower() in contact_industry or contact_industry in t.lower()
                ),
                contact.industry,
            )
            return result(max_score, f'Works in {matched} - your primary target industry')

        return result(0, f'{contact.industry} industry not in your target list')

    def company_size_score(self, product: UserProduct, contact: Contact) -> DimensionScore:
        max_score = self.weights.company_size

        def result(score: float, reason: str) -> DimensionScore:
            return DimensionScore(
                score=score,
                max_score=max_score,
                reasons=[
                    MatchReason(category='Company Size', reason=reason, score_contribution=int(score))
                ],
            )

        if not product.target_company_sizes:
            return result(max_score, 'No company size targeting specified - all sizes considered a fit')

        contact_size = (contact.company_size or contact.employees or '').lower()
        if not contact_size:
            return result(math.floor(max_score * 0.3), 'Company size unknown - partial score applied')

        mapped = COMPANY_SIZE_MAPPING.get(contact_size, [])
        matched = next((s for s in product.target_company_sizes if s in mapped), None)
        if matched is not None:
            return result(
                max_score, f'Company is {contact_size} - matches your {matched.value} target'
            )

        return result(0, f'Company size ({contact_size}) outside your target range')

    def title_score(self, product: UserProduct, contact: Contact) -> DimensionScore:
        """Title match earns 70% of the weight, department match 30%."""
        max_score = self.weights.title

        if not product.target_titles and not product.target_departments:
            return DimensionScore(
                score=max_score,
                max_score=max_score,
                reasons=[
                    MatchReason(
                        category='Title/Role',
                        reason='No title targeting specified - all roles considered a fit',
                        score_contribution=max_score,
                    )
                ],
            )

        contact_title = (contact.title or contact.job_title or '').lower()
        contact_dept = (contact.department or '').lower()

        if not contact_title and not contact_dept:
            partial = math.floor(max_score * 0.3)
            return DimensionScore(
                score=partial,
                max_score=max_score,
                reasons=[
                    MatchReason(
                        category='Title/Role',
                        reason='Contact role unknown - partial score applied',
                        score_contribution=partial,
                    )
                ],
            )

        score = 0.0
        reasons: list[MatchReason] = []
        target_titles = [t.lower() for t in product.target_titles]
        target_depts = [d.lower() for d in product.target_departments]

        # Substring match both ways, so an empty title or department matches every target
        if any(t in contact_title or contact_title in t for t in target_titles):
            matched_title = next(
                (
                    t
                    for t in product.target_titles
                    if t.lower() in contact_title
                ),
                product.target_titles[0],
            )
            score += max_score * 0.7
            reasons.append(
                MatchReason(
                    category='Title',
                    reason=f'{contact.role or "Unknown role"} matches target title "{matched_title}"',
                    score_contribution=math.floor(max_score * 0.7),
                )
            )

        if any(
            d in contact_dept or contact_dept in d or d in contact_title
            for d in target_depts
        ):
            matched_dept = next(
                (
                    d
                    for d in product.target_departments
                    if d.lower() in contact_dept or d.lower() in contact_title
                ),
                None,
            )
            score += max_score * 0.3
            reasons.append(
                MatchReason(
                    category='Department',
                    reason=f'Works in {matched_dept or contact_dept} department - key decision area',
                    score_contribution=math.floor(max_score * 0.3),
                )
            )

        if score == 0:
            reasons.append(
                MatchReason(
                    category='Title/Role',
                    reason=f'Role "{contact.title or "Unknown"}" not in your target list',
                    score_contribution=0,
                )
            )

        return DimensionScore(score=min(score, max_score), max_score=max_score, reasons=reasons)

    def tags_score(self, product: UserProduct, contact: Contact) -> DimensionScore:
        max_score = self.weights.tags

        def result(score: int, reason: str) -> DimensionScore:
            return DimensionScore(
                score=score,
                max_score=max_score,
                reasons=[MatchReason(category='Tags', reason=reason, score_contribution=score)],
            )

        if not contact.tags:
            return result(math.floor(max_score * 0.5), 'No tags on contact - neutral score')

        keywords = [
            k.lower()
            for k in [
                *product.features,
                *product.pain_points_addressed,
                *product.use_cases,
                product.category or '',
            ]
            if k
        ]
        matched = [
            tag
            for tag in contact.tags
            if any(k in tag.lower() or tag.lower() in k for k in keywords)
        ]
        if matched:
            score = math.floor(min(max_score, len(matched) / len(contact.tags) * max_score * 1.5))
            return result(score, f'Tags "{", ".join(matched)}" align with your product focus')

        return result(
            math.floor(max_score * 0.3), 'Contact tags do not strongly align with product keywords'
        )

    def status_score(self, product: UserProduct, contact: Contact) -> DimensionScore:
        max_score = self.weights.status

        def result(score: int, reason: str) -> DimensionScore:
            return DimensionScore(
                score=score,
                max_score=max_score,
                reasons=[MatchReason(category='Status', reason=reason, score_contribution=score)],
            )

        status = (contact.status or '').lower()
        if not status:
            return result(math.floor(max_score * 0.5), 'Contact status unknown - neutral score')
        if any(s in status for s in QUALIFIED_STATUSES):
            return result(max_score, f'Contact is "{contact.status}" - high qualification level')
        if any(s in status for s in SEMI_QUALIFIED_STATUSES):
            return result(
                math.floor(max_score * 0.6), f'Contact is "{contact.status}" - moderate qualification'
            )
        return result(0, f'Contact status "{contact.status}" indicates low readiness')

    # =========================================================================
    # Narrative
    # =========================================================================

    def recommended_approach(self, contact: Contact, match_score: float) -> str:
        tier = get_match_tier(match_score)
        title = (contact.title or '').lower()
        is_executive = any(k in title for k in EXECUTIVE_KEYWORDS)

        if tier == MatchTier.HIGH:
            if is_executive:
                return (
                    'Direct outreach with executive-level value proposition. Lead with ROI '
                    'metrics and strategic outcomes. Consider warm introduction if available.'
                )
            return (
                'Priority outreach recommended. Personalize with specific pain points and use '
                'cases relevant to their role.'
            )
        if tier == MatchTier.MEDIUM:
            return (
                'Nurture campaign suggested. Share educational content first, then follow up '
                'with product-specific value after engagement.'
            )
        return (
            'Add to awareness campaign. Low-touch approach with broad educational content '
            'until profile data improves.'
        )

    def why_buy_reasons(self, product: UserProduct, contact: Contact) -> list[str]:
        industry = contact.industry or 'their industry'
        company = contact.company or 'their company'
        reasons: list[str] = []

        if product.pain_points_addressed:
            reasons.append(
                f'Addresses common {industry} challenges: '
                f'{", ".join(product.pain_points_addressed[:2])}'
            )
        if product.competitive_advantages:
            reasons.append(f'Unique advantage: {product.competitive_advantages[0]}')
        if product.value_propositions:
            vp = product.value_propositions[0]
            reasons.append(f'{vp.title}: {vp.description}')
        if product.use_cases:
            reasons.append(f'Proven use case: {product.use_cases[0]}')

        sizes = '/'.join(s.value for s in product.target_company_sizes)
        reasons.append(f'Designed for {sizes} companies like {company}')
        return reasons[:5]

    def objections_anticipated(self, product: UserProduct, contact: Contact) -> list[str]:
        size = (contact.company_size or '').lower()
        objections: list[str] = []

        if 'startup' in size or 'small' in size:
            objections.append('Budget constraints - emphasize ROI and flexible pricing')
        if 'enterprise' in size or 'large' in size:
            objections.append('Integration complexity - highlight existing integrations and support')
            objections.append('Procurement process - prepare for longer sales cycle')
        if product.pricing_model == PricingModel.SUBSCRIPTION:
            objections.append('Ongoing costs - demonstrate long-term value over one-time solutions')

        objections.append('Current solution satisfaction - focus on gaps and improvement areas')
        objections.append('Implementation time - clarify onboarding process and timeline')
        return objections[:5]

    # =========================================================================
    # Match
    # =========================================================================

    def calculate_match(self, product: UserProduct, contact: Contact) -> MatchCalculation:
        industry = self.industry_score(product, contact)
        size = self.company_size_score(product, contact)
        title = self.title_score(product, contact)
        tags = self.tags_score(product, contact)
        status = self.status_score(product, contact)

        total = industry.score + size.score + title.score + tags.score + status.score
        reasons = sorted(
            [*industry.reasons, *size.reasons, *title.reasons, *tags.reasons, *status.reasons],
            key=lambda r: r.score_contribution,
            reverse=True,
        )

        return MatchCalculation(
            match_score=round_half_up(total),
            match_reasons=reasons,
            industry_score=industry.score,
            company_size_score=size.score,
            title_score=title.score,
            tags_score=tags.score,
            status_score=status.score,
            recommended_approach=self.recommended_approach(contact, total),
            why_buy_reasons=self.why_buy_reasons(product, contact),
            objections_anticipated=self.objections_anticipated(product, contact),
        )

    # =========================================================================
    # AI-enhanced Match
    # =========================================================================

    async def analyze_with_ai(
        self,
        product: UserProduct,
        contact: Contact,
        openai: OpenAIClient | None,
    ) -> AIMatchAnalysis:
        """Semantic analysis from OpenAI, or the fallback analysis on any failure."""
        if openai is None:
            return fallback_match_analysis(product, contact)
        try:
            return await openai.chat_completion_structured(
                messages=build_match_analysis_prompt(product, contact),
                response_model=AIMatchAnalysis,
            )
        except OpenAIError as e:
            logger.warning(
                'matching.ai_analysis.failed',
                product_id=product.id,
                contact_id=contact.id,
                error=str(e),
            )
            return fallback_match_analysis(product, contact)

    async def calculate_ai_enhanced_match(
        self,
        product: UserProduct,
        contact: Contact,
        openai: OpenAIClient | None,
        effort: ReasoningEffort = ReasoningEffort.MEDIUM,
    ) -> AIEnhancedMatch:
        """
        Blend the rule score with the semantic score.

        The AI weight is 0.6 at high effort, 0.5 at medium and 0.3 otherwise.
        """
        rule_based = self.calculate_match(product, contact)
        analysis = await self.analyze_with_ai(product, contact, openai)

        ai_weight = _AI_WEIGHTS.get(effort, 0.3)
        combined = round_half_up(
            rule_based.match_score * (1 - ai_weight) + analysis.semantic_score * ai_weight
        )
        ai_reasons = [
            MatchReason(
                category='AI Insight',
                reason=tp.content,
                score_contribution=_RELEVANCE_POINTS.get(tp.relevance, 5),
            )
            for tp in analysis.talking_points
        ]

        logger.info(
            'matching.ai_enhanced',
            product_id=product.id,
            contact_id=contact.id,
            rule_score=rule_based.match_score,
            ai_score=analysis.semantic_score,
            combined=combined,
        )
        return AIEnhancedMatch(
            rule_based=rule_based,
            ai_score=analysis.semantic_score,
            combined_score=combined,
            ai_analysis=analysis,
            match_reasons=sorted(
                [*rule_based.match_reasons, *ai_reasons],
                key=lambda r: r.score_contribution,
                reverse=True,
            ),
        )


def fallback_match_analysis(product: UserProduct, contact: Contact) -> AIMatchAnalysis:
    """Deterministic analysis used when the model is unavailable."""
    industry = (contact.industry or '').lower()
    has_industry_match = bool(industry) and any(
        t.lower() in industry for t in product.target_industries
    )
    titles = [(contact.title or '').lower(), (contact.job_title or '').lower()]
    has_title_match = any(
        t.lower() in title for t in product.target_titles for title in titles if title
    )
    base = 50 + (20 if has_industry_match else 0) + (15 if has_title_match else 0)

    return AIMatchAnalysis(
        ai_confidence=base,
        ai_reasoning='Fallback analysis based on basic matching criteria',
        semantic_score=base,
        talking_points=[
            TalkingPoint(
                topic='Value Introduction',
                content=f'Introduce {product.name} and its key benefits',
                relevance=Priority.HIGH,
            )
        ],
        anticipated_objections=[
            AnticipatedObjection(
                objection='Budget constraints',
                response='Focus on ROI and cost savings',
                likelihood=Priority.MEDIUM,
            )
        ],
        predicted_conversion=max(10, base - 30),
        optimal_outreach_time=DEFAULT_OUTREACH_TIME,
        competitive_positioning='Highlight unique value propositions',
        personalization_insights=['Use contact name', 'Reference company'],
    )
