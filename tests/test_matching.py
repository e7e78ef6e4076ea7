"""
Tests for rule-based product/contact scoring and AI blending.

Tests cover:
- Per-dimension scoring (match, mismatch, unknown data)
- Total score, tier and reason ordering
- Configurable weights
- AI-enhanced blending per reasoning effort
- Fallback analysis when the model call fails
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_contact
from smart_crm.errors import OpenAIError
from smart_crm.models.intelligence import AIMatchAnalysis, Priority, TalkingPoint
from smart_crm.models.product import (
    MatchScoreWeights,
    MatchTier,
    get_match_tier,
    get_match_tier_label,
)
from smart_crm.services.matching import (
    ProductMatcher,
    ReasoningEffort,
    fallback_match_analysis,
    round_half_up,
)


@pytest.fixture
def ideal_contact():
    return make_contact(
        1,
        industry='Technology',
        company_size='enterprise',
        title='CTO',
        department='Engineering',
        tags=['automation'],
        status='hot',
    )


@pytest.fixture
def sparse_contact():
    return make_contact(
        2, industry=None, company_size=None, title=None, department=None, tags=[], status=None
    )


def _analysis(semantic_score: float) -> AIMatchAnalysis:
    return AIMatchAnalysis(
        ai_confidence=80,
        ai_reasoning='Strong fit',
        semantic_score=semantic_score,
        talking_points=[
            TalkingPoint(topic='ROI', content='Lead with pipeline ROI', relevance=Priority.HIGH),
            TalkingPoint(topic='Intro', content='Mention the team', relevance=Priority.LOW),
        ],
        anticipated_objections=[],
        predicted_conversion=40,
        optimal_outreach_time='Tuesday 10am',
        competitive_positioning='Faster setup',
        personalization_insights=[],
    )


# =============================================================================
# Tiers
# =============================================================================


class TestMatchTier:
    @pytest.mark.parametrize(
        'score,tier',
        [(100, MatchTier.HIGH), (80, MatchTier.HIGH), (79, MatchTier.MEDIUM), (50, MatchTier.MEDIUM), (49, MatchTier.LOW)],
    )
    def test_tier_boundaries(self, score, tier):
        assert get_match_tier(score) == tier

    def test_labels(self):
        assert get_match_tier_label(MatchTier.HIGH) == 'High Fit'
        assert get_match_tier_label(MatchTier.MEDIUM) == 'Medium Fit'
        assert get_match_tier_label(MatchTier.LOW) == 'Low Fit'

    def test_round_half_up(self):
        assert round_half_up(84.5) == 85
        assert round_half_up(84.49) == 84


# =============================================================================
# Dimensions
# =============================================================================


class TestDimensionScores:
    def test_ideal_contact_scores_full_weight(self, sample_product, ideal_contact):
        result = ProductMatcher().calculate_match(sample_product, ideal_contact)

        assert result.industry_score == 30
        assert result.company_size_score == 20
        assert result.title_score == 25
        assert result.tags_score == 15
        assert result.status_score == 10
        assert result.match_score == 100
        assert result.tier == MatchTier.HIGH

    def test_unknown_data_gets_floored_partial_credit(self, sample_product, sparse_contact):
        result = ProductMatcher().calculate_match(sample_product, sparse_contact)

        # floor(30*.3) + floor(20*.3) + floor(25*.3) + floor(15*.5) + floor(10*.5)
        assert result.industry_score == 9
        assert result.company_size_score == 6
        assert result.title_score == 7
        assert result.tags_score == 7
        assert result.status_score == 5
        assert result.match_score == 34
        assert result.tier == MatchTier.LOW

    def test_clear_mismatch_scores_near_zero(self, sample_product):
        contact = make_contact(
            3, industry='Retail', company_size='1-10', title='Intern', department='Facilities',
            tags=['golf'], status='lost',
        )
        result = ProductMatcher().calculate_match(sample_product, contact)

        assert result.industry_score == 0
        assert result.company_size_score == 0
        assert result.title_score == 0
        assert result.tags_score == 4
        assert result.status_score == 0
        assert any('not in your target list' in r.reason for r in result.match_reasons)

    def test_no_targeting_means_full_credit(self, sample_product, sparse_contact):
        product = sample_product.model_copy(
            update={
                'target_industries': [],
                'target_company_sizes': [],
                'target_titles': [],
                'target_departments': [],
            }
        )
        result = ProductMatcher().calculate_match(product, sparse_contact)

        assert result.industry_score == 30
        assert result.company_size_score == 20
        assert result.title_score == 25

    def test_empty_title_matches_every_target_title(self, sample_product):
        contact = make_contact(4, title='', job_title=None, department='Engineering')
        score = ProductMatcher().title_score(sample_product, contact)

        assert score.score == pytest.approx(25)
        assert [r.category for r in score.reasons] == ['Title', 'Department']
        assert score.reasons[0].reason == 'Unknown role matches target title "CTO"'

    def test_missing_department_matches_every_target_department(self, sample_product):
        contact = make_contact(4, title='VP Sales', department=None)
        score = ProductMatcher().title_score(sample_product, contact)

        # 25 * 0.3
        assert score.score == pytest.approx(7.5)
        assert [r.category for r in score.reasons] == ['Department']

    def test_semi_qualified_status(self, sample_product):
        contact = make_contact(5, status='Contacted')
        assert ProductMatcher().status_score(sample_product, contact).score == 6

    def test_size_from_employee_bucket(self, sample_product):
        contact = make_contact(6, company_size=None, employees='5000+')
        assert ProductMatcher().company_size_score(sample_product, contact).score == 20

    def test_custom_weights(self, sample_product, ideal_contact):
        weights = MatchScoreWeights(industry=50, company_size=10, title=20, tags=10, status=10)
        result = ProductMatcher(weights).calculate_match(sample_product, ideal_contact)

        assert result.industry_score == 50
        assert result.match_score == 100


# =============================================================================
# Match narrative
# =============================================================================


class TestCalculateMatch:
    def test_reasons_sorted_by_contribution(self, sample_product, sparse_contact):
        result = ProductMatcher().calculate_match(sample_product, sparse_contact)
        contributions = [r.score_contribution for r in result.match_reasons]
        assert contributions == sorted(contributions, reverse=True)

    def test_executive_approach_for_high_fit(self, sample_product, ideal_contact):
        result = ProductMatcher().calculate_match(sample_product, ideal_contact)
        assert result.recommended_approach.startswith('Direct outreach with executive-level')

    def test_low_fit_goes_to_awareness(self, sample_product, sparse_contact):
        result = ProductMatcher().calculate_match(sample_product, sparse_contact)
        assert result.recommended_approach.startswith('Add to awareness campaign')

    def test_why_buy_and_objections_capped(self, sample_product, ideal_contact):
        result = ProductMatcher().calculate_match(sample_product, ideal_contact)

        assert 0 < len(result.why_buy_reasons) <= 5
        assert result.why_buy_reasons[-1] == 'Designed for enterprise companies like Company 1'
        assert len(result.objections_anticipated) <= 5
        assert 'Procurement process - prepare for longer sales cycle' in result.objections_anticipated

    def test_to_row_carries_ids(self, sample_product, ideal_contact, user_id):
        row = ProductMatcher().calculate_match(sample_product, ideal_contact).to_row(
            sample_product.id, ideal_contact.id, user_id
        )
        assert row['product_id'] == 'prod-1'
        assert row['contact_id'] == 'c1'
        assert row['user_id'] == user_id
        assert 'calculated_at' in row


# =============================================================================
# AI-enhanced
# =============================================================================


class TestAIEnhancedMatch:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'effort,expected',
        [
            (ReasoningEffort.HIGH, 76),  # 100*.4 + 60*.6
            (ReasoningEffort.MEDIUM, 80),  # 100*.5 + 60*.5
            (ReasoningEffort.LOW, 88),  # 100*.7 + 60*.3
        ],
    )
    async def test_blend_weight_by_effort(self, sample_product, ideal_contact, effort, expected):
        openai = MagicMock()
        openai.chat_completion_structured = AsyncMock(return_value=_analysis(60))

        result = await ProductMatcher().calculate_ai_enhanced_match(
            sample_product, ideal_contact, openai, effort
        )

        assert result.rule_based.match_score == 100
        assert result.ai_score == 60
        assert result.combined_score == expected

    @pytest.mark.asyncio
    async def test_talking_points_become_reasons(self, sample_product, ideal_contact):
        openai = MagicMock()
        openai.chat_completion_structured = AsyncMock(return_value=_analysis(60))

        result = await ProductMatcher().calculate_ai_enhanced_match(
            sample_product, ideal_contact, openai
        )

        insights = {r.reason: r.score_contribution for r in result.match_reasons if r.category == 'AI Insight'}
        assert insights == {'Lead with pipeline ROI': 15, 'Mention the team': 5}

    @pytest.mark.asyncio
    async def test_model_failure_uses_fallback(self, sample_product, ideal_contact):
        openai = MagicMock()
        openai.chat_completion_structured = AsyncMock(side_effect=OpenAIError('boom'))

        result = await ProductMatcher().calculate_ai_enhanced_match(
            sample_product, ideal_contact, openai
        )

        # 50 + 20 industry + 15 title
        assert result.ai_score == 85
        assert result.ai_analysis.ai_reasoning.startswith('Fallback analysis')

    @pytest.mark.asyncio
    async def test_no_client_uses_fallback(self, sample_product, sparse_contact):
        result = await ProductMatcher().calculate_ai_enhanced_match(
            sample_product, sparse_contact, None
        )
        assert result.ai_score == 50

    def test_fallback_conversion_floor(self, sample_product, sparse_contact):
        analysis = fallback_match_analysis(sample_product, sparse_contact)
        assert analysis.predicted_conversion == 20
        assert analysis.optimal_outreach_time == 'Tuesday-Thursday, 10am-2pm'
