"""
Reshape AI endpoint payloads into typed results.

Endpoints answer with loosely shaped JSON; every parser here fills the gaps
with fixed fallbacks and fails with PayloadError when the payload lacks the
root object it is built from.
"""

from typing import Any, Type, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import PayloadError
from ..models.intelligence import (
    CommunicationOptimization,
    DealHealth,
    DiscoveryQuestion,
    DiscoveryQuestions,
    HealthIndicator,
    NurtureStatus,
    Playbook,
    QuestionSummary,
    RiskLevel,
)
from ..result import Result

logger = structlog.get_logger(__name__)

M = TypeVar('M', bound=BaseModel)

DEFAULT_HEALTH_SCORE = 75
DEFAULT_RECOMMENDATIONS = [
    'Schedule stakeholder alignment meeting',
    'Address competitive positioning',
    'Review timeline expectations',
]
DISCOVERY_THEMES = ['Discovery', 'Requirements', 'Timeline', 'Budget']
NURTURE_SEQUENCE_LENGTH = 5
DEFAULT_NEXT_TOUCH = 'Tomorrow 10 AM'
DEFAULT_CONVERSION_PROBABILITY = 0.5


def _root(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def _validate(model: Type[M], data: Any, what: str) -> Result[M]:
    try:
        return Result.ok(model.model_validate(data))
    except PydanticValidationError as e:
        logger.warning('intelligence.parse.invalid', payload=what, errors=e.error_count())
        return Result.fail(
            PayloadError(f'Invalid {what} data received', context={'errors': e.error_count()})
        )


# =============================================================================
# Playbook
# =============================================================================


def parse_playbook(payload: Any) -> Result[Playbook]:
    playbook = _root(payload, 'playbook')
    if not playbook:
        return Result.fail(PayloadError('No playbook data received'))
    return _validate(Playbook, playbook, 'playbook')


# =============================================================================
# Discovery questions
# =============================================================================


def parse_discovery_questions(payload: Any) -> Result[DiscoveryQuestions]:
    """
    Read ``data.questions`` and number the questions ``q1``, ``q2``...

    Category counts use each question's category after the ``business``
    fallback is applied.
    """
    data = _root(payload, 'data')
    if not data:
        return Result.fail(PayloadError('No questions data received'))

    raw_questions = (data.get('questions') or []) if isinstance(data, dict) else []
    questions: list[DiscoveryQuestion] = []
    for index, raw in enumerate(raw_questions, start=1):
        raw = raw if isinstance(raw, dict) else {}
        questions.append(
            DiscoveryQuestion(
                id=f'q{index}',
                question=raw.get('question') or raw.get('text') or 'Generated question',
                category=raw.get('category') or 'business',
                priority=raw.get('priority') or 'medium',
                reasoning=(
                    raw.get('reasoning') or raw.get('rationale') or 'Strategic question for discovery'
                ),
            )
        )

    categories: dict[str, int] = {}
    for question in questions:
        categories[question.category] = categories.get(question.category, 0) + 1

    return Result.ok(
        DiscoveryQuestions(
            questions=questions,
            summary=QuestionSummary(
                total_questions=len(questions),
                categories=categories,
                estimated_duration=max(15, len(questions) * 3),
                key_themes=list(DISCOVERY_THEMES),
            ),
        )
    )


# =============================================================================
# Deal health
# =============================================================================


def risk_level_for(score: float) -> RiskLevel:
    if score >= 80:
        return RiskLevel.LOW
    if score >= 60:
        return RiskLevel.MEDIUM
    if score >= 40:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def _next_steps(analysis: dict[str, Any]) -> list[str]:
    steps = []
    risks = analysis.get('risks') or []
    if any(isinstance(r, dict) and r.get('severity') == 'high' for r in risks):
        steps.append('Address high-priority risks immediately')
    if analysis.get('recommendations'):
        steps.append('Review and implement recommendations')
    steps.append('Schedule next stakeholder touchpoint')
    steps.append('Update deal progress in CRM')
    return steps


def parse_deal_health(payload: Any) -> Result[DealHealth]:
    analysis = _root(payload, 'analysis')
    if not analysis or not isinstance(analysis, dict):
        return Result.fail(PayloadError('No health analysis received'))

    overall = analysis.get('score') or DEFAULT_HEALTH_SCORE
    metrics = analysis.get('metrics') or {}
    timeline_score = metrics.get('timelineScore')
    crowded = len(analysis.get('competitors') or []) > 2

    indicators = [
        HealthIndicator(
            name='Stakeholder Alignment', score=metrics.get('stakeholderScore') or 80, status='good'
        ),
        HealthIndicator(
            name='Timeline Risk',
            score=timeline_score or 70,
            status='critical' if timeline_score is not None and timeline_score < 60 else 'warning',
        ),
        HealthIndicator(name='Budget Fit', score=85, status='good'),
        HealthIndicator(
            name='Competition',
            score=60 if crowded else 80,
            status='critical' if crowded else 'good',
        ),
    ]

    return Result.ok(
        DealHealth(
            overall=overall,
            indicators=indicators,
            recommendations=analysis.get('recommendations') or list(DEFAULT_RECOMMENDATIONS),
            risk_level=risk_level_for(overall),
            next_steps=_next_steps(analysis),
        )
    )


# =============================================================================
# Communication and nurturing
# =============================================================================


def parse_communication_optimization(payload: Any) -> Result[CommunicationOptimization]:
    optimization = _root(payload, 'optimization')
    if not optimization:
        return Result.fail(PayloadError('No optimization data received'))
    return _validate(CommunicationOptimization, optimization, 'optimization')


def parse_nurture_status(payload: Any) -> Result[NurtureStatus]:
    strategy = _root(payload, 'nurtureStrategy')
    if not strategy or not isinstance(strategy, dict):
        return Result.fail(PayloadError('No nurture strategy received'))

    sequence = strategy.get('contentSequence') or []
    first = sequence[0] if sequence and isinstance(sequence[0], dict) else {}
    prediction = strategy.get('conversionPrediction') or {}

    return Result.ok(
        NurtureStatus(
            sequence_progress=f'{len(sequence)}/{NURTURE_SEQUENCE_LENGTH} completed',
            next_touch=first.get('sendDate') or DEFAULT_NEXT_TOUCH,
            conversion_probability=(
                prediction.get('probability') or DEFAULT_CONVERSION_PROBABILITY
            ),
            status='active',
        )
    )
