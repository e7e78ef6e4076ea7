"""
Typed results of the AI sales-intelligence features.

Remote endpoints answer with loosely shaped camelCase JSON; the models here
accept those keys through camelCase aliases and default every optional part so
that parsing is the only place fallbacks live.

AIMatchAnalysis (and its parts) is the OpenAI structured-output target for
AI-enhanced product matching and therefore uses plain field names.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Priority(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class RiskLevel(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'


# =============================================================================
# Adaptive playbook
# =============================================================================


class PlaybookStrategy(_Payload):
    name: str = ''
    description: str = ''
    confidence: float = 0
    rationale: str = ''


class PlaybookTactic(_Payload):
    id: str = ''
    name: str = ''
    description: str = ''
    priority: str = 'medium'
    estimated_effort: str = ''
    success_metrics: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class PlaybookMilestone(_Payload):
    id: str = ''
    name: str = ''
    description: str = ''
    due_date: str = ''
    owner: str = ''
    status: str = 'pending'


class PlaybookPhase(_Payload):
    id: str = ''
    name: str = ''
    timeline: str = ''
    objectives: list[str] = Field(default_factory=list)
    tactics: list[PlaybookTactic] = Field(default_factory=list)
    milestones: list[PlaybookMilestone] = Field(default_factory=list)


class RiskMitigation(_Payload):
    risk: str = ''
    probability: float = 0
    impact: str = ''
    mitigation: str = ''


class SuccessIndicator(_Payload):
    metric: str = ''
    target: str = ''
    current: str = ''
    status: str = 'on_track'


class CompetitivePositioning(_Payload):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    differentiation: list[str] = Field(default_factory=list)
    win_themes: list[str] = Field(default_factory=list)


class Playbook(_Payload):
    deal_id: str = ''
    strategy: PlaybookStrategy = Field(default_factory=PlaybookStrategy)
    phases: list[PlaybookPhase] = Field(default_factory=list)
    risk_mitigation: list[RiskMitigation] = Field(default_factory=list)
    success_indicators: list[SuccessIndicator] = Field(default_factory=list)
    competitive_positioning: CompetitivePositioning = Field(
        default_factory=CompetitivePositioning
    )


# =============================================================================
# Discovery questions
# =============================================================================


class DiscoveryQuestion(_Payload):
    id: str
    question: str
    category: str = 'business'
    priority: str = 'medium'
    reasoning: str = ''


class QuestionSummary(_Payload):
    total_questions: int = 0
    categories: dict[str, int] = Field(default_factory=dict)
    estimated_duration: int = 15
    key_themes: list[str] = Field(default_factory=list)


class DiscoveryQuestions(_Payload):
    questions: list[DiscoveryQuestion] = Field(default_factory=list)
    summary: QuestionSummary = Field(default_factory=QuestionSummary)


# =============================================================================
# Deal health
# =============================================================================


class HealthIndicator(_Payload):
    name: str
    score: float
    status: str = Field(..., description="'good', 'warning' or 'critical'")


class DealHealth(_Payload):
    overall: float
    indicators: list[HealthIndicator] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.MEDIUM
    next_steps: list[str] = Field(default_factory=list)


# =============================================================================
# Communication optimization
# =============================================================================


class OptimizationSuggestion(_Payload):
    aspect: str = ''
    score: float = 0
    feedback: str = ''
    suggestion: str = ''


class OptimizedContent(_Payload):
    subject: str | None = None
    body: str | None = None
    call_script: str | None = None


class CommunicationPerformance(_Payload):
    open_rate: float | None = None
    response_rate: float | None = None
    conversion_potential: float = 0


class CommunicationOptimization(_Payload):
    score: float = 0
    suggestions: list[OptimizationSuggestion] = Field(default_factory=list)
    optimized_content: OptimizedContent | None = None
    performance: CommunicationPerformance = Field(default_factory=CommunicationPerformance)
    insights: list[str] = Field(default_factory=list)


# =============================================================================
# Lead nurturing and skills
# =============================================================================


class NurtureStatus(_Payload):
    sequence_progress: str
    next_touch: str
    conversion_probability: float
    status: str = 'active'


class Skill(_Payload):
    id: str
    description: str = ''


class SkillRun(_Payload):
    skill_id: str
    contact_id: str
    result: Any = None


# =============================================================================
# AI-enhanced match analysis (OpenAI structured output)
# =============================================================================


class TalkingPoint(BaseModel):
    topic: str = Field(..., description='Short label for the talking point')
    content: str = Field(..., description='What to say')
    relevance: Priority = Field(..., description='high, medium or low')


class AnticipatedObjection(BaseModel):
    objection: str
    response: str
    likelihood: Priority


class AIMatchAnalysis(BaseModel):
    """Semantic fit assessment between one product and one contact."""

    ai_confidence: float = Field(..., ge=0, le=100)
    ai_reasoning: str
    semantic_score: float = Field(..., ge=0, le=100)
    talking_points: list[TalkingPoint]
    anticipated_objections: list[AnticipatedObjection]
    predicted_conversion: float = Field(..., ge=0, le=100)
    optimal_outreach_time: str
    competitive_positioning: str
    personalization_insights: list[str]
