"""
Sales intelligence: request building, endpoint invocation and parsing.

Each feature builds the request body the AI endpoint expects, invokes it
through FunctionsClient and reshapes the answer with the parsers. Demo
records short-circuit to canned results.
"""

from datetime import date
from typing import Any, Callable, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..clients.functions_client import FunctionsClient
from ..errors import PayloadError, ValidationError
from ..models.contact import Contact
from ..models.deal import Deal
from ..models.intelligence import (
    CommunicationOptimization,
    DealHealth,
    DiscoveryQuestions,
    NurtureStatus,
    Playbook,
    Skill,
    SkillRun,
)
from ..result import Result, capture
from .demo import (
    demo_deal_health,
    demo_discovery_questions,
    demo_playbook,
    is_demo_contact,
    is_demo_deal,
)
from .parsers import (
    parse_communication_optimization,
    parse_deal_health,
    parse_discovery_questions,
    parse_nurture_status,
    parse_playbook,
)

logger = structlog.get_logger(__name__)

T = TypeVar('T')

DEFAULT_DAYS_TO_CLOSE = 90

FOCUS_AREAS = {
    'discovery': ['pain_points', 'goals', 'timeline', 'budget'],
    'demo': ['current_solution', 'requirements', 'integration', 'training'],
    'follow_up': ['feedback', 'objections', 'next_steps', 'timeline'],
    'negotiation': ['terms', 'pricing', 'timeline', 'support'],
    'closing': ['final_objections', 'implementation', 'success_metrics'],
}

OPTIMIZATION_GOALS = {
    'nurture': ['engagement', 'relationship_building', 'value_demonstration'],
    'qualify': ['information_gathering', 'need_identification', 'qualification'],
    'close': ['urgency_creation', 'objection_handling', 'commitment'],
    'follow_up': ['next_step_creation', 'momentum_maintenance'],
    're_engage': ['attention_grabbing', 'value_reminder', 'reconnection'],
}

TARGET_METRICS = {
    'email': {'openRate': 0.25, 'responseRate': 0.08, 'clickRate': 0.03},
    'call_script': {'connectionRate': 0.60, 'conversionRate': 0.15},
    'social_message': {'engagementRate': 0.08, 'responseRate': 0.05},
}

NURTURE_CONSTRAINTS = {
    'maxEmailsPerWeek': 3,
    'maxCallsPerWeek': 2,
    'preferredChannels': ['email'],
    'timezone': 'America/New_York',
    'workingHours': {'start': '09:00', 'end': '17:00'},
}


def focus_areas(meeting_type: str) -> list[str]:
    return list(FOCUS_AREAS.get(meeting_type, ['general']))


def optimization_goals(purpose: str) -> list[str]:
    return list(OPTIMIZATION_GOALS.get(purpose, ['general_engagement']))


def target_metrics(communication_type: str) -> dict[str, float]:
    return dict(TARGET_METRICS.get(communication_type, {'engagementRate': 0.10}))


def days_to_close(deal: Deal, today: date | None = None) -> int:
    if not deal.close_date:
        return DEFAULT_DAYS_TO_CLOSE
    return max(0, (deal.close_date - (today or date.today())).days)


# =============================================================================
# Request contexts
# =============================================================================


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class MeetingContext(_Body):
    type: str = 'discovery'
    duration: int = Field(default=30, description='Minutes')
    objective: str = ''
    previous_meetings: int | None = None


class Recipient(_Body):
    name: str
    role: str | None = None
    company: str | None = None
    relationship: str = Field(default='new', description='new, existing, champion or decision_maker')


class CommunicationContext(_Body):
    type: str = Field(default='email', description='email, call_script, social_message, proposal_followup')
    recipient: Recipient
    purpose: str = Field(default='nurture', description='nurture, qualify, close, follow_up, re_engage')
    previous_interactions: int | None = None


# =============================================================================
# Service
# =============================================================================


class SalesIntelligenceService:
    """
    AI sales-intelligence features over the serverless endpoints.

    Args:
        functions: Session-bound functions client
    """

    def __init__(self, functions: FunctionsClient):
        self.functions = functions

    async def _call(
        self,
        name: str,
        body: dict[str, Any] | None,
        parse: Callable[[Any], Result[T]],
        method: str = 'POST',
        **fields: Any,
    ) -> Result[T]:
        payload = await capture(
            self.functions.invoke(name, body, method=method), f'intelligence.{name}.failed', **fields
        )
        if not payload.success:
            return Result.fail(payload.error)
        parsed = parse(payload.data)
        if parsed.success:
            logger.info(f'intelligence.{name}.completed', **fields)
        return parsed

    # =========================================================================
    # Deals
    # =========================================================================

    async def generate_playbook(self, deal: Deal) -> Result[Playbook]:
        if is_demo_deal(deal):
            logger.info('intelligence.demo', feature='playbook', deal_id=deal.id)
            return Result.ok(demo_playbook(deal))
        return await self._call(
            'adaptive-playbook', self.playbook_body(deal), parse_playbook, deal_id=deal.id
        )

    @staticmethod
    def playbook_body(deal: Deal) -> dict[str, Any]:
        value = deal.value
        return {
            'dealData': deal.model_dump(mode='json'),
            'companyProfile': {
                'industry': deal.industry,
                'size': deal.company_size,
                'growthStage': 'growth',
                'decisionMaking': 'committee',
                'budgetCycle': 'annual',
                'technologyStack': ['crm', 'marketing_automation'],
            },
            'competitiveAnalysis': [
                {
                    'name': competitor,
                    'strengths': ['Strong brand recognition', 'Established relationships'],
                    'weaknesses': ['Higher pricing', 'Complex implementation'],
                    'marketPosition': 'leader',
                    'winProbability': 0.6,
                }
                for competitor in deal.competitors
            ],
            'historicalData': {
                'similarDeals': [
                    {'value': value, 'duration': 45, 'won': True},
                    {'value': value, 'duration': 60, 'won': False},
                ],
                'averageWinRate': 0.65,
                'averageDuration': 52,
                'commonObjections': ['budget', 'timeline', 'competition'],
            },
        }

    async def analyze_deal_health(self, deal: Deal, today: date | None = None) -> Result[DealHealth]:
        if is_demo_deal(deal):
            logger.info('intelligence.demo', feature='deal_health', deal_id=deal.id)
            return Result.ok(demo_deal_health())
        return await self._call(
            'deal-health-analysis',
            self.deal_health_body(deal, today),
            parse_deal_health,
            deal_id=deal.id,
        )

    @staticmethod
    def deal_health_body(deal: Deal, today: date | None = None) -> dict[str, Any]:
        return {
            'dealData': {
                'id': deal.id,
                'name': deal.name,
                'value': deal.value,
                'company': deal.company,
                'stage': deal.stage,
                'closeDate': deal.close_date.isoformat() if deal.close_date else None,
                'competitors': deal.competitors,
                'stakeholders': deal.stakeholders,
                'lastActivity': deal.last_activity,
                'timeline': days_to_close(deal, today),
                'budget': deal.value,
                'productFit': 75,
                'relationshipStrength': 'strong',
                'champion': deal.champion,
            }
        }

    # =========================================================================
    # Contacts
    # =========================================================================

    async def generate_discovery_questions(
        self, contact: Contact, meeting: MeetingContext
    ) -> Result[DiscoveryQuestions]:
        if is_demo_contact(contact):
            logger.info('intelligence.demo', feature='discovery', contact_id=contact.id)
            return Result.ok(demo_discovery_questions(contact))
        body = {
            'contact': {
                'id': contact.id,
                'name': contact.display_name(),
                'title': contact.role,
                'company': contact.company,
                'industry': contact.industry,
                'companySize': contact.company_size,
            },
            'meetingContext': meeting.to_body(),
            'questionType': 'comprehensive',
            'aiProvider': 'openai',
        }
        return await self._call(
            'discovery-questions', body, parse_discovery_questions, contact_id=contact.id
        )

    async def optimize_communication(
        self, content: str, context: CommunicationContext
    ) -> Result[CommunicationOptimization]:
        if not content.strip():
            return Result.fail(ValidationError('Content is required'))
        body = {
            'content': content,
            'context': context.to_body(),
            'optimizationGoals': optimization_goals(context.purpose),
            'targetMetrics': target_metrics(context.type),
        }
        return await self._call(
            'communication-optimization', body, parse_communication_optimization, type=context.type
        )

    async def nurture_status(self, contact: Contact) -> Result[NurtureStatus]:
        lead = {
            'name': contact.display_name(),
            'email': contact.email,
            'company': contact.company,
            'role': contact.role,
            'industry': contact.industry,
            'companySize': contact.company_size,
            'currentStage': 'prospecting',
            'engagementScore': 50,
            'lastContactedAt': contact.last_connected,
            'engagementHistory': [],
        }
        body = {
            'leadId': contact.id,
            'leadData': lead,
            'nurtureGoals': ['awareness', 'consideration'],
            'availableContent': [],
            'constraints': NURTURE_CONSTRAINTS,
        }
        return await self._call('lead-nurturing', body, parse_nurture_status, contact_id=contact.id)

    # =========================================================================
    # Skills
    # =========================================================================

    async def list_skills(self) -> Result[list[Skill]]:
        def parse(payload: Any) -> Result[list[Skill]]:
            skills = payload.get('skills') if isinstance(payload, dict) else None
            try:
                return Result.ok([Skill.model_validate(s) for s in skills or []])
            except PydanticValidationError as e:
                return Result.fail(PayloadError(f'Invalid skills data received: {e.error_count()} error(s)'))

        return await self._call('skills-api', None, parse, method='GET')

    async def run_skill(self, skill_id: str, contact_id: str) -> Result[SkillRun]:
        if not contact_id:
            return Result.fail(ValidationError('Please enter a contact ID.'))
        if not skill_id:
            return Result.fail(ValidationError('Please select a skill.'))

        def parse(payload: Any) -> Result[SkillRun]:
            data = payload if isinstance(payload, dict) else {}
            return Result.ok(
                SkillRun(
                    skill_id=data.get('skillId') or skill_id,
                    contact_id=data.get('contactId') or contact_id,
                    result=data.get('result', payload),
                )
            )

        return await self._call(
            'skills-api',
            {'skillId': skill_id, 'contactId': contact_id},
            parse,
            skill_id=skill_id,
            contact_id=contact_id,
        )
