"""
Tests for the sales intelligence features.

Tests cover:
- Payload parsers: missing roots, fallbacks, risk bands, category counts
- Demo records answered locally without calling any endpoint
- Request bodies sent to each endpoint
- Skills listing and run validation
"""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from conftest import make_contact
from smart_crm.errors import FunctionRateLimitError, PayloadError, ValidationError
from smart_crm.intelligence.parsers import (
    DEFAULT_RECOMMENDATIONS,
    parse_communication_optimization,
    parse_deal_health,
    parse_discovery_questions,
    parse_nurture_status,
    parse_playbook,
    risk_level_for,
)
from smart_crm.intelligence.service import (
    CommunicationContext,
    MeetingContext,
    Recipient,
    SalesIntelligenceService,
    days_to_close,
    focus_areas,
    optimization_goals,
    target_metrics,
)
from smart_crm.models.deal import Deal
from smart_crm.models.intelligence import RiskLevel


@pytest.fixture
def functions() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(functions) -> SalesIntelligenceService:
    return SalesIntelligenceService(functions)


def _deal(**overrides) -> Deal:
    data = {
        'id': 'deal-1',
        'name': 'Acme Expansion',
        'company': 'Acme',
        'stage': 'proposal',
        'value': 50000,
        'close_date': date(2024, 3, 1),
        'competitors': ['Globex'],
        'stakeholders': [{'name': 'Ann', 'role': 'champion'}],
    }
    data.update(overrides)
    return Deal.model_validate(data)


# =============================================================================
# Parsers
# =============================================================================


class TestParsers:
    @pytest.mark.parametrize(
        'parser,message',
        [
            (parse_playbook, 'No playbook data received'),
            (parse_discovery_questions, 'No questions data received'),
            (parse_deal_health, 'No health analysis received'),
            (parse_communication_optimization, 'No optimization data received'),
            (parse_nurture_status, 'No nurture strategy received'),
        ],
    )
    def test_missing_root(self, parser, message):
        result = parser({})
        assert isinstance(result.error, PayloadError)
        assert result.error_message == message

    def test_playbook_camel_case(self):
        result = parse_playbook({'playbook': {'dealId': 'd1', 'strategy': {'name': 'Land', 'confidence': 0.8}}})
        assert result.data.deal_id == 'd1'
        assert result.data.strategy.name == 'Land'

    def test_playbook_invalid_shape(self):
        result = parse_playbook({'playbook': {'phases': 'not a list'}})
        assert result.error_message == 'Invalid playbook data received'

    def test_discovery_questions_numbered_with_fallbacks(self):
        payload = {
            'data': {
                'questions': [
                    {'text': 'What hurts?', 'category': 'technical', 'rationale': 'pain'},
                    {'question': 'Who signs?'},
                    {},
                ]
            }
        }

        result = parse_discovery_questions(payload)

        questions = result.data.questions
        assert [q.id for q in questions] == ['q1', 'q2', 'q3']
        assert questions[0].question == 'What hurts?'
        assert questions[0].reasoning == 'pain'
        assert questions[2].question == 'Generated question'
        assert questions[2].priority == 'medium'
        assert result.data.summary.categories == {'technical': 1, 'business': 2}
        assert result.data.summary.estimated_duration == 15

    def test_discovery_duration_scales(self):
        payload = {'data': {'questions': [{'question': str(i)} for i in range(10)]}}
        assert parse_discovery_questions(payload).data.summary.estimated_duration == 30

    @pytest.mark.parametrize(
        'score,level',
        [(95, RiskLevel.LOW), (80, RiskLevel.LOW), (79, RiskLevel.MEDIUM), (60, RiskLevel.MEDIUM),
         (59, RiskLevel.HIGH), (40, RiskLevel.HIGH), (39, RiskLevel.CRITICAL)],
    )
    def test_risk_bands(self, score, level):
        assert risk_level_for(score) == level

    def test_deal_health_defaults(self):
        result = parse_deal_health({'analysis': {'metrics': {}}})

        health = result.data
        assert health.overall == 75
        assert health.risk_level == RiskLevel.MEDIUM
        assert health.recommendations == DEFAULT_RECOMMENDATIONS
        assert [i.name for i in health.indicators] == [
            'Stakeholder Alignment', 'Timeline Risk', 'Budget Fit', 'Competition'
        ]
        assert health.next_steps == ['Schedule next stakeholder touchpoint', 'Update deal progress in CRM']

    def test_deal_health_risks_and_competition(self):
        analysis = {
            'score': 35,
            'metrics': {'timelineScore': 50, 'stakeholderScore': 90},
            'competitors': ['a', 'b', 'c'],
            'risks': [{'severity': 'high'}],
            'recommendations': ['Call the CFO'],
        }

        health = parse_deal_health({'analysis': analysis}).data

        indicators = {i.name: i for i in health.indicators}
        assert indicators['Stakeholder Alignment'].score == 90
        assert indicators['Timeline Risk'].status == 'critical'
        assert indicators['Competition'].score == 60
        assert health.risk_level == RiskLevel.CRITICAL
        assert health.next_steps[:2] == [
            'Address high-priority risks immediately',
            'Review and implement recommendations',
        ]

    def test_nurture_status(self):
        payload = {
            'nurtureStrategy': {
                'contentSequence': [{'sendDate': 'Monday 9 AM'}, {}],
                'conversionPrediction': {'probability': 0.7},
            }
        }
        status = parse_nurture_status(payload).data
        assert status.sequence_progress == '2/5 completed'
        assert status.next_touch == 'Monday 9 AM'
        assert status.conversion_probability == 0.7

    def test_nurture_status_defaults(self):
        status = parse_nurture_status({'nurtureStrategy': {'contentSequence': []}}).data
        assert status.sequence_progress == '0/5 completed'
        assert status.next_touch == 'Tomorrow 10 AM'
        assert status.conversion_probability == 0.5

    def test_communication_optimization(self):
        payload = {'optimization': {'score': 82, 'optimizedContent': {'subject': 'Hi'}, 'insights': ['Shorter']}}
        result = parse_communication_optimization(payload).data
        assert result.score == 82
        assert result.optimized_content.subject == 'Hi'


# =============================================================================
# Request helpers
# =============================================================================


class TestRequestHelpers:
    def test_lookup_tables_fall_back(self):
        assert focus_areas('closing') == ['final_objections', 'implementation', 'success_metrics']
        assert focus_areas('webinar') == ['general']
        assert optimization_goals('unknown') == ['general_engagement']
        assert target_metrics('fax') == {'engagementRate': 0.10}

    def test_days_to_close(self):
        assert days_to_close(_deal(), date(2024, 2, 1)) == 29
        assert days_to_close(_deal(close_date=None)) == 90
        assert days_to_close(_deal(), date(2024, 6, 1)) == 0


# =============================================================================
# Service
# =============================================================================


class TestDemoRecords:
    @pytest.mark.asyncio
    async def test_demo_deal_skips_endpoint(self, service, functions):
        result = await service.analyze_deal_health(_deal(name='Demo Deal'))

        assert result.data.overall == 78
        functions.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_mock_deal_playbook(self, service, functions):
        result = await service.generate_playbook(_deal(id='mock-7'))

        assert result.success
        assert result.data.deal_id == 'mock-7'
        functions.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_demo_contact_discovery(self, service, functions):
        contact = make_contact(1, name='Jane', company='Demo Company', title='CFO')

        result = await service.generate_discovery_questions(contact, MeetingContext())

        assert result.data.summary.total_questions == 8
        assert result.data.summary.categories['decision_making'] == 3
        assert 'Jane' in result.data.questions[0].question
        functions.invoke.assert_not_called()


class TestEndpointCalls:
    @pytest.mark.asyncio
    async def test_deal_health_body(self, service, functions):
        functions.invoke.return_value = {'analysis': {'score': 85}}

        result = await service.analyze_deal_health(_deal(), today=date(2024, 2, 1))

        name, body = functions.invoke.call_args.args
        assert name == 'deal-health-analysis'
        assert body['dealData']['timeline'] == 29
        assert body['dealData']['closeDate'] == '2024-03-01'
        assert body['dealData']['champion'] == {'name': 'Ann', 'role': 'champion'}
        assert result.data.risk_level == RiskLevel.LOW

    @pytest.mark.asyncio
    async def test_playbook_body(self, service, functions):
        functions.invoke.return_value = {'playbook': {'dealId': 'deal-1'}}

        await service.generate_playbook(_deal())

        name, body = functions.invoke.call_args.args
        assert name == 'adaptive-playbook'
        assert body['dealData']['id'] == 'deal-1'
        assert [c['name'] for c in body['competitiveAnalysis']] == ['Globex']
        assert body['historicalData']['similarDeals'][0]['value'] == 50000

    @pytest.mark.asyncio
    async def test_discovery_body(self, service, functions):
        functions.invoke.return_value = {'data': {'questions': [{'question': 'Why now?'}]}}
        contact = make_contact(2, name='Bob', company='Globex', title='VP Sales')

        result = await service.generate_discovery_questions(
            contact, MeetingContext(type='demo', duration=45, objective='Show reporting')
        )

        name, body = functions.invoke.call_args.args
        assert name == 'discovery-questions'
        assert body['contact']['title'] == 'VP Sales'
        assert body['meetingContext'] == {'type': 'demo', 'duration': 45, 'objective': 'Show reporting'}
        assert result.data.questions[0].id == 'q1'

    @pytest.mark.asyncio
    async def test_communication_body(self, service, functions):
        functions.invoke.return_value = {'optimization': {'score': 70}}
        context = CommunicationContext(type='call_script', recipient=Recipient(name='Ann'), purpose='close')

        await service.optimize_communication('Hello Ann', context)

        _, body = functions.invoke.call_args.args
        assert body['optimizationGoals'] == ['urgency_creation', 'objection_handling', 'commitment']
        assert body['targetMetrics'] == {'connectionRate': 0.60, 'conversionRate': 0.15}
        assert body['context']['recipient'] == {'name': 'Ann', 'relationship': 'new'}

    @pytest.mark.asyncio
    async def test_communication_requires_content(self, service, functions):
        result = await service.optimize_communication('  ', CommunicationContext(recipient=Recipient(name='A')))
        assert isinstance(result.error, ValidationError)
        functions.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_nurture_body(self, service, functions):
        functions.invoke.return_value = {'nurtureStrategy': {'contentSequence': []}}

        await service.nurture_status(make_contact(3))

        name, body = functions.invoke.call_args.args
        assert name == 'lead-nurturing'
        assert body['leadId'] == 'c3'
        assert body['constraints']['maxEmailsPerWeek'] == 3

    @pytest.mark.asyncio
    async def test_endpoint_error_becomes_failure(self, service, functions):
        functions.invoke.side_effect = FunctionRateLimitError('Rate limit exceeded')

        result = await service.nurture_status(make_contact(3))

        assert isinstance(result.error, FunctionRateLimitError)


class TestSkills:
    @pytest.mark.asyncio
    async def test_list_skills(self, service, functions):
        functions.invoke.return_value = {'skills': [{'id': 'summarize', 'description': 'Summarize'}]}

        result = await service.list_skills()

        assert [s.id for s in result.data] == ['summarize']
        assert functions.invoke.call_args.kwargs['method'] == 'GET'

    @pytest.mark.asyncio
    async def test_list_skills_malformed(self, service, functions):
        functions.invoke.return_value = {'skills': [{'description': 'no id'}]}
        result = await service.list_skills()
        assert isinstance(result.error, PayloadError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'skill_id,contact_id,message',
        [('summarize', '', 'Please enter a contact ID.'), ('', 'c1', 'Please select a skill.')],
    )
    async def test_run_validation(self, service, functions, skill_id, contact_id, message):
        result = await service.run_skill(skill_id, contact_id)
        assert result.error_message == message
        functions.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_run(self, service, functions):
        functions.invoke.return_value = {'result': {'summary': 'ok'}}

        result = await service.run_skill('summarize', 'c1')

        assert result.data.skill_id == 'summarize'
        assert result.data.result == {'summary': 'ok'}
        assert functions.invoke.call_args.args[1] == {'skillId': 'summarize', 'contactId': 'c1'}
