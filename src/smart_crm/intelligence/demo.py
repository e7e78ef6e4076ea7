"""
Canned intelligence results for demo records.

Demo contacts and deals are answered locally so that walkthroughs never hit
the AI endpoints.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from ..models.contact import Contact
from ..models.deal import Deal
from ..models.intelligence import (
    DealHealth,
    DiscoveryQuestion,
    DiscoveryQuestions,
    HealthIndicator,
    Playbook,
    QuestionSummary,
    RiskLevel,
)

DEMO_COMPANY = 'Demo Company'


def is_demo_contact(contact: Contact) -> bool:
    name = contact.display_name()
    return 'Demo' in name or name.startswith('Mock') or contact.company == DEMO_COMPANY


def is_demo_deal(deal: Deal) -> bool:
    return (
        'Demo' in deal.name
        or deal.name.startswith('Mock')
        or deal.id.startswith('mock')
        or deal.company == DEMO_COMPANY
    )


# =============================================================================
# Discovery questions
# =============================================================================


def demo_discovery_questions(contact: Contact) -> DiscoveryQuestions:
    name = contact.display_name()
    seeds = [
        (
            f'What are the biggest challenges {name} is facing in {contact.role} at {contact.company}?',
            'business', 'high',
            'Understanding pain points helps tailor the solution and demonstrate value.',
        ),
        (
            'How does your current process work for handling [specific business challenge]?',
            'technical', 'high',
            'Reveals current workflow and identifies integration opportunities.',
        ),
        (
            f"What are {contact.company}'s top priorities for the next 6-12 months?",
            'business', 'medium',
            'Aligns solution with company goals and timeline expectations.',
        ),
        (
            'Who else at your organization would be involved in this decision?',
            'decision_making', 'high',
            'Identifies all stakeholders and decision-making process.',
        ),
        (
            'What would success look like for you in this area?',
            'personal', 'medium',
            'Uncovers personal motivations and success criteria.',
        ),
        (
            'Have you evaluated any other solutions? What did you like/dislike about them?',
            'business', 'medium',
            'Reveals competitive landscape and differentiation opportunities.',
        ),
        (
            "What's your timeline for implementing a solution?",
            'decision_making', 'high',
            'Establishes urgency and helps prioritize follow-up actions.',
        ),
        (
            'What budget have you allocated for this type of solution?',
            'decision_making', 'medium',
            'Qualifies budget fit and pricing expectations.',
        ),
    ]
    questions = [
        DiscoveryQuestion(
            id=f'q{i}', question=text, category=category, priority=priority, reasoning=reasoning
        )
        for i, (text, category, priority, reasoning) in enumerate(seeds, start=1)
    ]
    return DiscoveryQuestions(
        questions=questions,
        summary=QuestionSummary(
            total_questions=8,
            categories={'business': 3, 'technical': 1, 'personal': 1, 'decision_making': 3},
            estimated_duration=25,
            key_themes=[
                'Current challenges and pain points',
                'Decision-making process and stakeholders',
                'Timeline and budget considerations',
                'Success criteria and expectations',
            ],
        ),
    )


# =============================================================================
# Deal health
# =============================================================================


def demo_deal_health() -> DealHealth:
    return DealHealth(
        overall=78,
        indicators=[
            HealthIndicator(name='Stakeholder Alignment', score=85, status='good'),
            HealthIndicator(name='Timeline Risk', score=72, status='warning'),
            HealthIndicator(name='Budget Fit', score=88, status='good'),
            HealthIndicator(name='Competition', score=65, status='warning'),
        ],
        recommendations=[
            'Schedule follow-up meeting with key stakeholders',
            'Address competitive concerns proactively',
            'Review and confirm timeline expectations',
            'Strengthen relationship with decision makers',
        ],
        risk_level=RiskLevel.MEDIUM,
        next_steps=[
            'Schedule stakeholder alignment call within 48 hours',
            'Prepare competitive differentiation materials',
            'Update deal stage in CRM',
            'Send personalized follow-up email',
        ],
    )


# =============================================================================
# Playbook
# =============================================================================


def _tactic(tactic_id: str, name: str, description: str, effort: str, metrics: list[str],
            depends: list[str], priority: str = 'high') -> dict[str, Any]:
    return {
        'id': tactic_id,
        'name': name,
        'description': description,
        'priority': priority,
        'estimatedEffort': effort,
        'successMetrics': metrics,
        'dependencies': depends,
    }


def _milestone(index: int, name: str, description: str, days: int, now: datetime) -> dict[str, Any]:
    return {
        'id': f'milestone-{index}',
        'name': name,
        'description': description,
        'dueDate': (now + timedelta(days=days)).isoformat(),
        'owner': 'Sales Rep',
        'status': 'pending',
    }


def demo_playbook(deal: Deal, now: datetime | None = None) -> Playbook:
    now = now or datetime.now(timezone.utc)
    payload = {
        'dealId': deal.id,
        'strategy': {
            'name': 'Strategic Growth Playbook',
            'description': (
                f'Comprehensive sales strategy for {deal.name} at {deal.company}. '
                'Focus on relationship building and value demonstration.'
            ),
            'confidence': 0.85,
            'rationale': (
                'Based on industry analysis and company profile, this strategy emphasizes '
                'consultative selling and ROI-focused messaging.'
            ),
        },
        'phases': [
            {
                'id': 'phase-1',
                'name': 'Discovery & Research',
                'timeline': 'Week 1-2',
                'objectives': [
                    'Understand business challenges and goals',
                    'Identify key decision makers and influencers',
                    'Map current technology stack and processes',
                ],
                'tactics': [
                    _tactic('tactic-1', 'Stakeholder Mapping',
                            'Identify and research all stakeholders involved in the decision process',
                            '2-3 hours', ['Stakeholder map completed', 'Key contacts identified'], []),
                    _tactic('tactic-2', 'Needs Assessment',
                            'Conduct thorough discovery to understand pain points and requirements',
                            '1-2 hours', ['Discovery call completed', 'Requirements documented'],
                            ['Stakeholder Mapping']),
                ],
                'milestones': [
                    _milestone(1, 'Initial Discovery Complete',
                               'Complete stakeholder mapping and needs assessment', 7, now),
                ],
            },
            {
                'id': 'phase-2',
                'name': 'Solution Presentation',
                'timeline': 'Week 3-4',
                'objectives': [
                    'Present tailored solution addressing identified needs',
                    'Demonstrate ROI and value proposition',
                    'Address objections and concerns',
                ],
                'tactics': [
                    _tactic('tactic-3', 'Customized Demo',
                            'Deliver personalized product demonstration based on discovery findings',
                            '2-3 hours', ['Demo delivered', 'Feedback collected'], ['Needs Assessment']),
                    _tactic('tactic-4', 'ROI Analysis', 'Present detailed ROI analysis and business case',
                            '1-2 hours', ['ROI document shared', 'Business case accepted'],
                            ['Customized Demo'], priority='medium'),
                ],
                'milestones': [
                    _milestone(2, 'Solution Presented', 'Complete demo and ROI presentation', 14, now),
                ],
            },
            {
                'id': 'phase-3',
                'name': 'Negotiation & Close',
                'timeline': 'Week 5-6',
                'objectives': [
                    'Negotiate terms and pricing',
                    'Overcome final objections',
                    'Secure commitment and close deal',
                ],
                'tactics': [
                    _tactic('tactic-5', 'Contract Negotiation',
                            'Negotiate terms, pricing, and implementation timeline',
                            '3-5 hours', ['Terms agreed', 'Contract drafted'], ['Solution Presented']),
                    _tactic('tactic-6', 'Final Close', 'Secure signature and transition to implementation',
                            '1-2 hours', ['Contract signed', 'Deal closed'], ['Contract Negotiation']),
                ],
                'milestones': [
                    _milestone(3, 'Deal Closed', 'Contract signed and deal completed', 21, now),
                ],
            },
        ],
        'riskMitigation': [
            {
                'risk': 'Budget constraints',
                'probability': 0.3,
                'impact': 'High - may delay or cancel purchase',
                'mitigation': (
                    'Emphasize ROI and offer flexible payment terms. Prepare alternative pricing tiers.'
                ),
            },
            {
                'risk': 'Competitor activity',
                'probability': 0.4,
                'impact': 'Medium - may influence decision',
                'mitigation': (
                    'Highlight unique differentiators and provide competitive analysis. '
                    'Schedule regular check-ins.'
                ),
            },
        ],
        'successIndicators': [
            {'metric': 'Engagement Score', 'target': '85%', 'current': '72%', 'status': 'on_track'},
            {'metric': 'Response Time', 'target': '< 24 hours', 'current': '< 12 hours', 'status': 'on_track'},
            {'metric': 'Meeting Attendance', 'target': '100%', 'current': '100%', 'status': 'on_track'},
        ],
        'competitivePositioning': {
            'strengths': [
                'Superior customer support and implementation',
                'Advanced AI capabilities',
                'Flexible pricing and payment options',
                'Strong industry expertise',
            ],
            'weaknesses': [],
            'differentiation': [
                'AI-powered insights and automation',
                'Proactive customer success management',
                'Industry-specific solutions',
            ],
            'winThemes': [
                'ROI-focused messaging',
                'Partnership approach',
                'Innovation and technology leadership',
            ],
        },
    }
    return Playbook.model_validate(payload)
