"""
AI sales intelligence: playbooks, discovery questions, deal health,
communication optimization, lead nurturing and skills.
"""

from .demo import is_demo_contact, is_demo_deal
from .parsers import (
    parse_communication_optimization,
    parse_deal_health,
    parse_discovery_questions,
    parse_nurture_status,
    parse_playbook,
)
from .service import (
    CommunicationContext,
    MeetingContext,
    Recipient,
    SalesIntelligenceService,
    focus_areas,
)

__all__ = [
    'CommunicationContext',
    'MeetingContext',
    'Recipient',
    'SalesIntelligenceService',
    'focus_areas',
    'is_demo_contact',
    'is_demo_deal',
    'parse_communication_optimization',
    'parse_deal_health',
    'parse_discovery_questions',
    'parse_nurture_status',
    'parse_playbook',
]
