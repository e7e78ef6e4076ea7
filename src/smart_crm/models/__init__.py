"""
Data models for Smart CRM.
"""

from .contact import (
    Contact,
    ContactCreate,
    ContactStatus,
    InterestLevel,
    validate_contact,
)
from .deal import Deal
from .intelligence import (
    AIMatchAnalysis,
    CommunicationOptimization,
    DealHealth,
    DiscoveryQuestion,
    DiscoveryQuestions,
    HealthIndicator,
    NurtureStatus,
    Playbook,
    RiskLevel,
    Skill,
    SkillRun,
)
from .product import (
    CompanySize,
    DraftTone,
    DraftType,
    MatchReason,
    MatchScoreWeights,
    MatchTier,
    PersonalizationToken,
    PricingModel,
    ProductContactMatch,
    ProductDraft,
    ProductInput,
    UserProduct,
    ValueProposition,
    get_match_tier,
    get_match_tier_label,
)
from .records import AgentMemory, AutopilotLog, CalendarEvent, VideoJob, VoiceJob
from .tour import TOURS, Tour, TourStep, find_tour
from .views import (
    CalendarEntry,
    DashboardLayout,
    DashboardMetrics,
    EventType,
    KanbanColumn,
    KanbanConfig,
    TableColumnPreferences,
    TimelineEvent,
    TimelinePreferences,
    ViewFilterConfig,
    ViewType,
)

__all__ = [
    # Contacts and deals
    'Contact',
    'ContactCreate',
    'ContactStatus',
    'InterestLevel',
    'validate_contact',
    'Deal',
    # Passive records
    'AgentMemory',
    'AutopilotLog',
    'CalendarEvent',
    'VideoJob',
    'VoiceJob',
    # Products
    'CompanySize',
    'DraftTone',
    'DraftType',
    'MatchReason',
    'MatchScoreWeights',
    'MatchTier',
    'PersonalizationToken',
    'PricingModel',
    'ProductContactMatch',
    'ProductDraft',
    'ProductInput',
    'UserProduct',
    'ValueProposition',
    'get_match_tier',
    'get_match_tier_label',
    # Intelligence
    'AIMatchAnalysis',
    'CommunicationOptimization',
    'DealHealth',
    'DiscoveryQuestion',
    'DiscoveryQuestions',
    'HealthIndicator',
    'NurtureStatus',
    'Playbook',
    'RiskLevel',
    'Skill',
    'SkillRun',
    # Views
    'CalendarEntry',
    'DashboardLayout',
    'DashboardMetrics',
    'EventType',
    'KanbanColumn',
    'KanbanConfig',
    'TableColumnPreferences',
    'TimelineEvent',
    'TimelinePreferences',
    'ViewFilterConfig',
    'ViewType',
    # Tours
    'TOURS',
    'Tour',
    'TourStep',
    'find_tour',
]
