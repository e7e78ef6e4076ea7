"""
Backend-backed services: contacts, activity, products, matching, drafts and
view preferences.
"""

from .activity import ContactActivity, ContactActivityService
from .contacts import ContactPage, ContactQuery, ContactRepository
from .drafts import DraftFilters, DraftGenerator, DraftService
from .matches import MatchFilters, MatchService, filter_matches, group_by_tier, match_stats
from .matching import ProductMatcher, ReasoningEffort
from .products import ProductService, ProductStats
from .view_preferences import ViewPreferencesService

__all__ = [
    'ContactActivity',
    'ContactActivityService',
    'ContactPage',
    'ContactQuery',
    'ContactRepository',
    'DraftFilters',
    'DraftGenerator',
    'DraftService',
    'MatchFilters',
    'MatchService',
    'ProductMatcher',
    'ProductService',
    'ProductStats',
    'ReasoningEffort',
    'ViewPreferencesService',
    'filter_matches',
    'group_by_tier',
    'match_stats',
]
