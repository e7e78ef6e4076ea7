"""
Contact views: filtering, table, kanban, calendar, timeline and dashboard.
"""

from .dashboard import compute_metrics
from .filtering import ContactFilters, active_filter_count, apply_filters, matches_query
from .kanban import KanbanBoard, default_columns
from .table import SortState, TableColumns, sort_contacts

__all__ = [
    'ContactFilters',
    'KanbanBoard',
    'SortState',
    'TableColumns',
    'active_filter_count',
    'apply_filters',
    'compute_metrics',
    'default_columns',
    'matches_query',
    'sort_contacts',
]
