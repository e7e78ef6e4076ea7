"""
View records: persisted per-user view preferences and the derived shapes the
list/table/kanban/calendar/timeline/dashboard views produce.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ViewType(str, Enum):
    LIST = 'list'
    TABLE = 'table'
    KANBAN = 'kanban'
    CALENDAR = 'calendar'
    DASHBOARD = 'dashboard'
    TIMELINE = 'timeline'


class EventType(str, Enum):
    """Activity types rendered on the calendar and timeline."""

    EMAIL = 'email'
    CALL = 'call'
    MEETING = 'meeting'
    NOTE = 'note'
    STATUS_CHANGE = 'status_change'
    CREATED = 'created'


# =============================================================================
# Persisted preferences
# =============================================================================


class KanbanColumn(BaseModel):
    id: str = Field(..., description='Field value cards in this column carry')
    title: str
    color: str = '#6B7280'
    order: int = 0


class KanbanConfig(BaseModel):
    column_field: str = 'status'
    columns: list[KanbanColumn] = Field(default_factory=list)


class TableColumnPreferences(BaseModel):
    visible_columns: list[str] = Field(default_factory=list)
    column_order: list[str] = Field(default_factory=list)
    column_widths: dict[str, int] = Field(default_factory=dict)


class DashboardWidget(BaseModel):
    id: str
    type: str
    position: dict[str, int] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)


class DashboardLayout(BaseModel):
    widgets: list[DashboardWidget] = Field(default_factory=list)
    date_range: str = '30d'


class TimelinePreferences(BaseModel):
    time_scale: str = 'week'
    visible_event_types: list[EventType] = Field(default_factory=lambda: list(EventType))
    selected_contacts: list[str] = Field(default_factory=list)


class ViewFilterConfig(BaseModel):
    view_type: ViewType
    filter_config: dict[str, Any] = Field(default_factory=dict)
    sort_config: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Derived view shapes
# =============================================================================


class CalendarEntry(BaseModel):
    id: str
    contact_id: str
    contact_name: str
    type: EventType
    date: date
    title: str


class TimelineEvent(BaseModel):
    id: str
    contact_id: str
    contact_name: str
    type: EventType
    title: str
    description: str
    timestamp: datetime


class StatusSlice(BaseModel):
    name: str
    value: int
    color: str


class DashboardMetrics(BaseModel):
    total_contacts: int
    average_ai_score: float
    hot_leads: int
    customers: int
    conversion_rate: float = Field(..., description='Percent, one decimal')
    status_distribution: list[StatusSlice]
    industry_counts: list[dict[str, Any]]
    top_contacts: list[dict[str, Any]]
