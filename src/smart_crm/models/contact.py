"""
Contact record and creation input.

Contacts are persisted by the backend in the ``contacts`` table. Fields are
snake_case in Python and on the wire to the backend; the camelCase aliases are
what the export and HTTP layers emit.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import ContactValidationError

_EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class InterestLevel(str, Enum):
    """How warm a contact is."""

    HOT = 'hot'
    MEDIUM = 'medium'
    LOW = 'low'
    COLD = 'cold'


class ContactStatus(str, Enum):
    """Lifecycle statuses used by the default kanban board."""

    LEAD = 'lead'
    PROSPECT = 'prospect'
    CUSTOMER = 'customer'
    CHURNED = 'churned'


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactCreate(_CamelModel):
    """Fields accepted when creating or importing a contact."""

    name: str = Field(default='', description='Display name')
    first_name: str | None = Field(default=None)
    last_name: str | None = Field(default=None)
    email: str | None = Field(default=None)
    phone: str | None = Field(default=None)
    title: str | None = Field(default=None, description='Job title as entered')
    job_title: str | None = Field(default=None, description='Job title from enrichment')
    company: str | None = Field(default=None)
    industry: str | None = Field(default=None)
    company_size: str | None = Field(
        default=None, description="Size bucket ('1-10', 'enterprise', ...)"
    )
    employees: str | None = Field(default=None)
    department: str | None = Field(default=None)
    avatar_src: str | None = Field(default=None)
    sources: list[str] = Field(default_factory=list)
    interest_level: InterestLevel | None = Field(default=None)
    status: str | None = Field(default=None, description='Lifecycle status (free text)')
    last_connected: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    ai_score: int | None = Field(default=None, ge=0, le=100)
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = Field(default=False)
    social_profiles: dict[str, str] = Field(default_factory=dict)
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    def display_name(self) -> str:
        if self.name:
            return self.name
        return ' '.join(p for p in (self.first_name, self.last_name) if p)

    def to_row(self) -> dict[str, Any]:
        """Backend row payload (snake_case, unset optionals dropped)."""
        row = self.model_dump(mode='json', exclude_none=True)
        row['name'] = self.display_name()
        return row


class Contact(ContactCreate):
    """A persisted contact."""

    id: str
    user_id: str | None = Field(default=None)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @property
    def role(self) -> str | None:
        return self.title or self.job_title

    def to_export_dict(self) -> dict[str, Any]:
        """camelCase JSON-safe representation."""
        return self.model_dump(mode='json', by_alias=True)


def validate_contact(data: ContactCreate) -> ContactCreate:
    """
    Check a contact before it is sent to the backend.

    Raises:
        ContactValidationError: name missing or email malformed
    """
    problems: list[str] = []
    if not data.display_name().strip():
        problems.append('name is required')
    if data.email and not _EMAIL_RE.match(data.email):
        problems.append(f'invalid email: {data.email}')
    if problems:
        raise ContactValidationError(
            'Contact validation failed', context={'problems': problems}
        )
    return data
