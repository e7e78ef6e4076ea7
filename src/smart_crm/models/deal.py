"""
Deal record as stored in the backend ``deals`` table.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class Deal(BaseModel):
    """An opportunity tracked against a company."""

    id: str
    name: str
    company: str = Field(default='')
    stage: str = Field(default='prospecting')
    value: float | None = Field(default=None, description='Deal amount')
    close_date: date | None = Field(default=None, description='Expected close date')
    competitors: list[str] = Field(default_factory=list)
    stakeholders: list[dict[str, Any]] = Field(
        default_factory=list, description="Stakeholder dicts with at least a 'role'"
    )
    last_activity: str | None = Field(default=None)
    industry: str | None = Field(default=None)
    company_size: int | None = Field(default=None, description='Employee count')
    contact_id: str | None = Field(default=None)
    user_id: str | None = Field(default=None)

    @property
    def champion(self) -> dict[str, Any] | None:
        for stakeholder in self.stakeholders:
            if stakeholder.get('role') == 'champion':
                return stakeholder
        return None
