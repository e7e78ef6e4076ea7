"""
Passive backend records that are read and rendered but carry no local rules.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AgentMemory(BaseModel):
    """Long-lived note an agent keeps about a contact."""

    id: str
    contact_id: str | None = None
    user_id: str | None = None
    memory_type: str = Field(default='note')
    content: str = Field(default='')
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


class CalendarEvent(BaseModel):
    """Meeting or reminder stored in the backend calendar."""

    id: str
    user_id: str | None = None
    contact_id: str | None = None
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    event_type: str = Field(default='meeting')
    location: str | None = None


class VoiceJob(BaseModel):
    """Voice synthesis or call job tracked by the backend."""

    id: str
    user_id: str | None = None
    contact_id: str | None = None
    status: str = Field(default='pending')
    script: str | None = None
    audio_url: str | None = None
    created_at: datetime | None = None


class VideoJob(BaseModel):
    """Personalised video render job."""

    id: str
    user_id: str | None = None
    contact_id: str | None = None
    status: str = Field(default='pending')
    video_url: str | None = None
    created_at: datetime | None = None


class AutopilotLog(BaseModel):
    """One step recorded by a sales autopilot run."""

    id: str
    user_id: str | None = None
    contact_id: str | None = None
    agent: str | None = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
