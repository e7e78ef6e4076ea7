"""
Read-only access to the passive per-contact records the backend keeps:
agent memories, calendar events, voice and video jobs, and autopilot logs.
"""

import asyncio

import structlog
from pydantic import BaseModel, Field

from ..clients.backend_client import BackendClient, Filter
from ..models.records import AgentMemory, AutopilotLog, CalendarEvent, VideoJob, VoiceJob
from ..result import Result, capture

logger = structlog.get_logger(__name__)

RECORD_LIMIT = 50


class ContactActivity(BaseModel):
    contact_id: str
    memories: list[AgentMemory] = Field(default_factory=list)
    calendar_events: list[CalendarEvent] = Field(default_factory=list)
    voice_jobs: list[VoiceJob] = Field(default_factory=list)
    video_jobs: list[VideoJob] = Field(default_factory=list)
    autopilot_logs: list[AutopilotLog] = Field(default_factory=list)


class ContactActivityService:
    def __init__(self, backend: BackendClient, user_id: str | None = None):
        self.backend = backend
        self.user_id = user_id

    async def for_contact(self, contact_id: str) -> Result[ContactActivity]:
        """Load every passive record for one contact, newest first."""
        return await capture(
            self._for_contact(contact_id), 'activity.load.failed', contact_id=contact_id
        )

    async def _rows(self, table: str, contact_id: str, order_by: str) -> list[dict]:
        filters = [Filter.eq('contact_id', contact_id)]
        if self.user_id:
            filters.append(Filter.eq('user_id', self.user_id))
        result = await self.backend.select(
            table, filters=filters, order=[(order_by, False)], limit=RECORD_LIMIT
        )
        return result.rows

    async def _for_contact(self, contact_id: str) -> ContactActivity:
        memories, events, voice, video, logs = await asyncio.gather(
            self._rows('agent_memories', contact_id, 'created_at'),
            self._rows('calendar_events', contact_id, 'start_time'),
            self._rows('voice_jobs', contact_id, 'created_at'),
            self._rows('video_jobs', contact_id, 'created_at'),
            self._rows('autopilot_logs', contact_id, 'created_at'),
        )
        activity = ContactActivity(
            contact_id=contact_id,
            memories=[AgentMemory.model_validate(r) for r in memories],
            calendar_events=[CalendarEvent.model_validate(r) for r in events],
            voice_jobs=[VoiceJob.model_validate(r) for r in voice],
            video_jobs=[VideoJob.model_validate(r) for r in video],
            autopilot_logs=[AutopilotLog.model_validate(r) for r in logs],
        )
        logger.debug(
            'activity.loaded',
            contact_id=contact_id,
            memories=len(activity.memories),
            events=len(activity.calendar_events),
        )
        return activity
