"""AI sales-intelligence endpoints."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from smart_crm.intelligence.service import (
    CommunicationContext,
    MeetingContext,
    SalesIntelligenceService,
    focus_areas,
)
from smart_crm.models.deal import Deal
from smart_crm.services.contacts import ContactRepository

from ..dependencies import get_contact_repository, get_intelligence, unwrap

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/intelligence", tags=["intelligence"])


class DiscoveryRequest(BaseModel):
    contact_id: str
    meeting: MeetingContext = MeetingContext()


class CommunicationRequest(BaseModel):
    content: str
    context: CommunicationContext


class NurtureRequest(BaseModel):
    contact_id: str


class SkillRunRequest(BaseModel):
    skill_id: str = ""
    contact_id: str = ""


@router.post("/playbook")
async def playbook(deal: Deal, intelligence: SalesIntelligenceService = Depends(get_intelligence)):
    return unwrap(await intelligence.generate_playbook(deal)).model_dump(mode="json")


@router.post("/deal-health")
async def deal_health(deal: Deal, intelligence: SalesIntelligenceService = Depends(get_intelligence)):
    return unwrap(await intelligence.analyze_deal_health(deal, date.today())).model_dump(mode="json")


@router.post("/discovery")
async def discovery_questions(
    body: DiscoveryRequest,
    repo: ContactRepository = Depends(get_contact_repository),
    intelligence: SalesIntelligenceService = Depends(get_intelligence),
):
    contact = unwrap(await repo.get(body.contact_id))
    questions = unwrap(await intelligence.generate_discovery_questions(contact, body.meeting))
    return {
        **questions.model_dump(mode="json"),
        "focus_areas": focus_areas(body.meeting.type),
    }


@router.post("/communication")
async def optimize_communication(
    body: CommunicationRequest,
    intelligence: SalesIntelligenceService = Depends(get_intelligence),
):
    result = await intelligence.optimize_communication(body.content, body.context)
    return unwrap(result).model_dump(mode="json")


@router.post("/nurture")
async def nurture(
    body: NurtureRequest,
    repo: ContactRepository = Depends(get_contact_repository),
    intelligence: SalesIntelligenceService = Depends(get_intelligence),
):
    contact = unwrap(await repo.get(body.contact_id))
    return unwrap(await intelligence.nurture_status(contact)).model_dump(mode="json")


@router.get("/skills")
async def list_skills(intelligence: SalesIntelligenceService = Depends(get_intelligence)):
    return {"skills": [s.model_dump(mode="json") for s in unwrap(await intelligence.list_skills())]}


@router.post("/skills/run")
async def run_skill(
    body: SkillRunRequest,
    intelligence: SalesIntelligenceService = Depends(get_intelligence),
):
    return unwrap(await intelligence.run_skill(body.skill_id, body.contact_id)).model_dump(mode="json")
