"""
Template-based outreach drafts (email, call script, SMS, LinkedIn).

Drafts are rendered locally from product and contact fields plus the saved
match, then stored in the backend ``product_drafts`` table.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import structlog
from pydantic import BaseModel

from ..clients.backend_client import BackendClient, Filter
from ..errors import BackendAuthError, BackendNotFoundError, PartialSuccessResult, ValidationError
from ..logging import OperationTimer
from ..models.contact import Contact
from ..models.product import (
    DraftTone,
    DraftType,
    PersonalizationToken,
    ProductContactMatch,
    ProductDraft,
    UserProduct,
)
from ..result import Result, capture

logger = structlog.get_logger(__name__)

DRAFTS_TABLE = 'product_drafts'
DRAFT_BATCH_SIZE = 20
DRAFT_SELECT = (
    '*,product:user_products(id,name,tagline),contact:contacts(id,name,email,company,title)'
)
EDITABLE_FIELDS = ('subject', 'body', 'tone')


# =============================================================================
# Templates
# =============================================================================

# (subject, opening, body, call to action) per tone
EMAIL_TEMPLATES: dict[DraftTone, tuple[str, str, str, str]] = {
    DraftTone.FORMAL: (
        '{product}: A Strategic Solution for {company}',
        'Dear {first},\n\nI am reaching out to introduce {product}, a solution specifically '
        'designed for {industry} professionals like yourself.',
        '\n\nOrganizations in your sector often face challenges with {pain}. Our platform '
        'addresses this by {value}.\n\nNotable applications include {use_case}, which has '
        'proven valuable for companies similar to {company}.',
        '\n\nI would welcome the opportunity to discuss how {product} might benefit your team. '
        'Would you be available for a brief conversation next week?',
    ),
    DraftTone.CASUAL: (
        'Quick thought for {company}',
        'Hey {first}!\n\nHope this finds you well. Came across {company} and thought you '
        'might find {product} interesting.',
        '\n\nWe help {industry} teams tackle {pain} - basically {value}.\n\nA lot of folks '
        'use it for {use_case} and see great results.',
        '\n\nWant to hop on a quick call? Would love to hear more about what you are working on!',
    ),
    DraftTone.URGENT: (
        '[Time-Sensitive] {product} Opportunity for {company}',
        '{first},\n\nI have limited spots available this quarter for new {product} '
        'implementations and wanted to reach out directly.',
        '\n\n{industry} companies are seeing immediate impact by addressing {pain} head-on. '
        '{value} is driving real results.\n\nOur {use_case} approach has accelerated '
        'outcomes for similar organizations.',
        '\n\nCan we connect this week? I would hate for {company} to miss this window.',
    ),
    DraftTone.FRIENDLY: (
        'Thought of {company} - {product}',
        "Hi {first}!\n\nI have been following {company}'s work in {industry} and was "
        'impressed. It got me thinking you might appreciate {product}.',
        '\n\nWe created it specifically to help with {pain}. The idea is simple: {value}.'
        '\n\nMany of our users love how it handles {use_case} - it has become a go-to for them.',
        '\n\nWould love to learn more about your current setup and see if there is a fit. '
        'Coffee chat sometime?',
    ),
    DraftTone.PROFESSIONAL: (
        '{product} for {company}',
        'Hi {first},\n\nI wanted to reach out about {product}, which I believe could be '
        'valuable for {company}.',
        '\n\nWe specialize in helping {industry} organizations address {pain}. Our approach: '
        '{value}.\n\nOne popular use case is {use_case}, which many of our clients have found '
        'impactful.',
        '\n\nWould you be open to a brief conversation to explore if there is alignment with '
        'your goals?\n\nLooking forward to connecting.',
    ),
}

SMS_TEMPLATES: dict[DraftTone, str] = {
    DraftTone.FORMAL: (
        'Hi {first}, this is [Name] from {product}. I would like to share how we help with '
        '{value}. May I send more info? Reply YES or call [number].'
    ),
    DraftTone.CASUAL: (
        'Hey {first}! [Name] here from {product}. Thought you might like what we do - {value}. '
        'Interested in chatting? Reply or give me a call!'
    ),
    DraftTone.URGENT: (
        '{first} - limited spots for {product} this month. {value}. Reply NOW for priority '
        'access or call [number].'
    ),
}
SMS_DEFAULT = (
    'Hi {first}, [Name] from {product}. We help with {value}. Would love to connect - reply '
    'or call [number] when convenient.'
)

LINKEDIN_TEMPLATES: dict[DraftTone, str] = {
    DraftTone.FORMAL: (
        'Dear {first},\n\n'
        'I came across your profile and was impressed by your work as {title} at {company}.\n\n'
        'I lead {product}, and we specialize in helping {industry} professionals address {pain}.\n\n'
        'I would value the opportunity to connect and exchange insights. Would you be open to a '
        'brief conversation?\n\n'
        'Best regards'
    ),
    DraftTone.CASUAL: (
        'Hey {first}!\n\n'
        'Saw your profile - love what {company} is doing in {industry}.\n\n'
        'I run {product} and we help folks like you with {pain}. Thought we might have some '
        'good stuff to chat about.\n\n'
        'Open to connecting?'
    ),
    DraftTone.FRIENDLY: (
        'Hi {first},\n\n'
        "I have been following {company}'s journey and really admire what you are building. "
        'As someone who works with {industry} leaders on {pain}, I thought we might have some '
        'interesting conversations.\n\n'
        'Would love to connect and learn more about your work!\n\n'
        'Cheers'
    ),
}
LINKEDIN_DEFAULT = (
    'Hi {first},\n\n'
    'Your work at {company} caught my attention. I help {industry} professionals tackle {pain} '
    'through {product}.\n\n'
    'I think there could be some synergies worth exploring. Would you be open to connecting?\n\n'
    'Looking forward to it'
)

CALL_SCRIPT_TEMPLATE = """CALL SCRIPT: {product} for {company}

---

OPENER (First 10 seconds)
"Hi {first}, this is [Your Name] with {product}. I know you are busy as {title} at {company}, so I will be brief. Do you have 2 minutes?"

If yes, continue. If no: "No problem - when would be a better time to connect?"

---

HOOK (The reason for the call)
"I am reaching out because we have been helping {industry_group} like yours with {hook_pain}. {company} came up as a potential fit."

---

DISCOVERY QUESTIONS
1. "How is {company} currently handling {discovery_pain}?"
2. "What would success look like for your team in this area?"
3. "Who else would be involved in evaluating a solution like this?"

---

VALUE PROPOSITION
{value_lines}

---

OBJECTION HANDLING

If "Not interested":
"I understand. Many of our current clients said the same thing initially. What specifically made you feel it is not a fit?"

If "No budget":
"Budget is always a consideration. Our clients typically see ROI within [timeframe]. Would it help to see a cost-benefit breakdown?"

If "Bad timing":
"When would be a better time to revisit this? I can set a reminder to follow up."

{objection_lines}

---

CLOSE
"Based on what you have shared, I think a quick 20-minute demo would show you exactly how this works for {close_group}. Does [day] at [time] work, or is [alternative] better?"

---

FOLLOW-UP NOTE
If call unsuccessful, send follow-up email within 24 hours referencing the call."""


class GeneratedDraft(BaseModel):
    subject: str | None = None
    body: str
    personalization_tokens: dict[str, PersonalizationToken]


# =============================================================================
# Generator
# =============================================================================


def build_personalization_tokens(
    product: UserProduct,
    contact: Contact,
    match: ProductContactMatch | None = None,
) -> dict[str, PersonalizationToken]:
    """Named values a draft can reference, each tagged with where it came from."""

    def token(key: str, value: str, source: str) -> tuple[str, PersonalizationToken]:
        return key, PersonalizationToken(key=key, value=value, source=source)

    name = contact.display_name()
    first_name = name.split(' ')[0] if name else ''
    tokens = dict(
        [
            token('contact_name', name or 'there', 'contact'),
            token('contact_first_name', first_name or 'there', 'contact'),
            token('contact_company', contact.company or 'your company', 'contact'),
            token('contact_title', contact.role or 'professional', 'contact'),
            token('contact_industry', contact.industry or 'your industry', 'contact'),
            token('product_name', product.name, 'product'),
            token(
                'product_tagline',
                product.tagline or (product.description or '')[:100],
                'product',
            ),
        ]
    )
    if product.value_propositions:
        tokens.update([token('main_value_prop', product.value_propositions[0].title, 'product')])
    if product.pain_points_addressed:
        tokens.update([token('key_pain_point', product.pain_points_addressed[0], 'product')])
    if match and match.why_buy_reasons:
        tokens.update([token('why_buy', match.why_buy_reasons[0], 'ai_generated')])
    return tokens


class DraftGenerator:
    """Renders outreach drafts for one product/contact pair."""

    def email(
        self,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone,
        match: ProductContactMatch | None = None,
    ) -> GeneratedDraft:
        tokens = build_personalization_tokens(product, contact, match)
        values = {
            'first': tokens['contact_first_name'].value,
            'company': tokens['contact_company'].value,
            'industry': tokens['contact_industry'].value,
            'product': tokens['product_name'].value,
            'pain': (product.pain_points_addressed or ['improving efficiency'])[0],
            'value': (
                (product.value_propositions[0].title if product.value_propositions else None)
                or product.tagline
                or 'transform your business'
            ),
            'use_case': (product.use_cases or ['streamline operations'])[0],
        }
        subject, opening, body, cta = EMAIL_TEMPLATES.get(
            tone, EMAIL_TEMPLATES[DraftTone.PROFESSIONAL]
        )
        text = f'{opening}{body}{cta}'.format(**values) + '\n\nBest regards'
        return GeneratedDraft(
            subject=subject.format(**values), body=text, personalization_tokens=tokens
        )

    def call_script(
        self,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone,
        match: ProductContactMatch | None = None,
    ) -> GeneratedDraft:
        tokens = build_personalization_tokens(product, contact, match)
        first = tokens['contact_first_name'].value
        company = tokens['contact_company'].value
        pain_points = product.pain_points_addressed[:2]
        objections = (match.objections_anticipated if match else None) or ['budget', 'timing']
        why_buy = (match.why_buy_reasons if match else None) or [
            vp.title for vp in product.value_propositions
        ]

        body = CALL_SCRIPT_TEMPLATE.format(
            product=tokens['product_name'].value,
            company=company,
            first=first,
            title=tokens['contact_title'].value,
            industry_group=contact.industry or 'companies',
            hook_pain=pain_points[0] if pain_points else 'improving efficiency',
            discovery_pain=pain_points[0] if pain_points else 'this challenge',
            value_lines='\n'.join(f'{i}. {reason}' for i, reason in enumerate(why_buy[:3], start=1)),
            objection_lines='\n\n'.join(
                f'If "{obj}": [Prepare your response]' for obj in objections[:2]
            ),
            close_group=contact.industry or 'companies like yours',
        )
        return GeneratedDraft(
            subject=f'Call Script: {first} at {company}',
            body=body,
            personalization_tokens=tokens,
        )

    def sms(
        self,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone,
        match: ProductContactMatch | None = None,
    ) -> GeneratedDraft:
        # SMS and LinkedIn never quote the match
        tokens = build_personalization_tokens(product, contact)
        value = (
            (product.value_propositions[0].title if product.value_propositions else None)
            or product.tagline
            or 'boost results'
        )
        body = SMS_TEMPLATES.get(tone, SMS_DEFAULT).format(
            first=tokens['contact_first_name'].value,
            product=tokens['product_name'].value,
            value=value,
        )
        return GeneratedDraft(body=body, personalization_tokens=tokens)

    def linkedin(
        self,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone,
        match: ProductContactMatch | None = None,
    ) -> GeneratedDraft:
        tokens = build_personalization_tokens(product, contact)
        first = tokens['contact_first_name'].value
        company = tokens['contact_company'].value
        body = LINKEDIN_TEMPLATES.get(tone, LINKEDIN_DEFAULT).format(
            first=first,
            company=company,
            title=tokens['contact_title'].value,
            industry=tokens['contact_industry'].value,
            product=tokens['product_name'].value,
            pain=(product.pain_points_addressed or ['growth challenges'])[0],
        )
        return GeneratedDraft(
            subject=f'Connection Request: {first} from {company}',
            body=body,
            personalization_tokens=tokens,
        )

    def generate(
        self,
        draft_type: DraftType | str,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone = DraftTone.PROFESSIONAL,
        match: ProductContactMatch | None = None,
    ) -> GeneratedDraft:
        """Render a draft; unknown draft types fall back to email."""
        renderers: dict[str, Callable[..., GeneratedDraft]] = {
            DraftType.EMAIL.value: self.email,
            DraftType.CALL_SCRIPT.value: self.call_script,
            DraftType.SMS.value: self.sms,
            DraftType.LINKEDIN.value: self.linkedin,
        }
        key = draft_type.value if isinstance(draft_type, DraftType) else str(draft_type)
        renderer = renderers.get(key, self.email)
        return renderer(product, contact, tone, match)


# =============================================================================
# Service
# =============================================================================


class DraftFilters(BaseModel):
    product_id: str | None = None
    contact_id: str | None = None
    draft_type: DraftType | None = None
    is_sent: bool | None = None


@dataclass
class DraftBatchResult:
    drafts: list[ProductDraft] = field(default_factory=list)
    outcome: PartialSuccessResult = field(default_factory=PartialSuccessResult)


class DraftService:
    """Generates, stores and edits outreach drafts for the signed-in user."""

    def __init__(
        self,
        backend: BackendClient,
        user_id: str | None,
        generator: DraftGenerator | None = None,
    ):
        self.backend = backend
        self.user_id = user_id
        self.generator = generator or DraftGenerator()

    def _require_user(self) -> str:
        if not self.user_id:
            raise BackendAuthError('You must be logged in')
        return self.user_id

    def _row(
        self,
        product: UserProduct,
        contact: Contact,
        user_id: str,
        draft_type: DraftType,
        tone: DraftTone,
        match: ProductContactMatch | None,
    ) -> dict[str, Any]:
        generated = self.generator.generate(draft_type, product, contact, tone, match)
        return {
            'product_id': product.id,
            'contact_id': contact.id,
            'user_id': user_id,
            'draft_type': DraftType(draft_type).value,
            'subject': generated.subject,
            'body': generated.body,
            'tone': tone.value,
            'personalization_tokens': {
                k: v.model_dump() for k, v in generated.personalization_tokens.items()
            },
            'is_edited': False,
            'is_sent': False,
        }

    async def create_and_save(
        self,
        product: UserProduct,
        contact: Contact,
        draft_type: DraftType,
        tone: DraftTone = DraftTone.PROFESSIONAL,
        match: ProductContactMatch | None = None,
    ) -> Result[ProductDraft]:
        return await capture(
            self._create_and_save(product, contact, draft_type, tone, match),
            'drafts.create.failed',
            product_id=product.id,
            contact_id=contact.id,
        )

    async def _create_and_save(
        self,
        product: UserProduct,
        contact: Contact,
        draft_type: DraftType,
        tone: DraftTone,
        match: ProductContactMatch | None,
    ) -> ProductDraft:
        user_id = self._require_user()
        row = self._row(product, contact, user_id, draft_type, tone, match)
        result = await self.backend.insert(DRAFTS_TABLE, row)
        draft = ProductDraft.model_validate(result.first)
        logger.info('drafts.created', draft_id=draft.id, draft_type=row['draft_type'])
        return draft

    async def batch_create(
        self,
        product: UserProduct,
        contacts: list[Contact],
        draft_type: DraftType,
        tone: DraftTone = DraftTone.PROFESSIONAL,
        matches: dict[str, ProductContactMatch] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> DraftBatchResult:
        """Insert drafts in chunks of 20; a failed chunk does not stop the rest."""
        user_id = self._require_user()
        matches = matches or {}
        batch = DraftBatchResult()
        timer = OperationTimer()
        total = len(contacts)

        for start in range(0, total, DRAFT_BATCH_SIZE):
            chunk = contacts[start:start + DRAFT_BATCH_SIZE]
            with timer.stage('render'):
                rows = [
                    self._row(product, c, user_id, draft_type, tone, matches.get(c.id))
                    for c in chunk
                ]
            with timer.stage('save'):
                saved = await capture(
                    self.backend.insert(DRAFTS_TABLE, rows),
                    'drafts.batch_save.failed',
                    product_id=product.id,
                    batch_start=start,
                )
            if saved.success:
                for row in saved.data.rows:
                    draft = ProductDraft.model_validate(row)
                    batch.drafts.append(draft)
                    batch.outcome.add_success(draft.contact_id)
            else:
                for contact in chunk:
                    batch.outcome.add_failure(saved.error, contact.id)

            if on_progress:
                on_progress(min(start + DRAFT_BATCH_SIZE, total), total)

        logger.info(
            'drafts.batch_created',
            product_id=product.id,
            saved=batch.outcome.success_count,
            failed=batch.outcome.failure_count,
            **timer.summary(),
        )
        return batch

    async def fetch(self, filters: DraftFilters | None = None) -> Result[list[ProductDraft]]:
        """Drafts newest first, with product and contact summaries joined."""
        return await capture(self._fetch(filters or DraftFilters()), 'drafts.fetch.failed')

    async def _fetch(self, filters: DraftFilters) -> list[ProductDraft]:
        query: list[Filter] = []
        if self.user_id:
            query.append(Filter.eq('user_id', self.user_id))
        if filters.product_id:
            query.append(Filter.eq('product_id', filters.product_id))
        if filters.contact_id:
            query.append(Filter.eq('contact_id', filters.contact_id))
        if filters.draft_type:
            query.append(Filter.eq('draft_type', filters.draft_type))
        if filters.is_sent is not None:
            query.append(Filter.eq('is_sent', filters.is_sent))

        result = await self.backend.select(
            DRAFTS_TABLE, filters=query, columns=DRAFT_SELECT, order=[('created_at', False)]
        )
        return [ProductDraft.model_validate(row) for row in result.rows]

    async def get(self, draft_id: str) -> Result[ProductDraft]:
        return await capture(self._get(draft_id), 'drafts.get.failed', draft_id=draft_id)

    async def _get(self, draft_id: str) -> ProductDraft:
        result = await self.backend.select(
            DRAFTS_TABLE, filters=[Filter.eq('id', draft_id)], columns=DRAFT_SELECT, limit=1
        )
        if not result.first:
            raise BackendNotFoundError('Draft not found', context={'draft_id': draft_id})
        return ProductDraft.model_validate(result.first)

    async def update(self, draft_id: str, updates: dict[str, Any]) -> Result[ProductDraft]:
        """Edit subject, body or tone; the draft is flagged as edited."""
        return await capture(self._update(draft_id, updates), 'drafts.update.failed', draft_id=draft_id)

    async def _update(self, draft_id: str, updates: dict[str, Any]) -> ProductDraft:
        values = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS and v is not None}
        if not values:
            raise ValidationError('No updates provided')
        if isinstance(values.get('tone'), DraftTone):
            values['tone'] = values['tone'].value
        values.update(is_edited=True, updated_at=datetime.now(timezone.utc).isoformat())
        result = await self.backend.update(DRAFTS_TABLE, values, filters=[Filter.eq('id', draft_id)])
        if not result.first:
            raise BackendNotFoundError('Draft not found', context={'draft_id': draft_id})
        return ProductDraft.model_validate(result.first)

    async def mark_sent(self, draft_id: str) -> Result[ProductDraft]:
        return await capture(self._mark_sent(draft_id), 'drafts.mark_sent.failed', draft_id=draft_id)

    async def _mark_sent(self, draft_id: str) -> ProductDraft:
        result = await self.backend.update(
            DRAFTS_TABLE,
            {'is_sent': True, 'sent_at': datetime.now(timezone.utc).isoformat()},
            filters=[Filter.eq('id', draft_id)],
        )
        if not result.first:
            raise BackendNotFoundError('Draft not found', context={'draft_id': draft_id})
        return ProductDraft.model_validate(result.first)

    async def delete(self, draft_id: str) -> Result[str]:
        return await capture(self._delete(draft_id), 'drafts.delete.failed', draft_id=draft_id)

    async def _delete(self, draft_id: str) -> str:
        await self.backend.delete(DRAFTS_TABLE, filters=[Filter.eq('id', draft_id)])
        return draft_id

    async def regenerate(
        self,
        draft: ProductDraft,
        product: UserProduct,
        contact: Contact,
        tone: DraftTone | None = None,
        match: ProductContactMatch | None = None,
    ) -> Result[ProductDraft]:
        """Replace a draft with a fresh rendering, optionally in a new tone."""
        if draft.id:
            deleted = await self.delete(draft.id)
            if not deleted.success:
                return Result.fail(deleted.error)
        return await self.create_and_save(
            product, contact, draft.draft_type, tone or draft.tone, match
        )
