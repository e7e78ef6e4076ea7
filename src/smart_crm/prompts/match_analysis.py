"""
Product/contact fit analysis prompt.

The response model is AIMatchAnalysis (OpenAI structured output).
"""

from ..models.contact import Contact
from ..models.product import UserProduct

MATCH_ANALYSIS_SYSTEM_PROMPT = """You are an expert sales intelligence analyst. Analyze the fit between the product and contact.

Scores are on a 0-100 scale:
- ai_confidence: how sure you are of the assessment
- semantic_score: fit beyond keyword matching
- predicted_conversion: likelihood the contact converts

Talking points and objections carry a relevance or likelihood of high, medium or low."""

MATCH_ANALYSIS_USER_PROMPT_TEMPLATE = """Analyze the sales fit between this product and contact:

PRODUCT:
- Name: {product_name}
- Description: {product_description}
- Target Industries: {target_industries}
- Target Titles: {target_titles}
- Target Company Sizes: {target_sizes}
- Pain Points Addressed: {pain_points}
- Value Propositions: {value_propositions}
- Competitive Advantages: {advantages}

CONTACT:
- Name: {contact_name}
- Title: {contact_title}
- Company: {contact_company}
- Industry: {contact_industry}
- Company Size: {contact_size}
- Lead Score: {contact_score}
- Status: {contact_status}
- Tags: {contact_tags}
- Notes: {contact_notes}

Analyze semantic fit beyond keyword matching. Consider:
1. Industry adjacencies and related markets
2. Title/role implications for decision-making authority
3. Company growth stage and technology adoption patterns
4. Pain point alignment with contact's likely challenges
5. Optimal messaging angles and talking points"""


def _joined(values: list, default: str) -> str:
    rendered = ', '.join(str(getattr(v, 'value', v)) for v in values)
    return rendered or default


def build_match_analysis_prompt(product: UserProduct, contact: Contact) -> list[dict[str, str]]:
    """
    Build the fit analysis messages for OpenAI.

    Args:
        product: Product being sold
        contact: Prospect being assessed

    Returns:
        List of message dicts for OpenAI chat completion
    """
    user_prompt = MATCH_ANALYSIS_USER_PROMPT_TEMPLATE.format(
        product_name=product.name,
        product_description=product.description or 'Not provided',
        target_industries=_joined(product.target_industries, 'All industries'),
        target_titles=_joined(product.target_titles, 'All titles'),
        target_sizes=_joined(product.target_company_sizes, 'All sizes'),
        pain_points=_joined(product.pain_points_addressed, 'Not specified'),
        value_propositions=_joined(
            [vp.title for vp in product.value_propositions], 'Not specified'
        ),
        advantages=_joined(product.competitive_advantages, 'Not specified'),
        contact_name=contact.display_name(),
        contact_title=contact.role or 'Unknown',
        contact_company=contact.company or 'Unknown',
        contact_industry=contact.industry or 'Unknown',
        contact_size=contact.company_size or 'Unknown',
        contact_score=contact.ai_score or 0,
        contact_status=contact.status or 'Unknown',
        contact_tags=_joined(contact.tags, 'None'),
        contact_notes=contact.notes or 'None',
    )

    return [
        {'role': 'system', 'content': MATCH_ANALYSIS_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_prompt},
    ]
