"""
Onboarding tour definitions.
"""

from pydantic import BaseModel, Field


class TourStep(BaseModel):
    id: str
    target_selector: str
    title: str
    description: str
    position: str = Field(default='bottom', description='top, bottom, left, right or center')
    ai_feature: bool = False


class Tour(BaseModel):
    id: str
    name: str
    description: str
    category: str = Field(..., description='onboarding, ai-features, advanced or updates')
    steps: list[TourStep]
    auto_start: bool = False


TOURS: list[Tour] = [
    Tour(
        id='onboarding',
        name='Welcome to Smart CRM',
        description='Learn the basics of your AI-powered CRM',
        category='onboarding',
        auto_start=True,
        steps=[
            TourStep(
                id='welcome',
                target_selector='body',
                title='Welcome to Smart CRM!',
                description=(
                    'This quick tour will show you around and highlight the AI '
                    'features that make managing contacts effortless.'
                ),
                position='center',
            ),
            TourStep(
                id='contacts-hub',
                target_selector='[data-tour-id="contacts-hub"]',
                title='Your Contacts Hub',
                description=(
                    'This is where you manage all your customer relationships. '
                    'Add, organize, and get AI insights on your contacts.'
                ),
            ),
            TourStep(
                id='ai-score-button',
                target_selector='[data-tour-id="ai-score-all"]',
                title='AI-Powered Lead Scoring',
                description='Leads are scored automatically. Higher scores mean better prospects.',
                position='left',
                ai_feature=True,
            ),
            TourStep(
                id='smart-search',
                target_selector='[data-tour-id="smart-search"]',
                title='Smart Search & Filtering',
                description='Search by name, company, title, or AI score, and narrow with filters.',
            ),
            TourStep(
                id='new-contact-button',
                target_selector='[data-tour-id="new-contact"]',
                title='Add Contacts with AI Auto-Fill',
                description='New contacts can be researched and filled in from just an email or name.',
                ai_feature=True,
            ),
            TourStep(
                id='import-button',
                target_selector='[data-tour-id="import-contacts"]',
                title='Smart Import',
                description='Import CSV files with validation and duplicate detection.',
            ),
        ],
    ),
    Tour(
        id='ai-features-deep-dive',
        name='AI Features Deep Dive',
        description='Explore all the AI-powered capabilities',
        category='ai-features',
        steps=[
            TourStep(
                id='ai-overview',
                target_selector='body',
                title='AI Features Overview',
                description='Several AI models enhance every part of the workflow.',
                position='center',
                ai_feature=True,
            ),
            TourStep(
                id='contact-scoring',
                target_selector='[data-tour-id="ai-score-all"]',
                title='AI Contact Scoring',
                description='Each contact gets a 0-100 score based on engagement potential and fit.',
                ai_feature=True,
            ),
            TourStep(
                id='ai-insights',
                target_selector='[data-tour-id="ai-insights"]',
                title='AI Insights & Recommendations',
                description='Optimal contact times, conversation strategies, and next best actions.',
                ai_feature=True,
            ),
            TourStep(
                id='email-composer',
                target_selector='[data-tour-id="email-composer"]',
                title='AI Email Composer',
                description='Generate personalized emails with different tones and purposes.',
                ai_feature=True,
            ),
            TourStep(
                id='automation',
                target_selector='[data-tour-id="automation"]',
                title='Smart Automation',
                description='Automation rules suggested from your workflow patterns.',
                ai_feature=True,
            ),
        ],
    ),
]


def find_tour(tour_id: str | None) -> Tour | None:
    if not tour_id:
        return None
    return next((t for t in TOURS if t.id == tour_id), None)
