"""
Summary metrics for the contacts dashboard.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models.contact import Contact, InterestLevel
from ..models.views import DashboardMetrics, StatusSlice

STATUS_SLICES = (
    ('Leads', 'lead', '#3B82F6'),
    ('Prospects', 'prospect', '#8B5CF6'),
    ('Customers', 'customer', '#10B981'),
    ('Churned', 'churned', '#EF4444'),
)

MAX_INDUSTRIES = 6
TOP_CONTACTS = 5


def round_to_tenth(value: float) -> float:
    """Half-up rounding of the exact float value to one decimal place."""
    return float(Decimal(value).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def compute_metrics(contacts: list[Contact]) -> DashboardMetrics:
    total = len(contacts)
    scores = [c.ai_score or 0 for c in contacts]
    customers = sum(1 for c in contacts if c.status == 'customer')

    # First-seen order
    industries: dict[str, int] = {}
    for contact in contacts:
        name = contact.industry or 'Unknown'
        industries[name] = industries.get(name, 0) + 1

    top = sorted(contacts, key=lambda c: c.ai_score or 0, reverse=True)[:TOP_CONTACTS]

    return DashboardMetrics(
        total_contacts=total,
        average_ai_score=sum(scores) / total if total else 0,
        hot_leads=sum(1 for c in contacts if c.interest_level == InterestLevel.HOT),
        customers=customers,
        conversion_rate=round_to_tenth(customers / total * 100) if total else 0,
        status_distribution=[
            StatusSlice(name=label, value=sum(1 for c in contacts if c.status == status), color=color)
            for label, status, color in STATUS_SLICES
        ],
        industry_counts=[
            {'name': name, 'count': count}
            for name, count in list(industries.items())[:MAX_INDUSTRIES]
        ],
        top_contacts=[
            {'id': c.id, 'name': c.display_name(), 'company': c.company, 'ai_score': c.ai_score or 0}
            for c in top
        ],
    )
