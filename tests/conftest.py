"""
Pytest configuration and shared fixtures.

Key fixtures:
- backend: AsyncMock standing in for BackendClient
- sample_contacts: a small, varied contact list
- sample_product: a product with full targeting
- supabase_credentials: live backend credentials (skips when unset)
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from smart_crm.clients.backend_client import QueryResult
from smart_crm.models.contact import Contact
from smart_crm.models.product import CompanySize, UserProduct

USER_ID = '550e8400-e29b-41d4-a716-446655440000'


@pytest.fixture
def supabase_credentials() -> dict[str, str]:
    """Get live backend credentials from environment."""
    url = os.getenv('SUPABASE_URL')
    key = os.getenv('SUPABASE_ANON_KEY')
    if not url or not key:
        pytest.skip('SUPABASE_URL or SUPABASE_ANON_KEY not set')
    return {'url': url, 'api_key': key}


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def backend() -> AsyncMock:
    """BackendClient mock whose table operations return empty results."""
    client = AsyncMock()
    client.select.return_value = QueryResult(rows=[], count=0)
    client.insert.return_value = QueryResult(rows=[])
    client.upsert.return_value = QueryResult(rows=[])
    client.update.return_value = QueryResult(rows=[])
    client.delete.return_value = QueryResult(rows=[])
    return client


def make_contact(index: int = 1, **overrides) -> Contact:
    """Build a contact with predictable fields."""
    data = {
        'id': f'c{index}',
        'name': f'Contact {index}',
        'email': f'contact{index}@example.com',
        'company': f'Company {index}',
        'title': 'Engineer',
        'status': 'lead',
        'interest_level': 'medium',
        'ai_score': 50,
        'industry': 'Technology',
        'tags': [],
    }
    data.update(overrides)
    return Contact.model_validate(data)


@pytest.fixture
def sample_contacts() -> list[Contact]:
    return [
        make_contact(
            1, name='Alice Chen', company='Acme', title='CTO', status='customer',
            interest_level='hot', ai_score=92, industry='Technology', tags=['enterprise', 'ai'],
            is_favorite=True, last_connected='2024-01-10',
        ),
        make_contact(
            2, name='bob smith', company='Globex', title='VP Sales', status='prospect',
            interest_level='medium', ai_score=64, industry='Finance', tags=['smb'],
        ),
        make_contact(
            3, name='Carol Diaz', company='Initech', title='Analyst', status='lead',
            interest_level='cold', ai_score=None, industry=None, tags=[],
            last_connected='2024-01-02',
        ),
        make_contact(
            4, name='Dan Evans', company='Umbrella', title='Director of Ops', status='churned',
            interest_level='low', ai_score=30, industry='Healthcare', tags=['ai'],
        ),
    ]


@pytest.fixture
def sample_product() -> UserProduct:
    return UserProduct(
        id='prod-1',
        name='Pipeline Pro',
        category='sales automation',
        features=['automation', 'forecasting'],
        target_industries=['Technology'],
        target_company_sizes=[CompanySize.ENTERPRISE],
        target_titles=['CTO'],
        target_departments=['Engineering'],
        pain_points_addressed=['manual data entry', 'missed follow-ups'],
        competitive_advantages=['Native AI scoring'],
        use_cases=['pipeline forecasting'],
    )
