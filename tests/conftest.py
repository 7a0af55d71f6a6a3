"""Shared test fixtures for the LeadDesk test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- clock: controllable clock for cache expiry
- leads_service / messages_service / products_service: isolated service
  instances with their own caches on the fake clock
- seed_data: one product, two active leads, one inactive lead
"""

import pytest

from leaddesk import create_app
from leaddesk.cache import CacheManager
from leaddesk.extensions import db as _db
from leaddesk.models.lead import Lead
from leaddesk.models.product import Product
from leaddesk.services.leads_service import LeadsService
from leaddesk.services.messages_service import MessagesService
from leaddesk.services.products_service import ProductsService
from leaddesk.services.registry import get_services

LONG_TEXT = (
    "Responsive website with contact form, map embed, basic SEO and monthly "
    "hosting for small local businesses that still rely on word of mouth."
)


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, minutes):
        self.now += minutes * 60


def lead_payload(**overrides):
    """Valid create payload for a lead."""
    data = {
        "name": "Acme Bakery",
        "email": "owner@acme.com",
        "phone": "11987654321",
        "instagram": "@acmebakery",
        "decision_maker": "Ana Souza",
        "address": "Rua A, 10",
        "city": "São Paulo",
        "state": "SP",
        "website": "https://acme.com",
        "status": "none",
    }
    data.update(overrides)
    return data


def product_payload(**overrides):
    data = {
        "name": "Website Starter",
        "description": LONG_TEXT,
        "sales_prompt": LONG_TEXT,
    }
    data.update(overrides)
    return data


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after.

    The app-wide service caches are cleared too so cached rows from a
    previous test never leak into the next one.
    """
    with app.app_context():
        _db.create_all()
        get_services().clear_caches()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def leads_service(clock):
    return LeadsService(cache=CacheManager(clock=clock))


@pytest.fixture
def messages_service(clock):
    return MessagesService(cache=CacheManager(clock=clock))


@pytest.fixture
def products_service():
    return ProductsService()


@pytest.fixture
def seed_data(db_session):
    """Seed one product, two active leads and one inactive lead.

    Returns plain ids so tests don't depend on attached instances.
    """
    product = Product(**product_payload())
    db_session.add(product)
    db_session.flush()

    acme = Lead(**lead_payload(product_id=product.id, status="maybe"))
    globex = Lead(**lead_payload(
        name="Globex Garage",
        email="hello@globex.com",
        instagram="@globexgarage",
        website="https://globex.com",
        city="Rio de Janeiro",
        state="RJ",
        status="very_interested",
    ))
    retired = Lead(**lead_payload(
        name="Initech Print",
        email="info@initech.com",
        instagram="@initech",
        website="https://initech.com",
        active="no",
    ))
    db_session.add_all([acme, globex, retired])
    db_session.commit()

    return {
        "product_id": product.id,
        "acme_id": acme.id,
        "globex_id": globex.id,
        "retired_id": retired.id,
    }
