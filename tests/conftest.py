"""
Pytest configuration and fixtures.
Provides an in-memory database per test, seeded billing data and a test app client.
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from billing_engine.main import app
from billing_engine.db.base import Base
from billing_engine.db.session import get_db
from billing_engine.models import (
    Business,
    CatalogService,
    Client,
    Project,
    ProjectServiceLine,
)
from billing_engine.models.common import BillingUnit, DiscountType
from billing_engine.schemas.context import RequestContext


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


async def persist(session, *instances):
    """
    Commit seed rows and detach them.

    Detached copies keep their loaded values when a service rolls the
    session back, so tests can keep reading ids after an expected error.
    """
    session.add_all(instances)
    await session.commit()
    for instance in instances:
        session.expunge(instance)


@pytest.fixture(scope="function")
async def test_db_session():
    """
    Create a test database session.
    Uses in-memory SQLite for fast tests.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    test_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
async def business(test_db_session):
    business = Business(
        id=uuid.uuid4(),
        name="Atelier Nord",
        legal_name="Atelier Nord SAS",
        vat_number="FR12345678901",
        registration_number="123 456 789",
        address_line1="12 rue des Arts",
        postal_code="59000",
        city="Lille",
        country_code="FR",
        billing_email="billing@ateliernord.test",
        iban="FR7630006000011234567890189",
        bic="AGRIFRPP",
        terms_text="Payment within 30 days.",
        cancellation_text="Cancellation fees apply after signature.",
        late_fees_text="Late fees: 3x legal interest rate.",
        currency="EUR",
        default_deposit_percent=30,
    )
    await persist(test_db_session, business)
    return business


@pytest.fixture
async def other_business(test_db_session):
    business = Business(id=uuid.uuid4(), name="Other Studio")
    await persist(test_db_session, business)
    return business


@pytest.fixture
async def client(test_db_session, business):
    client = Client(
        id=uuid.uuid4(),
        business_id=business.id,
        name="Jane Client",
        company_name="Client Corp",
        email="jane@clientcorp.test",
        billing_company_name="Client Corp Billing",
        billing_contact_name="Accounts Payable",
        billing_email="ap@clientcorp.test",
        billing_vat_number="FR98765432109",
        billing_address_line1="1 avenue du Client",
        billing_postal_code="75001",
        billing_city="Paris",
        billing_country_code="FR",
    )
    await persist(test_db_session, client)
    return client


@pytest.fixture
async def catalog(test_db_session, business):
    """Catalog with a priced service, a daily-rate-only service and an unpriced one."""
    services = {
        "design": CatalogService(
            id=uuid.uuid4(),
            business_id=business.id,
            code="DESIGN",
            name="Design",
            default_price_cents=10000,
        ),
        "dev": CatalogService(
            id=uuid.uuid4(),
            business_id=business.id,
            code="DEV",
            name="Development day",
            daily_rate_cents=60000,
        ),
        "audit": CatalogService(
            id=uuid.uuid4(),
            business_id=business.id,
            code="AUDIT",
            name="Audit",
        ),
    }
    await persist(test_db_session, *services.values())
    return services


@pytest.fixture
async def project(test_db_session, business, client, catalog):
    project = Project(
        id=uuid.uuid4(),
        business_id=business.id,
        client_id=client.id,
        name="Website redesign",
        prestations_text="  Design and build of the corporate website.  ",
        service_lines=[
            ProjectServiceLine(
                service_id=catalog["design"].id,
                quantity=2,
                discount_type=DiscountType.PERCENT,
                discount_value=10,
                position=0,
            ),
            ProjectServiceLine(
                service_id=catalog["dev"].id,
                quantity=3,
                position=1,
            ),
        ],
    )
    await persist(test_db_session, project)
    return project


@pytest.fixture
async def hosting_project(test_db_session, business, client, catalog):
    """Project with a monthly line carrying its own price."""
    project = Project(
        id=uuid.uuid4(),
        business_id=business.id,
        client_id=client.id,
        name="Hosting",
        service_lines=[
            ProjectServiceLine(
                service_id=catalog["audit"].id,
                title_override="Managed hosting",
                quantity=12,
                price_cents=2500,
                billing_unit=BillingUnit.MONTHLY,
                position=0,
            ),
        ],
    )
    await persist(test_db_session, project)
    return project


@pytest.fixture
def context(business):
    return RequestContext(business_id=business.id, user_id=uuid.uuid4(), role="ADMIN")


@pytest.fixture
def foreign_context(other_business):
    return RequestContext(business_id=other_business.id, user_id=uuid.uuid4(), role="ADMIN")


@pytest.fixture(scope="function")
async def test_client(test_db_session):
    """
    Create a test HTTP client bound to the test database session.
    """
    async def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
