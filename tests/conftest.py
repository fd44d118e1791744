"""Shared pytest fixtures for hera tests."""

import os
import tempfile
import uuid

import pytest

from hera.database.factories import create_sqlite_database
from hera.domain.dynamic_data import DynamicDataService
from hera.domain.entities import TenantContext
from hera.domain.entity import EntityService
from hera.domain.organization import OrganizationService
from hera.domain.relationship import RelationshipService
from hera.domain.transaction import TransactionService
from hera.domain.workflow import WorkflowService

CUSTOMER_SMART_CODE = "HERA.SALON.CUSTOMER.ENTITY.v1"
CUSTOMER_FIELD_SMART_CODE = "HERA.SALON.CUSTOMER.FIELD.v1"
STYLIST_SMART_CODE = "HERA.SALON.STAFF.ENTITY.v1"
LINK_SMART_CODE = "HERA.SALON.CUSTOMER.REL.v1"
SALE_SMART_CODE = "HERA.SALON.POS.SALE.v1"
SALE_LINE_SMART_CODE = "HERA.SALON.POS.LINE.v1"
JOURNAL_SMART_CODE = "HERA.FIN.GL.JOURNAL.v1"
GL_LINE_SMART_CODE = "HERA.FIN.GL.LINE.v1"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def database_url(temp_db):
    """SQLAlchemy URL of the temporary database, for the CLI."""
    return f"sqlite:///{temp_db.database_path}"


@pytest.fixture
def actor_id():
    return str(uuid.uuid4())


@pytest.fixture
def organization_service(temp_db):
    """Create an OrganizationService with a temporary database."""
    return OrganizationService(temp_db)


@pytest.fixture
def organization(organization_service, actor_id):
    """Create a sample organization."""
    organization_id = organization_service.create_organization(
        name="Hair Talkz Salon", code="SALON-HT", actor_id=actor_id
    )
    return organization_service.get_organization(organization_id)


@pytest.fixture
def other_organization(organization_service, actor_id):
    """Create a second organization for isolation tests."""
    organization_id = organization_service.create_organization(
        name="Other Salon", code="SALON-OTHER", actor_id=actor_id
    )
    return organization_service.get_organization(organization_id)


@pytest.fixture
def ctx(organization, actor_id):
    """Tenant context acting in the sample organization."""
    return TenantContext(organization_id=organization.id, actor_id=actor_id)


@pytest.fixture
def other_ctx(other_organization, actor_id):
    return TenantContext(organization_id=other_organization.id, actor_id=actor_id)


@pytest.fixture
def entity_service(temp_db):
    """Create an EntityService with a temporary database."""
    return EntityService(temp_db)


@pytest.fixture
def dynamic_data_service(temp_db):
    """Create a DynamicDataService with a temporary database."""
    return DynamicDataService(temp_db)


@pytest.fixture
def relationship_service(temp_db):
    """Create a RelationshipService with a temporary database."""
    return RelationshipService(temp_db)


@pytest.fixture
def workflow_service(temp_db):
    """Create a WorkflowService with a temporary database."""
    return WorkflowService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def customer(entity_service, ctx):
    """Create a sample customer entity."""
    entity_id = entity_service.create_entity(
        ctx,
        entity_type="customer",
        entity_name="Sara Ali",
        smart_code=CUSTOMER_SMART_CODE,
        entity_code="CUST-001",
    )
    return entity_service.get_entity(ctx, entity_id)


@pytest.fixture
def stylist(entity_service, ctx):
    """Create a sample stylist entity."""
    entity_id = entity_service.create_entity(
        ctx,
        entity_type="staff",
        entity_name="Rocky",
        smart_code=STYLIST_SMART_CODE,
    )
    return entity_service.get_entity(ctx, entity_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def api_client(temp_db):
    """Create a FastAPI test client serving the temporary database."""
    from fastapi.testclient import TestClient

    from hera.api.server import create_app
    from hera.config import Settings

    return TestClient(create_app(settings=Settings(), db=temp_db))


@pytest.fixture
def headers(ctx):
    """Tenant headers for API requests."""
    return {"X-Organization-Id": ctx.organization_id, "X-Actor-Id": ctx.actor_id}
