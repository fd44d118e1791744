"""FastAPI dependencies for tenant context and services."""

from typing import Iterator, Optional

from fastapi import Depends, Header, Request

from hera.database.base import Database
from hera.domain.dynamic_data import DynamicDataService
from hera.domain.entities import TenantContext
from hera.domain.entity import EntityService
from hera.domain.organization import OrganizationService
from hera.domain.relationship import RelationshipService
from hera.domain.transaction import TransactionService
from hera.domain.workflow import WorkflowService


def get_db(request: Request) -> Iterator[Database]:
    """Yield a database handle with its own session for this request."""
    shared = request.app.state.db
    db = shared.session_scope()
    try:
        yield db
    finally:
        if db is not shared:
            db.disconnect()


def get_tenant(
    x_organization_id: Optional[str] = Header(None, description="Organization the request is scoped to"),
    x_actor_id: Optional[str] = Header(None, description="User performing the request"),
) -> TenantContext:
    """Build the tenant context from request headers.

    Missing values are rejected by the services, not here, so reads work
    without an actor.
    """
    return TenantContext(organization_id=x_organization_id or None, actor_id=x_actor_id or None)


def get_actor_id(x_actor_id: Optional[str] = Header(None)) -> Optional[str]:
    return x_actor_id or None


def get_organization_service(db: Database = Depends(get_db)) -> OrganizationService:
    return OrganizationService(db)


def get_entity_service(db: Database = Depends(get_db)) -> EntityService:
    return EntityService(db)


def get_dynamic_data_service(db: Database = Depends(get_db)) -> DynamicDataService:
    return DynamicDataService(db)


def get_relationship_service(db: Database = Depends(get_db)) -> RelationshipService:
    return RelationshipService(db)


def get_workflow_service(request: Request, db: Database = Depends(get_db)) -> WorkflowService:
    return WorkflowService(db, machines=request.app.state.status_machines)


def get_transaction_service(db: Database = Depends(get_db)) -> TransactionService:
    return TransactionService(db)
