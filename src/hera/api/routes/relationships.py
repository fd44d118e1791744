"""Relationship endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from hera.api.dependencies import get_relationship_service, get_tenant
from hera.api.responses import ok, ok_items
from hera.api.schemas import RelationshipCreateRequest
from hera.domain.entities import TenantContext
from hera.domain.relationship import RelationshipService

router = APIRouter()


@router.post("")
def ensure_link(
    request: RelationshipCreateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: RelationshipService = Depends(get_relationship_service),
) -> dict:
    """Create a link, or return the existing one for the same (from, to, type)."""
    if request.to_entity_id is not None:
        relationship = service.ensure_link(
            ctx,
            request.from_entity_id,
            request.to_entity_id,
            request.relationship_type,
            request.smart_code,
            relationship_data=request.relationship_data,
        )
    else:
        relationship = service.ensure_membership(
            ctx,
            request.from_entity_id,
            request.to_organization_id,
            request.relationship_type,
            request.smart_code,
            relationship_data=request.relationship_data,
        )
    return ok(relationship)


@router.get("")
def list_relationships(
    from_entity_id: Optional[str] = None,
    to_entity_id: Optional[str] = None,
    relationship_type: Optional[str] = None,
    include_inactive: bool = False,
    ctx: TenantContext = Depends(get_tenant),
    service: RelationshipService = Depends(get_relationship_service),
) -> dict:
    relationships = service.list_relationships(
        ctx,
        from_entity_id=from_entity_id,
        to_entity_id=to_entity_id,
        relationship_type=relationship_type,
        include_inactive=include_inactive,
    )
    return ok_items(relationships)


@router.get("/{relationship_id}")
def get_relationship(
    relationship_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: RelationshipService = Depends(get_relationship_service),
) -> dict:
    return ok(service.get_relationship(ctx, relationship_id))


@router.delete("/{relationship_id}")
def unlink(
    relationship_id: str,
    purge: bool = False,
    ctx: TenantContext = Depends(get_tenant),
    service: RelationshipService = Depends(get_relationship_service),
) -> dict:
    """Deactivate a link, or delete it permanently with ?purge=true."""
    service.unlink(ctx, relationship_id, purge=purge)
    return ok({"relationship_id": relationship_id, "purged": purge})
