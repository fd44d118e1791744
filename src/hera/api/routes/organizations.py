"""Organization endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from hera.api.dependencies import get_actor_id, get_organization_service
from hera.api.responses import ok, ok_items
from hera.api.schemas import OrganizationCreateRequest
from hera.domain.organization import OrganizationService

router = APIRouter()


@router.post("", status_code=201)
def create_organization(
    request: OrganizationCreateRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    service: OrganizationService = Depends(get_organization_service),
) -> dict:
    """Create an organization (tenant)."""
    organization_id = service.create_organization(
        name=request.organization_name,
        code=request.organization_code,
        actor_id=actor_id,
    )
    return ok(service.require_organization(organization_id))


@router.get("")
def list_organizations(service: OrganizationService = Depends(get_organization_service)) -> dict:
    return ok_items(service.list_organizations())


@router.get("/{organization_id}")
def get_organization(
    organization_id: str,
    service: OrganizationService = Depends(get_organization_service),
) -> dict:
    return ok(service.require_organization(organization_id))
