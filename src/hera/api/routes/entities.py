"""Entity, dynamic field and workflow status endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from hera.api.dependencies import (
    get_dynamic_data_service,
    get_entity_service,
    get_tenant,
    get_workflow_service,
)
from hera.api.responses import ok, ok_items
from hera.api.schemas import (
    EntityCreateRequest,
    EntityUpdateRequest,
    FieldSetRequest,
    FieldsSetRequest,
    HydrateRequest,
    StatusAssignRequest,
)
from hera.domain.dynamic_data import DynamicDataService
from hera.domain.entities import TenantContext
from hera.domain.entity import EntityService
from hera.domain.workflow import WorkflowService

router = APIRouter()


@router.post("", status_code=201)
def create_entity(
    request: EntityCreateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    """Create an entity with its dynamic fields and relationships in one write."""
    entity_id = service.create_entity(
        ctx,
        entity_type=request.entity_type,
        entity_name=request.entity_name,
        smart_code=request.smart_code,
        entity_code=request.entity_code,
        metadata=request.metadata,
        fields=[field.to_input() for field in request.fields],
        relationships=[link.to_input() for link in request.relationships],
    )
    return ok(service.read_entity(ctx, entity_id))


@router.get("")
def list_entities(
    entity_type: Optional[str] = None,
    status: Optional[str] = None,
    smart_code: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    entities = service.list_entities(
        ctx,
        entity_type=entity_type,
        status=status,
        smart_code=smart_code,
        limit=limit,
        offset=offset,
    )
    return ok_items(entities)


@router.post("/hydrate")
def hydrate(
    request: HydrateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    """Fetch dynamic field values for many entities at once."""
    return ok(
        service.hydrate(
            ctx,
            request.entity_ids,
            smart_code=request.smart_code,
            field_names=request.field_names,
        )
    )


@router.get("/{entity_id}")
def read_entity(
    entity_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    return ok(service.read_entity(ctx, entity_id))


@router.patch("/{entity_id}")
def update_entity(
    entity_id: str,
    request: EntityUpdateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    entity = service.update_entity(
        ctx,
        entity_id,
        entity_name=request.entity_name,
        entity_code=request.entity_code,
        smart_code=request.smart_code,
        metadata=request.metadata,
    )
    return ok(entity)


@router.delete("/{entity_id}")
def archive_entity(
    entity_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    """Archive an entity. Entities are never hard-deleted."""
    return ok(service.archive_entity(ctx, entity_id))


@router.post("/{entity_id}/restore")
def restore_entity(
    entity_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: EntityService = Depends(get_entity_service),
) -> dict:
    return ok(service.restore_entity(ctx, entity_id))


@router.get("/{entity_id}/fields")
def list_fields(
    entity_id: str,
    smart_code: Optional[str] = None,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    return ok_items(service.list_fields(ctx, entity_id, smart_code=smart_code))


@router.put("/{entity_id}/fields")
def set_fields(
    entity_id: str,
    request: FieldsSetRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    """Write several fields together; all or none are stored."""
    return ok(service.set_fields(ctx, entity_id, [field.to_input() for field in request.fields]))


@router.get("/{entity_id}/fields/{field_name}")
def get_field(
    entity_id: str,
    field_name: str,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    return ok(service.get_field(ctx, entity_id, field_name))


@router.put("/{entity_id}/fields/{field_name}")
def set_field(
    entity_id: str,
    field_name: str,
    request: FieldSetRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    field = service.set_field(
        ctx,
        entity_id,
        field_name,
        request.value,
        smart_code=request.smart_code,
        field_type=request.field_type,
    )
    return ok(field)


@router.delete("/{entity_id}/fields/{field_name}")
def delete_field(
    entity_id: str,
    field_name: str,
    ctx: TenantContext = Depends(get_tenant),
    service: DynamicDataService = Depends(get_dynamic_data_service),
) -> dict:
    service.delete_field(ctx, entity_id, field_name)
    return ok({"entity_id": entity_id, "field_name": field_name, "deleted": True})


@router.get("/{entity_id}/status")
def current_status(
    entity_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: WorkflowService = Depends(get_workflow_service),
) -> dict:
    return ok({"entity_id": entity_id, "status": service.current_status(ctx, entity_id)})


@router.post("/{entity_id}/status")
def assign_status(
    entity_id: str,
    request: StatusAssignRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: WorkflowService = Depends(get_workflow_service),
) -> dict:
    """Move the entity to a new workflow status (a HAS_STATUS relationship)."""
    relationship = service.assign_status(
        ctx,
        entity_id,
        request.status,
        smart_code=request.smart_code,
        reason=request.reason,
    )
    return ok(
        {
            "entity_id": entity_id,
            "status": service.current_status(ctx, entity_id),
            "relationship": relationship,
        }
    )


@router.get("/{entity_id}/status/history")
def status_history(
    entity_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: WorkflowService = Depends(get_workflow_service),
) -> dict:
    return ok_items(service.status_history(ctx, entity_id))
