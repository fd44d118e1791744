"""Entity domain service."""

from typing import Any, Optional

from hera.database.base import Database
from hera.domain.audit import AuditTrail
from hera.domain.dynamic_data import DynamicDataService
from hera.domain.entities import (
    DynamicFieldInput,
    Entity,
    EntityStatus,
    EntityView,
    RelationshipInput,
    TenantContext,
)
from hera.domain.errors import ConflictError, NotFoundError, ValidationError, entity_not_found
from hera.domain.field_placement import validate_metadata
from hera.domain.relationship import RelationshipService, normalize_relationship_type
from hera.domain.smart_code import validate_smart_code
from hera.domain.tenant import require_context
from hera.domain.workflow import WorkflowService


class EntityService:
    """Service for managing entities."""

    def __init__(self, db: Database):
        """Initialize entity service.

        Args:
            db: Database instance
        """
        self.db = db
        self.audit = AuditTrail(db)
        self.dynamic_data = DynamicDataService(db)
        self.relationships = RelationshipService(db, audit=self.audit)
        self.workflow = WorkflowService(db)

    def _check_code_available(
        self, ctx: TenantContext, entity_type: str, entity_code: str, entity_id: Optional[str] = None
    ) -> None:
        existing = self.db.find_entity_by_code(ctx.organization_id, entity_type, entity_code)
        if existing is not None and existing.id != entity_id:
            raise ConflictError(
                f"Entity of type '{entity_type}' with code '{entity_code}' already exists"
            )

    def create_entity(
        self,
        ctx: TenantContext,
        entity_type: str,
        entity_name: str,
        smart_code: str,
        entity_code: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        fields: Optional[list[DynamicFieldInput]] = None,
        relationships: Optional[list[RelationshipInput]] = None,
    ) -> str:
        """Create an entity with its dynamic fields and outgoing relationships.

        Everything is validated first and then written in one unit of work, so
        a failure leaves no partial entity behind.

        Args:
            ctx: Tenant context
            entity_type: Business object type, e.g. "customer"
            entity_name: Display name
            smart_code: Classification code
            entity_code: Optional code, unique per organization and type
            metadata: System metadata (closed key set)
            fields: Dynamic fields to write
            relationships: Links from the new entity to existing entities

        Returns:
            Entity ID

        Raises:
            AuthorizationError: If the organization or actor is missing
            ValidationError: If any part of the payload is invalid
            ConflictError: If the entity code is taken
            NotFoundError: If a relationship target doesn't exist
        """
        require_context(self.db, ctx, write=True)
        if not entity_type or not entity_type.strip():
            raise ValidationError("Entity type is required")
        if not entity_name or not entity_name.strip():
            raise ValidationError("Entity name is required")
        validate_smart_code(smart_code)
        metadata = validate_metadata(metadata)
        if entity_code is not None:
            self._check_code_available(ctx, entity_type, entity_code)

        prepared_fields = self.dynamic_data.prepare_fields(fields or [])
        names = [field.field_name for field in fields or []]
        if len(names) != len(set(names)):
            raise ValidationError("Duplicate dynamic field names in entity payload")

        links = []
        for link in relationships or []:
            relationship_type = normalize_relationship_type(link.relationship_type)
            validate_smart_code(link.smart_code)
            if self.db.get_entity(ctx.organization_id, link.to_entity_id) is None:
                raise NotFoundError(entity_not_found(link.to_entity_id))
            links.append((link, relationship_type))

        created_links = []
        with self.db.unit_of_work():
            entity_id = self.db.create_entity(
                organization_id=ctx.organization_id,
                entity_type=entity_type.strip(),
                entity_name=entity_name.strip(),
                smart_code=smart_code,
                actor_id=ctx.actor_id,
                entity_code=entity_code,
                metadata=metadata,
            )
            self.dynamic_data.write_prepared(ctx, entity_id, prepared_fields)
            for link, relationship_type in links:
                relationship_id = self.db.create_relationship(
                    organization_id=ctx.organization_id,
                    from_entity_id=entity_id,
                    relationship_type=relationship_type,
                    smart_code=link.smart_code,
                    actor_id=ctx.actor_id,
                    to_entity_id=link.to_entity_id,
                    relationship_data=link.relationship_data,
                )
                created_links.append((relationship_id, relationship_type))

        self.audit.record(
            ctx,
            kind="ENTITY",
            event="CREATED",
            subject_id=entity_id,
            details={"entity_type": entity_type, "smart_code": smart_code},
            source_entity_id=entity_id,
        )
        for relationship_id, relationship_type in created_links:
            self.relationships.record_created(ctx, relationship_id, entity_id, relationship_type)
        return entity_id

    def get_entity(self, ctx: TenantContext, entity_id: str) -> Optional[Entity]:
        """Get entity by ID.

        Returns:
            Entity or None if it doesn't exist in the organization
        """
        require_context(self.db, ctx)
        return self.db.get_entity(ctx.organization_id, entity_id)

    def require_entity(self, ctx: TenantContext, entity_id: str) -> Entity:
        """Get entity by ID or raise NotFoundError."""
        entity = self.get_entity(ctx, entity_id)
        if entity is None:
            raise NotFoundError(entity_not_found(entity_id))
        return entity

    def find_by_code(self, ctx: TenantContext, entity_type: str, entity_code: str) -> Optional[Entity]:
        require_context(self.db, ctx)
        return self.db.find_entity_by_code(ctx.organization_id, entity_type, entity_code)

    def list_entities(
        self,
        ctx: TenantContext,
        entity_type: Optional[str] = None,
        status: Optional[str] = None,
        smart_code: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Entity]:
        """List entities of the organization.

        Args:
            ctx: Tenant context
            entity_type: Only this entity type
            status: Only "active" or "archived" entities
            smart_code: Only entities with this smart code
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Entities ordered by name
        """
        require_context(self.db, ctx)
        if status is not None:
            try:
                status = EntityStatus(status).value
            except ValueError:
                raise ValidationError(
                    f"Unknown entity status '{status}'",
                    details=["allowed: active, archived"],
                )
        if limit is not None and limit < 0:
            raise ValidationError("Limit must not be negative")
        return self.db.list_entities(
            ctx.organization_id,
            entity_type=entity_type,
            status=status,
            smart_code=smart_code,
            limit=limit,
            offset=offset,
        )

    def update_entity(
        self,
        ctx: TenantContext,
        entity_id: str,
        entity_name: Optional[str] = None,
        entity_code: Optional[str] = None,
        smart_code: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Entity:
        """Update entity header fields. None values are left unchanged.

        Returns:
            The updated entity

        Raises:
            ValidationError: If a new value is invalid
            ConflictError: If the new entity code is taken
            NotFoundError: If the entity doesn't exist
        """
        require_context(self.db, ctx, write=True)
        entity = self.require_entity(ctx, entity_id)
        if entity_name is not None and not entity_name.strip():
            raise ValidationError("Entity name must not be empty")
        if smart_code is not None:
            validate_smart_code(smart_code)
        if metadata is not None:
            metadata = validate_metadata(metadata)
        if entity_code is not None and entity_code != entity.entity_code:
            self._check_code_available(ctx, entity.entity_type, entity_code, entity_id)

        self.db.update_entity(
            ctx.organization_id,
            entity_id,
            actor_id=ctx.actor_id,
            entity_name=entity_name.strip() if entity_name is not None else None,
            entity_code=entity_code,
            smart_code=smart_code,
            metadata=metadata,
        )
        return self.db.get_entity(ctx.organization_id, entity_id)

    def _set_status(self, ctx: TenantContext, entity_id: str, status: EntityStatus, event: str) -> Entity:
        require_context(self.db, ctx, write=True)
        entity = self.require_entity(ctx, entity_id)
        if entity.status == status.value:
            return entity
        self.db.update_entity(ctx.organization_id, entity_id, actor_id=ctx.actor_id, status=status.value)
        self.audit.record(ctx, kind="ENTITY", event=event, subject_id=entity_id, source_entity_id=entity_id)
        return self.db.get_entity(ctx.organization_id, entity_id)

    def archive_entity(self, ctx: TenantContext, entity_id: str) -> Entity:
        """Soft-delete an entity by marking it archived."""
        return self._set_status(ctx, entity_id, EntityStatus.ARCHIVED, "ARCHIVED")

    def restore_entity(self, ctx: TenantContext, entity_id: str) -> Entity:
        """Return an archived entity to active."""
        return self._set_status(ctx, entity_id, EntityStatus.ACTIVE, "RESTORED")

    def read_entity(self, ctx: TenantContext, entity_id: str) -> EntityView:
        """Read an entity with its dynamic fields, active relationships and workflow status.

        Raises:
            NotFoundError: If the entity doesn't exist
        """
        entity = self.require_entity(ctx, entity_id)
        fields = self.dynamic_data.hydrate(ctx, [entity_id])[entity_id]
        relationships = self.relationships.list_relationships(ctx, from_entity_id=entity_id)
        status = self.workflow.current_status(ctx, entity_id)
        return EntityView(entity=entity, fields=fields, relationships=relationships, status=status)
