"""Relationship domain service."""

import logging
from typing import Any, Optional

from hera.database.base import Database
from hera.domain.audit import AuditTrail
from hera.domain.entities import Relationship, TenantContext
from hera.domain.errors import (
    NotFoundError,
    ValidationError,
    entity_not_found,
    organization_not_found,
    relationship_not_found,
)
from hera.domain.smart_code import validate_smart_code
from hera.domain.tenant import require_context

logger = logging.getLogger(__name__)


def normalize_relationship_type(relationship_type: str) -> str:
    """Return the canonical upper-case form of a relationship type."""
    if not relationship_type or not relationship_type.strip():
        raise ValidationError("Relationship type is required")
    return relationship_type.strip().upper()


class RelationshipService:
    """Service for linking entities to entities and organizations.

    Links are unique per (organization, from, to, type): linking again
    returns the existing row instead of creating a duplicate.
    """

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize relationship service.

        Args:
            db: Database instance
            audit: Audit trail; one is created when omitted
        """
        self.db = db
        self.audit = audit or AuditTrail(db)

    def ensure_link(
        self,
        ctx: TenantContext,
        from_entity_id: str,
        to_entity_id: str,
        relationship_type: str,
        smart_code: str,
        relationship_data: Optional[dict[str, Any]] = None,
        audit: bool = True,
    ) -> Relationship:
        """Link two entities, reusing an existing link of the same type.

        An existing active link is returned (with its data replaced when
        relationship_data is given). An inactive one is reactivated.

        Args:
            ctx: Tenant context
            from_entity_id: Source entity
            to_entity_id: Target entity
            relationship_type: Link type, e.g. HAS_STATUS or CUSTOMER_OF
            smart_code: Classification code of the link
            relationship_data: Link attributes
            audit: Record an audit event when a new row is created; pass False
                inside a unit of work and record it after commit

        Returns:
            The active relationship

        Raises:
            ValidationError: If the type or smart code is invalid
            NotFoundError: If either entity doesn't exist in the organization
        """
        require_context(self.db, ctx, write=True)
        relationship_type = normalize_relationship_type(relationship_type)
        validate_smart_code(smart_code)
        for entity_id in (from_entity_id, to_entity_id):
            if self.db.get_entity(ctx.organization_id, entity_id) is None:
                raise NotFoundError(entity_not_found(entity_id))

        return self._ensure(
            ctx,
            from_entity_id,
            relationship_type,
            smart_code,
            relationship_data,
            to_entity_id=to_entity_id,
            audit=audit,
        )

    def ensure_membership(
        self,
        ctx: TenantContext,
        from_entity_id: str,
        to_organization_id: str,
        relationship_type: str,
        smart_code: str,
        relationship_data: Optional[dict[str, Any]] = None,
        audit: bool = True,
    ) -> Relationship:
        """Link an entity to an organization, e.g. MEMBER_OF.

        Raises:
            NotFoundError: If the entity or target organization doesn't exist
        """
        require_context(self.db, ctx, write=True)
        relationship_type = normalize_relationship_type(relationship_type)
        validate_smart_code(smart_code)
        if self.db.get_entity(ctx.organization_id, from_entity_id) is None:
            raise NotFoundError(entity_not_found(from_entity_id))
        if self.db.get_organization(to_organization_id) is None:
            raise NotFoundError(organization_not_found(to_organization_id))

        return self._ensure(
            ctx,
            from_entity_id,
            relationship_type,
            smart_code,
            relationship_data,
            to_organization_id=to_organization_id,
            audit=audit,
        )

    def _ensure(
        self,
        ctx: TenantContext,
        from_entity_id: str,
        relationship_type: str,
        smart_code: str,
        relationship_data: Optional[dict[str, Any]],
        to_entity_id: Optional[str] = None,
        to_organization_id: Optional[str] = None,
        audit: bool = True,
    ) -> Relationship:
        existing = self.db.find_relationship(
            ctx.organization_id,
            from_entity_id,
            relationship_type,
            to_entity_id=to_entity_id,
            to_organization_id=to_organization_id,
        )

        if existing is not None:
            if existing.is_active and relationship_data is None:
                return existing
            self.db.update_relationship(
                ctx.organization_id,
                existing.id,
                actor_id=ctx.actor_id,
                is_active=True,
                relationship_data=relationship_data,
            )
            if not existing.is_active:
                logger.info("Reactivated %s relationship %s", relationship_type, existing.id)
            return self.db.get_relationship(ctx.organization_id, existing.id)

        relationship_id = self.db.create_relationship(
            organization_id=ctx.organization_id,
            from_entity_id=from_entity_id,
            relationship_type=relationship_type,
            smart_code=smart_code,
            actor_id=ctx.actor_id,
            to_entity_id=to_entity_id,
            to_organization_id=to_organization_id,
            relationship_data=relationship_data,
        )
        if audit:
            self.record_created(ctx, relationship_id, from_entity_id, relationship_type)
        return self.db.get_relationship(ctx.organization_id, relationship_id)

    def record_created(
        self, ctx: TenantContext, relationship_id: str, from_entity_id: str, relationship_type: str
    ) -> None:
        """Append the audit event for a newly created relationship."""
        self.audit.record(
            ctx,
            kind="RELATIONSHIP",
            event="CREATED",
            subject_id=relationship_id,
            details={"relationship_type": relationship_type},
            source_entity_id=from_entity_id,
        )

    def get_relationship(self, ctx: TenantContext, relationship_id: str) -> Relationship:
        """Get relationship by ID.

        Raises:
            NotFoundError: If the relationship doesn't exist in the organization
        """
        require_context(self.db, ctx)
        relationship = self.db.get_relationship(ctx.organization_id, relationship_id)
        if relationship is None:
            raise NotFoundError(relationship_not_found(relationship_id))
        return relationship

    def unlink(self, ctx: TenantContext, relationship_id: str, purge: bool = False) -> None:
        """Remove a link.

        Args:
            ctx: Tenant context
            relationship_id: Relationship to remove
            purge: Delete the row instead of marking it inactive

        Raises:
            NotFoundError: If the relationship doesn't exist in the organization
        """
        require_context(self.db, ctx, write=True)
        if purge:
            self.db.delete_relationship(ctx.organization_id, relationship_id)
        else:
            self.db.update_relationship(
                ctx.organization_id, relationship_id, actor_id=ctx.actor_id, is_active=False
            )

    def list_relationships(
        self,
        ctx: TenantContext,
        from_entity_id: Optional[str] = None,
        to_entity_id: Optional[str] = None,
        relationship_type: Optional[str] = None,
        include_inactive: bool = False,
    ) -> list[Relationship]:
        """List relationships with optional filters.

        Returns:
            Relationships ordered by creation time
        """
        require_context(self.db, ctx)
        if relationship_type is not None:
            relationship_type = normalize_relationship_type(relationship_type)
        return self.db.list_relationships(
            ctx.organization_id,
            from_entity_id=from_entity_id,
            to_entity_id=to_entity_id,
            relationship_type=relationship_type,
            include_inactive=include_inactive,
        )
