"""Workflow status service.

An entity's workflow status is a HAS_STATUS relationship to a status entity
(entity_type "status", entity_code the upper-case status code). Assigning a
new status deactivates the previous edge and appends a new one, so the
inactive edges form the status history. Each edge carries a sequence number
in its relationship_data that orders the history.
"""

import logging
import re
from datetime import datetime, UTC
from typing import Any, Optional

from hera.database.base import Database
from hera.domain.audit import AuditTrail
from hera.domain.entities import Relationship, TenantContext
from hera.domain.errors import NotFoundError, ValidationError, entity_not_found
from hera.domain.smart_code import validate_smart_code
from hera.domain.status import StatusMachine
from hera.domain.tenant import require_context

logger = logging.getLogger(__name__)

STATUS_ENTITY_TYPE = "status"
HAS_STATUS = "HAS_STATUS"
STATUS_ENTITY_SMART_CODE = "HERA.SYSTEM.WORKFLOW.STATUS.v1"
HAS_STATUS_SMART_CODE = "HERA.SYSTEM.WORKFLOW.HAS_STATUS.v1"

_STATUS_CODE = re.compile(r"^[A-Z][A-Z0-9_]*$")


def normalize_status_code(status_code: str) -> str:
    """Return the upper-case status code.

    Raises:
        ValidationError: If the code is empty or has characters outside [A-Z0-9_]
    """
    code = (status_code or "").strip().upper().replace("-", "_").replace(" ", "_")
    if not _STATUS_CODE.match(code):
        raise ValidationError(
            f"Invalid status code '{status_code}'",
            details=["status codes start with a letter and use only A-Z, 0-9 and _"],
        )
    return code


class WorkflowService:
    """Service for assigning and reading entity workflow status."""

    def __init__(self, db: Database, machines: Optional[dict[str, StatusMachine]] = None):
        """Initialize workflow service.

        Args:
            db: Database instance
            machines: Status machines keyed by entity type. Entity types
                without a machine accept any status.
        """
        self.db = db
        self.audit = AuditTrail(db)
        self.machines: dict[str, StatusMachine] = dict(machines or {})

    def register_machine(self, entity_type: str, machine: StatusMachine) -> None:
        """Constrain the statuses of an entity type to a machine's transitions."""
        self.machines[entity_type] = machine

    def _require_entity(self, ctx: TenantContext, entity_id: str):
        entity = self.db.get_entity(ctx.organization_id, entity_id)
        if entity is None:
            raise NotFoundError(entity_not_found(entity_id))
        return entity

    def _edges(self, ctx: TenantContext, entity_id: str, include_inactive: bool = False) -> list[Relationship]:
        edges = self.db.list_relationships(
            ctx.organization_id,
            from_entity_id=entity_id,
            relationship_type=HAS_STATUS,
            include_inactive=include_inactive,
        )
        return sorted(edges, key=lambda edge: (edge.relationship_data.get("sequence", 0), edge.created_at))

    def _active_edges(self, ctx: TenantContext, entity_id: str) -> list[Relationship]:
        return self._edges(ctx, entity_id)

    def _status_code_of(self, ctx: TenantContext, edge: Relationship) -> Optional[str]:
        if edge.to_entity_id is None:
            return None
        status_entity = self.db.get_entity(ctx.organization_id, edge.to_entity_id)
        return status_entity.entity_code if status_entity is not None else None

    def current_status(self, ctx: TenantContext, entity_id: str) -> Optional[str]:
        """Return the entity's current status code, or None if it has none."""
        require_context(self.db, ctx)
        self._require_entity(ctx, entity_id)
        edges = self._active_edges(ctx, entity_id)
        if not edges:
            return None
        return self._status_code_of(ctx, edges[-1])

    def status_history(self, ctx: TenantContext, entity_id: str) -> list[dict[str, Any]]:
        """List every status the entity has had, oldest first.

        Returns:
            List of dicts with status, is_active, assigned_at, previous_status
            and relationship_id
        """
        require_context(self.db, ctx)
        self._require_entity(ctx, entity_id)
        history = []
        for edge in self._edges(ctx, entity_id, include_inactive=True):
            history.append(
                {
                    "status": self._status_code_of(ctx, edge),
                    "is_active": edge.is_active,
                    "assigned_at": edge.relationship_data.get("assigned_at"),
                    "previous_status": edge.relationship_data.get("previous_status"),
                    "relationship_id": edge.id,
                }
            )
        return history

    def get_or_create_status_entity(self, ctx: TenantContext, status_code: str) -> str:
        """Return the ID of the organization's status entity for a code."""
        existing = self.db.find_entity_by_code(ctx.organization_id, STATUS_ENTITY_TYPE, status_code)
        if existing is not None:
            return existing.id
        return self.db.create_entity(
            organization_id=ctx.organization_id,
            entity_type=STATUS_ENTITY_TYPE,
            entity_name=status_code.replace("_", " ").title(),
            smart_code=STATUS_ENTITY_SMART_CODE,
            actor_id=ctx.actor_id,
            entity_code=status_code,
        )

    def assign_status(
        self,
        ctx: TenantContext,
        entity_id: str,
        status_code: str,
        smart_code: str = HAS_STATUS_SMART_CODE,
        reason: Optional[str] = None,
    ) -> Relationship:
        """Move an entity to a new workflow status.

        Args:
            ctx: Tenant context
            entity_id: Entity whose status changes
            status_code: New status, e.g. "APPROVED"
            smart_code: Classification code of the HAS_STATUS edge
            reason: Optional note stored on the edge

        Returns:
            The active HAS_STATUS relationship

        Raises:
            ValidationError: If the status code or smart code is invalid
            InvariantError: If the entity type's machine forbids the transition
            NotFoundError: If the entity doesn't exist in the organization
        """
        require_context(self.db, ctx, write=True)
        status_code = normalize_status_code(status_code)
        validate_smart_code(smart_code)
        entity = self._require_entity(ctx, entity_id)

        edges = self._active_edges(ctx, entity_id)
        current = self._status_code_of(ctx, edges[-1]) if edges else None
        if current == status_code:
            return edges[-1]

        machine = self.machines.get(entity.entity_type)
        if machine is not None:
            machine.check_transition(current, status_code)

        relationship_data: dict[str, Any] = {
            "previous_status": current,
            "sequence": len(self._edges(ctx, entity_id, include_inactive=True)) + 1,
            "assigned_at": datetime.now(UTC).isoformat(),
        }
        if reason:
            relationship_data["reason"] = reason

        with self.db.unit_of_work():
            status_entity_id = self.get_or_create_status_entity(ctx, status_code)
            for edge in edges:
                self.db.update_relationship(
                    ctx.organization_id, edge.id, actor_id=ctx.actor_id, is_active=False
                )
            # History edges are never reused
            relationship_id = self.db.create_relationship(
                organization_id=ctx.organization_id,
                from_entity_id=entity_id,
                relationship_type=HAS_STATUS,
                smart_code=smart_code,
                actor_id=ctx.actor_id,
                to_entity_id=status_entity_id,
                relationship_data=relationship_data,
            )
        relationship = self.db.get_relationship(ctx.organization_id, relationship_id)

        logger.info("Entity %s status %s -> %s", entity_id, current, status_code)
        self.audit.record(
            ctx,
            kind="ENTITY",
            event="STATUS_CHANGED",
            subject_id=entity_id,
            details={"from": current, "to": status_code},
            source_entity_id=entity_id,
        )
        return relationship
