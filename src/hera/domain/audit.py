"""Best-effort audit trail.

Audit events are stored as `audit_event` transactions so they share the
tenant scoping of every other business event. Recording one never fails the
write it describes.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from hera.database.base import Database
from hera.domain.entities import TenantContext

logger = logging.getLogger(__name__)

AUDIT_TRANSACTION_TYPE = "audit_event"


def audit_smart_code(kind: str, event: str) -> str:
    """Return the smart code tagging an audit event, e.g. HERA.SYSTEM.AUDIT.ENTITY.CREATED.v1."""
    return f"HERA.SYSTEM.AUDIT.{kind.upper()}.{event.upper()}.v1"


class AuditTrail:
    """Appends audit events for organization, entity and relationship writes."""

    def __init__(self, db: Database):
        """Initialize audit trail.

        Args:
            db: Database instance
        """
        self.db = db

    def record(
        self,
        ctx: TenantContext,
        kind: str,
        event: str,
        subject_id: str,
        details: Optional[dict[str, Any]] = None,
        source_entity_id: Optional[str] = None,
    ) -> Optional[str]:
        """Record an audit event.

        Args:
            ctx: Tenant context of the audited write
            kind: Record kind (ENTITY, ORGANIZATION, RELATIONSHIP)
            event: What happened (CREATED, ARCHIVED, ...)
            subject_id: ID of the audited record
            details: Extra event data
            source_entity_id: Entity to attach the event to, if any

        Returns:
            Audit transaction ID, or None if recording failed
        """
        try:
            return self.db.create_transaction(
                organization_id=ctx.organization_id,
                actor_id=ctx.actor_id,
                transaction_type=AUDIT_TRANSACTION_TYPE,
                transaction_code=f"AUD-{uuid.uuid4().hex[:12].upper()}",
                transaction_date=date.today(),
                smart_code=audit_smart_code(kind, event),
                total_amount=Decimal("0"),
                transaction_status="posted",
                source_entity_id=source_entity_id,
                metadata={
                    "category": "audit",
                    "audit_trail": {
                        "kind": kind.lower(),
                        "event": event.lower(),
                        "subject_id": subject_id,
                        "actor_id": ctx.actor_id,
                        "details": details or {},
                    },
                },
            )
        except Exception as e:
            logger.warning("Audit event %s.%s for %s was not recorded: %s", kind, event, subject_id, e)
            return None
