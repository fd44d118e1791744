"""Organization domain service."""

from typing import Optional

from hera.database.base import Database
from hera.domain.audit import AuditTrail
from hera.domain.entities import Organization, TenantContext
from hera.domain.errors import ConflictError, NotFoundError, ValidationError, organization_not_found


class OrganizationService:
    """Service for managing organizations (tenants)."""

    def __init__(self, db: Database):
        """Initialize organization service.

        Args:
            db: Database instance
        """
        self.db = db
        self.audit = AuditTrail(db)

    def create_organization(self, name: str, code: str, actor_id: Optional[str] = None) -> str:
        """Create an organization.

        Args:
            name: Display name
            code: Unique organization code
            actor_id: User creating the organization

        Returns:
            Organization ID

        Raises:
            ValidationError: If name or code is empty
            ConflictError: If the code is already taken
        """
        if not name or not name.strip():
            raise ValidationError("Organization name is required")
        if not code or not code.strip():
            raise ValidationError("Organization code is required")
        code = code.strip()

        if self.db.get_organization_by_code(code) is not None:
            raise ConflictError(f"Organization with code '{code}' already exists")

        organization_id = self.db.create_organization(name=name.strip(), code=code, actor_id=actor_id)
        self.audit.record(
            TenantContext(organization_id=organization_id, actor_id=actor_id),
            kind="ORGANIZATION",
            event="CREATED",
            subject_id=organization_id,
            details={"organization_code": code},
        )
        return organization_id

    def get_organization(self, organization_id: str) -> Optional[Organization]:
        """Get organization by ID.

        Returns:
            Organization or None if not found
        """
        return self.db.get_organization(organization_id)

    def get_organization_by_code(self, code: str) -> Optional[Organization]:
        return self.db.get_organization_by_code(code)

    def require_organization(self, organization_id: str) -> Organization:
        """Get organization by ID or raise NotFoundError."""
        organization = self.db.get_organization(organization_id)
        if organization is None:
            raise NotFoundError(organization_not_found(organization_id))
        return organization

    def list_organizations(self) -> list[Organization]:
        return self.db.list_organizations()
