"""Organization and actor checks shared by every service."""

from typing import Optional

from hera.database.base import Database
from hera.domain.entities import Organization, TenantContext
from hera.domain.errors import AuthorizationError, NotFoundError, organization_not_found


def require_context(db: Database, ctx: Optional[TenantContext], write: bool = False) -> Organization:
    """Check the tenant context of a call and return its organization.

    Args:
        db: Database instance
        ctx: Organization and actor of the call
        write: Require an actor id as well

    Returns:
        Organization the call is scoped to

    Raises:
        AuthorizationError: If the organization id, or the actor id on a write, is missing
        NotFoundError: If the organization doesn't exist
    """
    if ctx is None or not ctx.organization_id:
        raise AuthorizationError("Organization context is required")
    if write and not ctx.actor_id:
        raise AuthorizationError("Actor id is required for write operations")

    organization = db.get_organization(ctx.organization_id)
    if organization is None:
        raise NotFoundError(organization_not_found(ctx.organization_id))
    return organization
