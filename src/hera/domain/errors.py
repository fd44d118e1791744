"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    def __init__(self, message: str, details: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = list(details) if details else []


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    def __init__(
        self,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.suggestion = suggestion


class AuthorizationError(DomainError):
    """Missing or invalid organization or actor context."""


class NotFoundError(DomainError):
    """Requested domain record does not exist in the organization."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class InvariantError(DomainError):
    """Operation would break a business rule of the data model."""


class UpstreamError(DomainError):
    """Datastore or integration failure."""


def organization_not_found(organization_id: str) -> str:
    """Return message for missing organization."""
    return f"Organization {organization_id} not found"


def entity_not_found(entity_id: str) -> str:
    """Return message for missing entity."""
    return f"Entity {entity_id} not found"


def relationship_not_found(relationship_id: str) -> str:
    """Return message for missing relationship."""
    return f"Relationship {relationship_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def field_not_found(entity_id: str, field_name: str) -> str:
    """Return message for missing dynamic field."""
    return f"Field '{field_name}' not found on entity {entity_id}"


def invalid_smart_code(smart_code: str) -> str:
    """Return message for a rejected classification code."""
    return f"Invalid smart code '{smart_code}'"


def transaction_delete_blocked(
    transaction_id: str, status: str, line_count: int, total_amount
) -> str:
    """Return message when a transaction cannot be hard-deleted."""
    reasons = []
    if status != "draft":
        reasons.append(f"status is '{status}'")
    if line_count > 0:
        reasons.append(f"it has {line_count} line{'s' if line_count != 1 else ''}")
    if total_amount:
        reasons.append(f"total amount is {total_amount}")
    return (
        f"Cannot delete transaction {transaction_id}: {', '.join(reasons)}. "
        "Only empty zero-amount drafts can be deleted; void or reverse it instead."
    )
