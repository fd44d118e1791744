"""Domain layer for hera application."""

from hera.domain.entities import (
    DynamicFieldInput,
    RelationshipInput,
    TenantContext,
    TransactionInput,
    TransactionLineInput,
)
from hera.domain.errors import DomainError

# Services import the database interface, which imports hera.domain.entities;
# load them lazily to avoid a circular import
_SERVICES = {
    "OrganizationService": "hera.domain.organization",
    "EntityService": "hera.domain.entity",
    "DynamicDataService": "hera.domain.dynamic_data",
    "RelationshipService": "hera.domain.relationship",
    "WorkflowService": "hera.domain.workflow",
    "TransactionService": "hera.domain.transaction",
}


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "DomainError",
    "DynamicFieldInput",
    "RelationshipInput",
    "TenantContext",
    "TransactionInput",
    "TransactionLineInput",
    *_SERVICES,
]
