"""Abstract database interface.

Every method that touches tenant data takes the organization id as its first
argument and must never read or write rows belonging to another organization.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from hera.domain.entities import (
    DynamicField,
    Entity,
    FieldType,
    Organization,
    Relationship,
    Transaction,
    TransactionLine,
)


class Database(ABC):
    """Abstract database interface for hera."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group several writes into one transaction.

        Writes made inside the block are committed together when it exits and
        rolled back together if it raises.
        """
        pass

    def session_scope(self) -> "Database":
        """Return a handle with its own session for one unit of concurrent work.

        Implementations without per-handle state return themselves.
        """
        return self

    # Organization operations
    @abstractmethod
    def create_organization(self, name: str, code: str, actor_id: Optional[str] = None) -> str:
        """Create an organization. Returns organization ID."""
        pass

    @abstractmethod
    def get_organization(self, organization_id: str) -> Optional[Organization]:
        """Get organization by ID."""
        pass

    @abstractmethod
    def get_organization_by_code(self, code: str) -> Optional[Organization]:
        """Get organization by its unique code."""
        pass

    @abstractmethod
    def list_organizations(self) -> list[Organization]:
        """List all organizations."""
        pass

    # Entity operations
    @abstractmethod
    def create_entity(
        self,
        organization_id: str,
        entity_type: str,
        entity_name: str,
        smart_code: str,
        actor_id: str,
        entity_code: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        """Create an entity. Returns entity ID."""
        pass

    @abstractmethod
    def get_entity(self, organization_id: str, entity_id: str) -> Optional[Entity]:
        """Get entity by ID within the organization."""
        pass

    @abstractmethod
    def find_entity_by_code(
        self, organization_id: str, entity_type: str, entity_code: str
    ) -> Optional[Entity]:
        """Get entity by type and code within the organization."""
        pass

    @abstractmethod
    def list_entities(
        self,
        organization_id: str,
        entity_type: Optional[str] = None,
        status: Optional[str] = None,
        smart_code: Optional[str] = None,
        entity_ids: Optional[list[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Entity]:
        """List entities with optional filters."""
        pass

    @abstractmethod
    def update_entity(
        self,
        organization_id: str,
        entity_id: str,
        actor_id: str,
        entity_name: Optional[str] = None,
        entity_code: Optional[str] = None,
        smart_code: Optional[str] = None,
        status: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Update entity fields. None values are left unchanged."""
        pass

    # Dynamic field operations
    @abstractmethod
    def upsert_dynamic_field(
        self,
        organization_id: str,
        entity_id: str,
        field_name: str,
        field_type: FieldType,
        value: Any,
        smart_code: str,
        actor_id: str,
    ) -> str:
        """Create or overwrite a dynamic field. Returns field row ID."""
        pass

    @abstractmethod
    def get_dynamic_field(
        self, organization_id: str, entity_id: str, field_name: str
    ) -> Optional[DynamicField]:
        """Get one dynamic field of an entity."""
        pass

    @abstractmethod
    def list_dynamic_fields(
        self,
        organization_id: str,
        entity_id: str,
        smart_code: Optional[str] = None,
        field_names: Optional[list[str]] = None,
    ) -> list[DynamicField]:
        """List dynamic field rows of a single entity."""
        pass

    @abstractmethod
    def aggregate_dynamic_fields(
        self,
        organization_id: str,
        entity_ids: list[str],
        smart_code: Optional[str] = None,
        field_names: Optional[list[str]] = None,
    ) -> dict[str, dict[str, Any]]:
        """Fetch field values for many entities in one query.

        Returns a mapping of entity ID to {field_name: value}. Entities with no
        rows are absent from the result.
        """
        pass

    @abstractmethod
    def delete_dynamic_field(self, organization_id: str, entity_id: str, field_name: str) -> None:
        """Delete a dynamic field row."""
        pass

    # Relationship operations
    @abstractmethod
    def create_relationship(
        self,
        organization_id: str,
        from_entity_id: str,
        relationship_type: str,
        smart_code: str,
        actor_id: str,
        to_entity_id: Optional[str] = None,
        to_organization_id: Optional[str] = None,
        relationship_data: Optional[dict[str, Any]] = None,
    ) -> str:
        """Create a relationship. Returns relationship ID."""
        pass

    @abstractmethod
    def get_relationship(self, organization_id: str, relationship_id: str) -> Optional[Relationship]:
        """Get relationship by ID."""
        pass

    @abstractmethod
    def find_relationship(
        self,
        organization_id: str,
        from_entity_id: str,
        relationship_type: str,
        to_entity_id: Optional[str] = None,
        to_organization_id: Optional[str] = None,
    ) -> Optional[Relationship]:
        """Find the relationship row for a (from, to, type) tuple.

        Active rows are preferred over inactive ones.
        """
        pass

    @abstractmethod
    def list_relationships(
        self,
        organization_id: str,
        from_entity_id: Optional[str] = None,
        to_entity_id: Optional[str] = None,
        relationship_type: Optional[str] = None,
        include_inactive: bool = False,
    ) -> list[Relationship]:
        """List relationships with optional filters."""
        pass

    @abstractmethod
    def update_relationship(
        self,
        organization_id: str,
        relationship_id: str,
        actor_id: str,
        is_active: Optional[bool] = None,
        relationship_data: Optional[dict[str, Any]] = None,
        smart_code: Optional[str] = None,
    ) -> None:
        """Update relationship fields. None values are left unchanged."""
        pass

    @abstractmethod
    def delete_relationship(self, organization_id: str, relationship_id: str) -> None:
        """Permanently delete a relationship."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        organization_id: str,
        actor_id: str,
        transaction_type: str,
        transaction_code: str,
        transaction_date: date,
        smart_code: str,
        total_amount: Decimal,
        transaction_status: str,
        source_entity_id: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        transaction_currency_code: Optional[str] = None,
        base_currency_code: Optional[str] = None,
        exchange_rate: Optional[Decimal] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        """Create a transaction header. Returns transaction ID."""
        pass

    @abstractmethod
    def add_transaction_line(
        self,
        organization_id: str,
        transaction_id: str,
        actor_id: str,
        line_number: int,
        line_type: str,
        smart_code: str,
        quantity: Decimal,
        unit_amount: Decimal,
        line_amount: Decimal,
        entity_id: Optional[str] = None,
        description: Optional[str] = None,
        line_data: Optional[dict[str, Any]] = None,
    ) -> str:
        """Add a line to a transaction. Returns line ID."""
        pass

    @abstractmethod
    def get_transaction(self, organization_id: str, transaction_id: str) -> Optional[Transaction]:
        """Get transaction header by ID."""
        pass

    @abstractmethod
    def get_transaction_lines(self, organization_id: str, transaction_id: str) -> list[TransactionLine]:
        """Get the lines of a transaction ordered by line number."""
        pass

    @abstractmethod
    def count_transaction_lines(self, organization_id: str, transaction_id: str) -> int:
        """Count the lines of a transaction."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        organization_id: str,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
        source_entity_id: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_void: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        organization_id: str,
        transaction_id: str,
        actor_id: str,
        transaction_date: Optional[date] = None,
        transaction_code: Optional[str] = None,
        transaction_status: Optional[str] = None,
        source_entity_id: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Update transaction header fields. None values are left unchanged."""
        pass

    @abstractmethod
    def delete_transaction(self, organization_id: str, transaction_id: str) -> None:
        """Permanently delete a transaction and its lines."""
        pass
