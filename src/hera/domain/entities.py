"""Domain model entities for hera.

These are pure data classes representing the six core tables, independent of
the database schema. Services return these; the database layer maps ORM rows
into them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class FieldType(str, Enum):
    """Supported dynamic field value types."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"


class EntityStatus(str, Enum):
    """Soft lifecycle of an entity row."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class TransactionStatus(str, Enum):
    """Lifecycle of a transaction header."""

    DRAFT = "draft"
    COMPLETED = "completed"
    POSTED = "posted"
    VOID = "void"


@dataclass(frozen=True)
class TenantContext:
    """Organization scope and acting user for a request."""

    organization_id: Optional[str]
    actor_id: Optional[str] = None


@dataclass(frozen=True)
class Organization:
    """Tenant boundary."""

    id: str
    organization_name: str
    organization_code: str
    status: str
    created_at: datetime
    created_by: Optional[str] = None


@dataclass(frozen=True)
class Entity:
    """Generic business object."""

    id: str
    organization_id: str
    entity_type: str
    entity_name: str
    entity_code: Optional[str]
    smart_code: str
    status: str
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class DynamicField:
    """A typed attribute row attached to an entity."""

    id: str
    organization_id: str
    entity_id: str
    field_name: str
    field_type: FieldType
    value: Any
    smart_code: str
    updated_at: datetime
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class Relationship:
    """Typed directed edge from an entity to an entity or organization."""

    id: str
    organization_id: str
    from_entity_id: str
    to_entity_id: Optional[str]
    to_organization_id: Optional[str]
    relationship_type: str
    smart_code: str
    relationship_data: dict[str, Any]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Business event header."""

    id: str
    organization_id: str
    transaction_type: str
    transaction_code: str
    transaction_date: date
    smart_code: str
    total_amount: Decimal
    transaction_status: TransactionStatus
    source_entity_id: Optional[str]
    target_entity_id: Optional[str]
    transaction_currency_code: Optional[str]
    base_currency_code: Optional[str]
    exchange_rate: Optional[Decimal]
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class TransactionLine:
    """Ordered item within a transaction."""

    id: str
    organization_id: str
    transaction_id: str
    line_number: int
    line_type: str
    entity_id: Optional[str]
    description: Optional[str]
    quantity: Decimal
    unit_amount: Decimal
    line_amount: Decimal
    smart_code: str
    line_data: dict[str, Any]


@dataclass(frozen=True)
class DynamicFieldInput:
    """A field value to write, with optional explicit type."""

    field_name: str
    value: Any
    smart_code: str
    field_type: Optional[FieldType] = None


@dataclass(frozen=True)
class RelationshipInput:
    """An outgoing edge to create alongside a new entity."""

    to_entity_id: str
    relationship_type: str
    smart_code: str
    relationship_data: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class TransactionLineInput:
    """A line to write as part of a transaction."""

    line_number: int
    line_type: str
    smart_code: str
    quantity: Decimal = Decimal("1")
    unit_amount: Decimal = Decimal("0")
    line_amount: Optional[Decimal] = None
    entity_id: Optional[str] = None
    description: Optional[str] = None
    line_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransactionInput:
    """Header fields for a new transaction."""

    transaction_type: str
    smart_code: str
    transaction_date: Optional[date] = None
    transaction_code: Optional[str] = None
    total_amount: Optional[Decimal] = None
    transaction_status: TransactionStatus = TransactionStatus.DRAFT
    source_entity_id: Optional[str] = None
    target_entity_id: Optional[str] = None
    transaction_currency_code: Optional[str] = None
    base_currency_code: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EntityView:
    """An entity with its hydrated dynamic fields and active relationships."""

    entity: Entity
    fields: dict[str, Any]
    relationships: list[Relationship]
    status: Optional[str] = None


@dataclass(frozen=True)
class TransactionView:
    """A transaction header with its ordered lines."""

    transaction: Transaction
    lines: list[TransactionLine]
