"""SQLAlchemy models for the hera six-table schema."""

import uuid
from datetime import datetime, UTC
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    TypeDecorator,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class ExactDecimal(TypeDecorator):
    """Decimal stored as its exact text.

    Numeric columns round to a fixed scale and SQLite keeps them as floats,
    so dynamic number values would not read back as written.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, Decimal) else Decimal(str(value)))

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(value)


class IsoDateTime(TypeDecorator):
    """Datetime stored as ISO 8601 text, keeping its UTC offset if it has one."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else value.isoformat()

    def process_result_value(self, value, dialect):
        return None if value is None else datetime.fromisoformat(value)


class Organization(Base):
    """Tenant model."""

    __tablename__ = "core_organizations"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_name = Column(String, nullable=False)
    organization_code = Column(String, unique=True, nullable=False)
    status = Column(String, default="active", nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by = Column(String(36), nullable=True)


class Entity(Base):
    """Generic business object model."""

    __tablename__ = "core_entities"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=False)
    entity_type = Column(String, nullable=False)
    entity_name = Column(String, nullable=False)
    entity_code = Column(String, nullable=True)
    smart_code = Column(String, nullable=False)
    status = Column(String, default="active", nullable=False)
    metadata_ = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)

    __table_args__ = (Index("ix_core_entities_org_type", "organization_id", "entity_type"),)

    # Relationships
    dynamic_fields = relationship("DynamicField", back_populates="entity", cascade="all, delete-orphan")


class DynamicField(Base):
    """Typed attribute row model."""

    __tablename__ = "core_dynamic_data"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=False)
    entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=False)
    field_name = Column(String, nullable=False)
    field_type = Column(String, nullable=False)
    field_value_text = Column(String, nullable=True)
    field_value_number = Column(ExactDecimal, nullable=True)
    field_value_boolean = Column(Boolean, nullable=True)
    field_value_date = Column(Date, nullable=True)
    field_value_datetime = Column(IsoDateTime, nullable=True)
    field_value_json = Column(JSON, nullable=True)
    smart_code = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)

    __table_args__ = (
        UniqueConstraint("organization_id", "entity_id", "field_name", name="uq_dynamic_field"),
    )

    # Relationships
    entity = relationship("Entity", back_populates="dynamic_fields")


class Relationship(Base):
    """Typed directed edge model."""

    __tablename__ = "core_relationships"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=False)
    from_entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=False)
    to_entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=True)
    to_organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=True)
    relationship_type = Column(String, nullable=False)
    smart_code = Column(String, nullable=False)
    relationship_data = Column(JSON, default=dict, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)

    __table_args__ = (
        Index("ix_core_relationships_lookup", "organization_id", "from_entity_id", "relationship_type"),
    )


class Transaction(Base):
    """Business event header model."""

    __tablename__ = "universal_transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    transaction_code = Column(String, nullable=False)
    transaction_date = Column(Date, nullable=False)
    smart_code = Column(String, nullable=False)
    total_amount = Column(Numeric(18, 2), default=0, nullable=False)
    transaction_status = Column(String, default="draft", nullable=False)
    source_entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=True)
    target_entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=True)
    transaction_currency_code = Column(String(3), nullable=True)
    base_currency_code = Column(String(3), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=True)
    metadata_ = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)

    __table_args__ = (Index("ix_universal_transactions_org_type", "organization_id", "transaction_type"),)

    # Relationships
    lines = relationship(
        "TransactionLine",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.line_number",
    )


class TransactionLine(Base):
    """Transaction line item model."""

    __tablename__ = "universal_transaction_lines"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey("core_organizations.id"), nullable=False)
    transaction_id = Column(String(36), ForeignKey("universal_transactions.id"), nullable=False)
    line_number = Column(Integer, nullable=False)
    line_type = Column(String, nullable=False)
    entity_id = Column(String(36), ForeignKey("core_entities.id"), nullable=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(18, 4), default=1, nullable=False)
    unit_amount = Column(Numeric(18, 4), default=0, nullable=False)
    line_amount = Column(Numeric(18, 2), default=0, nullable=False)
    smart_code = Column(String, nullable=False)
    line_data = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by = Column(String(36), nullable=True)

    __table_args__ = (
        UniqueConstraint("transaction_id", "line_number", name="uq_transaction_line_number"),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="lines")


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=echo)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
