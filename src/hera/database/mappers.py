"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the typed value columns of
dynamic fields, so the services never see ORM rows.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from hera.domain import entities as domain
from hera.domain.entities import FieldType
from hera.database.models import (
    Organization as ORMOrganization,
    Entity as ORMEntity,
    DynamicField as ORMDynamicField,
    Relationship as ORMRelationship,
    Transaction as ORMTransaction,
    TransactionLine as ORMTransactionLine,
)

VALUE_COLUMNS = {
    FieldType.TEXT: "field_value_text",
    FieldType.NUMBER: "field_value_number",
    FieldType.BOOLEAN: "field_value_boolean",
    FieldType.DATE: "field_value_date",
    FieldType.DATETIME: "field_value_datetime",
    FieldType.JSON: "field_value_json",
}


def organization_to_domain(orm_org: ORMOrganization) -> domain.Organization:
    """Convert SQLAlchemy Organization model to domain Organization entity."""
    return domain.Organization(
        id=orm_org.id,
        organization_name=orm_org.organization_name,
        organization_code=orm_org.organization_code,
        status=orm_org.status,
        created_at=orm_org.created_at,
        created_by=orm_org.created_by,
    )


def entity_to_domain(orm_entity: ORMEntity) -> domain.Entity:
    """Convert SQLAlchemy Entity model to domain Entity."""
    return domain.Entity(
        id=orm_entity.id,
        organization_id=orm_entity.organization_id,
        entity_type=orm_entity.entity_type,
        entity_name=orm_entity.entity_name,
        entity_code=orm_entity.entity_code,
        smart_code=orm_entity.smart_code,
        status=orm_entity.status,
        metadata=dict(orm_entity.metadata_ or {}),
        created_at=orm_entity.created_at,
        updated_at=orm_entity.updated_at,
        created_by=orm_entity.created_by,
        updated_by=orm_entity.updated_by,
    )


def dynamic_value(orm_field: ORMDynamicField) -> Any:
    """Read the value from the typed column selected by field_type.

    Falls back to the first non-null column when the stored type is unknown.
    """
    try:
        field_type = FieldType(orm_field.field_type)
    except ValueError:
        for column in VALUE_COLUMNS.values():
            value = getattr(orm_field, column)
            if value is not None:
                return value
        return None

    value = getattr(orm_field, VALUE_COLUMNS[field_type])
    if value is None:
        return None
    if field_type is FieldType.NUMBER and not isinstance(value, Decimal):
        return Decimal(str(value))
    if field_type is FieldType.DATE and isinstance(value, datetime):
        return value.date()
    return value


def assign_dynamic_value(orm_field: ORMDynamicField, field_type: FieldType, value: Any) -> None:
    """Write a value into its typed column and clear the others."""
    for column in VALUE_COLUMNS.values():
        setattr(orm_field, column, None)
    orm_field.field_type = field_type.value
    if field_type is FieldType.JSON:
        value = json_safe(value)
    setattr(orm_field, VALUE_COLUMNS[field_type], value)


def dynamic_field_to_domain(orm_field: ORMDynamicField) -> domain.DynamicField:
    """Convert SQLAlchemy DynamicField model to domain DynamicField."""
    return domain.DynamicField(
        id=orm_field.id,
        organization_id=orm_field.organization_id,
        entity_id=orm_field.entity_id,
        field_name=orm_field.field_name,
        field_type=FieldType(orm_field.field_type),
        value=dynamic_value(orm_field),
        smart_code=orm_field.smart_code,
        updated_at=orm_field.updated_at,
        updated_by=orm_field.updated_by,
    )


def relationship_to_domain(orm_rel: ORMRelationship) -> domain.Relationship:
    """Convert SQLAlchemy Relationship model to domain Relationship."""
    return domain.Relationship(
        id=orm_rel.id,
        organization_id=orm_rel.organization_id,
        from_entity_id=orm_rel.from_entity_id,
        to_entity_id=orm_rel.to_entity_id,
        to_organization_id=orm_rel.to_organization_id,
        relationship_type=orm_rel.relationship_type,
        smart_code=orm_rel.smart_code,
        relationship_data=dict(orm_rel.relationship_data or {}),
        is_active=orm_rel.is_active,
        created_at=orm_rel.created_at,
        updated_at=orm_rel.updated_at,
        created_by=orm_rel.created_by,
        updated_by=orm_rel.updated_by,
    )


def transaction_to_domain(orm_txn: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction."""
    txn_date = orm_txn.transaction_date
    if isinstance(txn_date, datetime):
        txn_date = txn_date.date()
    return domain.Transaction(
        id=orm_txn.id,
        organization_id=orm_txn.organization_id,
        transaction_type=orm_txn.transaction_type,
        transaction_code=orm_txn.transaction_code,
        transaction_date=txn_date,
        smart_code=orm_txn.smart_code,
        total_amount=Decimal(orm_txn.total_amount),
        transaction_status=domain.TransactionStatus(orm_txn.transaction_status),
        source_entity_id=orm_txn.source_entity_id,
        target_entity_id=orm_txn.target_entity_id,
        transaction_currency_code=orm_txn.transaction_currency_code,
        base_currency_code=orm_txn.base_currency_code,
        exchange_rate=orm_txn.exchange_rate,
        metadata=dict(orm_txn.metadata_ or {}),
        created_at=orm_txn.created_at,
        updated_at=orm_txn.updated_at,
        created_by=orm_txn.created_by,
        updated_by=orm_txn.updated_by,
    )


def transaction_line_to_domain(orm_line: ORMTransactionLine) -> domain.TransactionLine:
    """Convert SQLAlchemy TransactionLine model to domain TransactionLine."""
    return domain.TransactionLine(
        id=orm_line.id,
        organization_id=orm_line.organization_id,
        transaction_id=orm_line.transaction_id,
        line_number=orm_line.line_number,
        line_type=orm_line.line_type,
        entity_id=orm_line.entity_id,
        description=orm_line.description,
        quantity=Decimal(orm_line.quantity),
        unit_amount=Decimal(orm_line.unit_amount),
        line_amount=Decimal(orm_line.line_amount),
        smart_code=orm_line.smart_code,
        line_data=dict(orm_line.line_data or {}),
    )


def json_safe(value: Any) -> Any:
    """Convert dates and decimals nested in a JSON payload to strings."""
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value
