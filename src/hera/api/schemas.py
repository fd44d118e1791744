"""Request models for the HTTP API."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from hera.domain.entities import (
    DynamicFieldInput,
    FieldType,
    RelationshipInput,
    TransactionInput,
    TransactionLineInput,
    TransactionStatus,
)
from hera.domain.workflow import HAS_STATUS_SMART_CODE


class OrganizationCreateRequest(BaseModel):
    """Request to create an organization."""
    organization_name: str = Field(..., description="Display name")
    organization_code: str = Field(..., description="Unique organization code")


class FieldValueRequest(BaseModel):
    """A dynamic field value."""
    field_name: str
    value: Any
    smart_code: str
    field_type: Optional[FieldType] = Field(None, description="Inferred from the value when omitted")

    def to_input(self) -> DynamicFieldInput:
        return DynamicFieldInput(
            field_name=self.field_name,
            value=self.value,
            smart_code=self.smart_code,
            field_type=self.field_type,
        )


class FieldSetRequest(BaseModel):
    """Value of a single field addressed by name in the path."""
    value: Any
    smart_code: str
    field_type: Optional[FieldType] = None


class FieldsSetRequest(BaseModel):
    fields: list[FieldValueRequest]


class LinkRequest(BaseModel):
    """An outgoing link created together with a new entity."""
    to_entity_id: str
    relationship_type: str
    smart_code: str
    relationship_data: Optional[dict[str, Any]] = None

    def to_input(self) -> RelationshipInput:
        return RelationshipInput(
            to_entity_id=self.to_entity_id,
            relationship_type=self.relationship_type,
            smart_code=self.smart_code,
            relationship_data=self.relationship_data,
        )


class EntityCreateRequest(BaseModel):
    """Request to create an entity with fields and relationships."""
    entity_type: str
    entity_name: str
    smart_code: str
    entity_code: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    fields: list[FieldValueRequest] = Field(default_factory=list)
    relationships: list[LinkRequest] = Field(default_factory=list)


class EntityUpdateRequest(BaseModel):
    entity_name: Optional[str] = None
    entity_code: Optional[str] = None
    smart_code: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class HydrateRequest(BaseModel):
    """Request to fetch dynamic fields of many entities."""
    entity_ids: list[str]
    smart_code: Optional[str] = None
    field_names: Optional[list[str]] = None


class RelationshipCreateRequest(BaseModel):
    """Request to ensure a link exists.

    Exactly one of to_entity_id and to_organization_id must be set.
    """
    from_entity_id: str
    relationship_type: str
    smart_code: str
    to_entity_id: Optional[str] = None
    to_organization_id: Optional[str] = None
    relationship_data: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def check_target(self) -> "RelationshipCreateRequest":
        if (self.to_entity_id is None) == (self.to_organization_id is None):
            raise ValueError("exactly one of to_entity_id and to_organization_id is required")
        return self


class StatusAssignRequest(BaseModel):
    status: str = Field(..., description="Status code, e.g. APPROVED")
    smart_code: str = HAS_STATUS_SMART_CODE
    reason: Optional[str] = None


class TransactionLineRequest(BaseModel):
    """A transaction line."""
    line_number: int
    line_type: str
    smart_code: str
    quantity: Decimal = Decimal("1")
    unit_amount: Decimal = Decimal("0")
    line_amount: Optional[Decimal] = None
    entity_id: Optional[str] = None
    description: Optional[str] = None
    line_data: dict[str, Any] = Field(default_factory=dict)

    def to_input(self) -> TransactionLineInput:
        return TransactionLineInput(**self.model_dump())


class TransactionCreateRequest(BaseModel):
    """Request to create a transaction header with its lines."""
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
    metadata: dict[str, Any] = Field(default_factory=dict)
    lines: list[TransactionLineRequest] = Field(default_factory=list)

    def to_input(self) -> TransactionInput:
        return TransactionInput(**self.model_dump(exclude={"lines"}))


class TransactionUpdateRequest(BaseModel):
    transaction_date: Optional[date] = None
    transaction_code: Optional[str] = None
    source_entity_id: Optional[str] = None
    target_entity_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class TransactionStatusRequest(BaseModel):
    status: str


class VoidRequest(BaseModel):
    reason: Optional[str] = None


class ReverseRequest(BaseModel):
    reason: Optional[str] = None
    transaction_date: Optional[date] = None


class SmartCodeRequest(BaseModel):
    smart_code: str
