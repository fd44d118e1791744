"""Dynamic data domain service.

Typed attribute rows attached to entities: writing, reading and hydrating
field values for many entities at once.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from hera.database.base import Database
from hera.domain.entities import DynamicField, DynamicFieldInput, FieldType, TenantContext
from hera.domain.errors import (
    NotFoundError,
    UpstreamError,
    ValidationError,
    entity_not_found,
    field_not_found,
)
from hera.domain.field_placement import validate_dynamic_field_name
from hera.domain.smart_code import validate_smart_code
from hera.domain.tenant import require_context

logger = logging.getLogger(__name__)

_BOOLEAN_STRINGS = {
    "true": True,
    "yes": True,
    "1": True,
    "on": True,
    "false": False,
    "no": False,
    "0": False,
    "off": False,
}


def infer_field_type(value: Any) -> FieldType:
    """Infer the field type of a Python value.

    Raises:
        ValidationError: If the value has no matching field type
    """
    # bool is a subclass of int and datetime a subclass of date
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return FieldType.NUMBER
    if isinstance(value, datetime):
        return FieldType.DATETIME
    if isinstance(value, date):
        return FieldType.DATE
    if isinstance(value, (dict, list)):
        return FieldType.JSON
    if isinstance(value, str):
        return FieldType.TEXT
    raise ValidationError(f"Unsupported field value type: {type(value).__name__}")


def coerce_field_value(value: Any, field_type: FieldType) -> Any:
    """Convert a value to the Python type stored for the given field type.

    Strings are parsed for non-text types so CLI and HTTP callers can pass
    "750", "true" or "2024-03-01".

    Raises:
        ValidationError: If the value cannot be converted
    """
    if value is None:
        raise ValidationError("Field value must not be null; delete the field instead")

    try:
        if field_type is FieldType.TEXT:
            return value if isinstance(value, str) else str(value)

        if field_type is FieldType.NUMBER:
            if isinstance(value, bool):
                raise ValidationError("Boolean value given for a number field")
            if isinstance(value, float):
                number = Decimal(str(value))
            elif isinstance(value, (int, Decimal)):
                number = Decimal(value)
            else:
                number = Decimal(str(value).strip())
            if not number.is_finite():
                raise ValidationError(f"Number field value must be finite: '{value}'")
            return number

        if field_type is FieldType.BOOLEAN:
            if isinstance(value, bool):
                return value
            key = str(value).strip().lower()
            if key not in _BOOLEAN_STRINGS:
                raise ValidationError(f"Invalid boolean value: '{value}'")
            return _BOOLEAN_STRINGS[key]

        if field_type is FieldType.DATETIME:
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime(value.year, value.month, value.day)
            return date_parser.isoparse(str(value).strip())

        if field_type is FieldType.DATE:
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            return date_parser.isoparse(str(value).strip()).date()

        if field_type is FieldType.JSON:
            if isinstance(value, (dict, list)):
                return value
            parsed = json.loads(value) if isinstance(value, str) else value
            if not isinstance(parsed, (dict, list)):
                raise ValidationError("JSON field value must be an object or array")
            return parsed
    except (InvalidOperation, ValueError, OverflowError) as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(f"Invalid {field_type.value} value: '{value}'")

    raise ValidationError(f"Unsupported field type: {field_type}")


class DynamicDataService:
    """Service for reading and writing dynamic fields."""

    def __init__(self, db: Database):
        """Initialize dynamic data service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_entity(self, ctx: TenantContext, entity_id: str) -> None:
        if self.db.get_entity(ctx.organization_id, entity_id) is None:
            raise NotFoundError(entity_not_found(entity_id))

    def _prepare(self, field: DynamicFieldInput) -> tuple[FieldType, Any]:
        validate_dynamic_field_name(field.field_name)
        validate_smart_code(field.smart_code)
        field_type = field.field_type
        if field_type is None:
            if field.value is None:
                raise ValidationError(
                    f"Field '{field.field_name}' value must not be null; delete the field instead"
                )
            field_type = infer_field_type(field.value)
        elif not isinstance(field_type, FieldType):
            try:
                field_type = FieldType(field_type)
            except ValueError:
                raise ValidationError(
                    f"Unknown field type '{field_type}'",
                    details=[f"allowed: {', '.join(t.value for t in FieldType)}"],
                )
        return field_type, coerce_field_value(field.value, field_type)

    def set_field(
        self,
        ctx: TenantContext,
        entity_id: str,
        field_name: str,
        value: Any,
        smart_code: str,
        field_type: Optional[FieldType] = None,
    ) -> DynamicField:
        """Create or overwrite one dynamic field.

        Args:
            ctx: Tenant context
            entity_id: Entity the field belongs to
            field_name: Field name (status-like names are rejected)
            value: Field value
            smart_code: Classification code of the field
            field_type: Explicit type; inferred from the value when None

        Returns:
            The stored field

        Raises:
            ValidationError: If the name, smart code or value is invalid
            NotFoundError: If the entity doesn't exist in the organization
        """
        require_context(self.db, ctx, write=True)
        field_type, stored = self._prepare(DynamicFieldInput(field_name, value, smart_code, field_type))
        self._require_entity(ctx, entity_id)

        self.db.upsert_dynamic_field(
            organization_id=ctx.organization_id,
            entity_id=entity_id,
            field_name=field_name,
            field_type=field_type,
            value=stored,
            smart_code=smart_code,
            actor_id=ctx.actor_id,
        )
        return self.db.get_dynamic_field(ctx.organization_id, entity_id, field_name)

    def set_fields(self, ctx: TenantContext, entity_id: str, fields: list[DynamicFieldInput]) -> dict[str, Any]:
        """Write several fields of one entity together.

        Every field is validated before anything is written, and the writes
        share one unit of work.

        Returns:
            Mapping of field name to stored value
        """
        require_context(self.db, ctx, write=True)
        prepared = self.prepare_fields(fields)
        names = [field.field_name for field in fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate field names: {', '.join(duplicates)}")
        self._require_entity(ctx, entity_id)

        with self.db.unit_of_work():
            self.write_prepared(ctx, entity_id, prepared)
        return {field.field_name: stored for field, _, stored in prepared}

    def prepare_fields(self, fields: list[DynamicFieldInput]) -> list[tuple[DynamicFieldInput, FieldType, Any]]:
        """Validate and coerce fields without writing them."""
        return [(field, *self._prepare(field)) for field in fields]

    def write_prepared(
        self,
        ctx: TenantContext,
        entity_id: str,
        prepared: list[tuple[DynamicFieldInput, FieldType, Any]],
    ) -> None:
        """Write fields returned by prepare_fields."""
        for field, field_type, stored in prepared:
            self.db.upsert_dynamic_field(
                organization_id=ctx.organization_id,
                entity_id=entity_id,
                field_name=field.field_name,
                field_type=field_type,
                value=stored,
                smart_code=field.smart_code,
                actor_id=ctx.actor_id,
            )

    def get_field(self, ctx: TenantContext, entity_id: str, field_name: str) -> DynamicField:
        """Get one field row.

        Raises:
            NotFoundError: If the field doesn't exist
        """
        require_context(self.db, ctx)
        field = self.db.get_dynamic_field(ctx.organization_id, entity_id, field_name)
        if field is None:
            raise NotFoundError(field_not_found(entity_id, field_name))
        return field

    def get_fields(
        self,
        ctx: TenantContext,
        entity_id: str,
        field_names: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Get field values of one entity as a name to value mapping."""
        require_context(self.db, ctx)
        self._require_entity(ctx, entity_id)
        rows = self.db.list_dynamic_fields(ctx.organization_id, entity_id, field_names=field_names)
        return {row.field_name: row.value for row in rows}

    def list_fields(self, ctx: TenantContext, entity_id: str, smart_code: Optional[str] = None) -> list[DynamicField]:
        """List field rows of one entity, including type information."""
        require_context(self.db, ctx)
        self._require_entity(ctx, entity_id)
        return self.db.list_dynamic_fields(ctx.organization_id, entity_id, smart_code=smart_code)

    def delete_field(self, ctx: TenantContext, entity_id: str, field_name: str) -> None:
        """Delete one field.

        Raises:
            NotFoundError: If the field doesn't exist
        """
        require_context(self.db, ctx, write=True)
        self.db.delete_dynamic_field(ctx.organization_id, entity_id, field_name)

    def hydrate(
        self,
        ctx: TenantContext,
        entity_ids: list[str],
        smart_code: Optional[str] = None,
        field_names: Optional[list[str]] = None,
    ) -> dict[str, dict[str, Any]]:
        """Fetch dynamic field values for many entities.

        Uses one batched query. When that query fails or returns nothing,
        falls back to reading each entity's rows and merging them without
        overwriting values already present.

        Args:
            ctx: Tenant context
            entity_ids: Entities to hydrate
            smart_code: Only include fields with this smart code
            field_names: Only include these fields

        Returns:
            Exactly one entry per requested entity ID (possibly empty)
        """
        require_context(self.db, ctx)
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            return {}

        try:
            values = self.db.aggregate_dynamic_fields(
                ctx.organization_id, ids, smart_code=smart_code, field_names=field_names
            )
        except UpstreamError as e:
            logger.warning("Batched hydration failed, scanning per entity: %s", e)
            values = {}

        if not any(values.get(entity_id) for entity_id in ids):
            values = self._scan_fields(ctx, ids, smart_code, field_names)

        return {entity_id: dict(values.get(entity_id) or {}) for entity_id in ids}

    def _scan_fields(
        self,
        ctx: TenantContext,
        entity_ids: list[str],
        smart_code: Optional[str],
        field_names: Optional[list[str]],
    ) -> dict[str, dict[str, Any]]:
        merged: dict[str, dict[str, Any]] = {}
        for entity_id in entity_ids:
            values = merged.setdefault(entity_id, {})
            rows = self.db.list_dynamic_fields(
                ctx.organization_id, entity_id, smart_code=smart_code, field_names=field_names
            )
            for row in rows:
                # first writer wins
                if row.value is None or row.field_name in values:
                    continue
                values[row.field_name] = row.value
        return merged
