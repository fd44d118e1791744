"""Field placement policy.

Business data lives in dynamic fields, workflow state lives in HAS_STATUS
relationships, and free-form metadata columns only carry system bookkeeping.
"""

from dataclasses import dataclass
from typing import Any, Optional

from hera.domain.errors import ValidationError

STATUS_FIELD_NAMES = frozenset({"status", "state", "stage", "phase", "step", "lifecycle", "workflow"})
STATUS_FIELD_SUFFIXES = ("_status", "_state", "_stage", "_phase", "_lifecycle")
STATUS_FIELD_PREFIXES = ("status_", "state_", "workflow_")

# Only system/technical keys may appear in a metadata column
ALLOWED_METADATA_KEYS = frozenset(
    {
        "system_version",
        "schema_version",
        "migration_id",
        "ai_confidence",
        "ai_classification",
        "ai_tags",
        "sync_status",
        "import_source",
        "export_format",
        "audit_trail",
        "change_log",
        "system_flags",
        "category",
        "void_reason",
        "reversal_of",
        "reversed_by",
    }
)

METADATA_CATEGORIES = frozenset({"system", "audit", "integration", "ai"})

# Business data that must go to dynamic fields instead of metadata
FORBIDDEN_METADATA_KEYS = frozenset(
    {
        "status",
        "state",
        "stage",
        "phase",
        "step",
        "price",
        "cost",
        "amount",
        "value",
        "total",
        "quantity",
        "count",
        "number",
        "size",
        "email",
        "phone",
        "address",
        "notes",
        "description",
        "user_data",
        "business_data",
        "customer_data",
    }
)

STATUS_REMEDIATION = (
    "Model '{name}' as a HAS_STATUS relationship to a status entity "
    "instead of a dynamic field"
)


@dataclass(frozen=True)
class PlacementViolation:
    """A single field placement rule violation."""

    field: str
    message: str
    suggestion: str


def is_status_field_name(field_name: str) -> bool:
    """Return True if the field name carries status/lifecycle semantics."""
    name = field_name.strip().lower()
    if name in STATUS_FIELD_NAMES:
        return True
    return name.endswith(STATUS_FIELD_SUFFIXES) or name.startswith(STATUS_FIELD_PREFIXES)


def check_field_name(field_name: str) -> list[PlacementViolation]:
    """Check a dynamic field name against the placement policy."""
    violations = []
    if not field_name or not field_name.strip():
        violations.append(
            PlacementViolation(
                field=field_name,
                message="Field name must not be empty",
                suggestion="Provide a snake_case field name",
            )
        )
    elif is_status_field_name(field_name):
        violations.append(
            PlacementViolation(
                field=field_name,
                message=f"Field '{field_name}' carries status semantics and cannot be a dynamic field",
                suggestion=STATUS_REMEDIATION.format(name=field_name),
            )
        )
    return violations


def validate_dynamic_field_name(field_name: str) -> str:
    """Validate a dynamic field name.

    Raises:
        ValidationError: with a suggested remediation
    """
    violations = check_field_name(field_name)
    if violations:
        first = violations[0]
        raise ValidationError(
            first.message,
            details=[v.message for v in violations],
            suggestion=first.suggestion,
        )
    return field_name


def check_metadata(metadata: Optional[dict[str, Any]]) -> list[PlacementViolation]:
    """Check a metadata bag against the closed key set."""
    if metadata is None:
        return []
    if not isinstance(metadata, dict):
        return [
            PlacementViolation(
                field="metadata",
                message="Metadata must be a JSON object",
                suggestion="Pass a mapping of system keys",
            )
        ]

    violations = []
    for key, value in metadata.items():
        if key in FORBIDDEN_METADATA_KEYS:
            violations.append(
                PlacementViolation(
                    field=key,
                    message=f"Business field '{key}' cannot be stored in metadata",
                    suggestion=f"Move '{key}' to a dynamic field",
                )
            )
        elif key not in ALLOWED_METADATA_KEYS:
            violations.append(
                PlacementViolation(
                    field=key,
                    message=f"Unknown metadata key '{key}'",
                    suggestion=f"Store '{key}' as a dynamic field or use one of: "
                    + ", ".join(sorted(ALLOWED_METADATA_KEYS)),
                )
            )
        elif key == "category" and value not in METADATA_CATEGORIES:
            violations.append(
                PlacementViolation(
                    field=key,
                    message=f"Metadata category '{value}' is not allowed",
                    suggestion="Use one of: " + ", ".join(sorted(METADATA_CATEGORIES)),
                )
            )
    return violations


def validate_metadata(metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Validate a metadata bag and return it (empty dict for None).

    Raises:
        ValidationError: listing every offending key
    """
    violations = check_metadata(metadata)
    if violations:
        raise ValidationError(
            "Metadata violates the field placement policy",
            details=[f"{v.message}. {v.suggestion}" for v in violations],
            suggestion=violations[0].suggestion,
        )
    return dict(metadata or {})
