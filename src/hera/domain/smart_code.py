"""Classification code ("smart code") validation.

A smart code tags every persisted row with its business meaning, for example
``HERA.SALON.CUSTOMER.ENTITY.v1``. The grammar is fixed:

- the root token ``HERA``
- a module segment of 3-15 characters
- 2-7 further segments of 2-30 characters (3-8 segments in total)
- a lowercase ``v`` followed by digits

Segments only contain ``[A-Z0-9_]``.
"""

import re

from hera.domain.errors import ValidationError, invalid_smart_code

SMART_CODE_ROOT = "HERA"
SMART_CODE_PATTERN = re.compile(r"^HERA\.[A-Z0-9_]{3,15}(\.[A-Z0-9_]{2,30}){2,7}\.v[0-9]+$")

_SEGMENT_CHARS = re.compile(r"^[A-Z0-9_]+$")
_VERSION = re.compile(r"^v[0-9]+$")


def is_valid_smart_code(smart_code: object) -> bool:
    """Return True if the value is a well-formed smart code."""
    if not isinstance(smart_code, str):
        return False
    return SMART_CODE_PATTERN.match(smart_code) is not None


def explain_smart_code(smart_code: object) -> list[str]:
    """List the reasons a smart code is rejected.

    Returns an empty list for valid codes.
    """
    if not isinstance(smart_code, str) or not smart_code:
        return ["smart code must be a non-empty string"]
    if is_valid_smart_code(smart_code):
        return []

    reasons = []
    parts = smart_code.split(".")
    if parts[0] != SMART_CODE_ROOT:
        if parts[0].upper() == SMART_CODE_ROOT:
            reasons.append(f"root token must be uppercase '{SMART_CODE_ROOT}'")
        else:
            reasons.append(f"must start with '{SMART_CODE_ROOT}.'")

    version = parts[-1] if len(parts) > 1 else ""
    if not _VERSION.match(version):
        if re.match(r"^V[0-9]+$", version):
            reasons.append("version suffix must use lowercase 'v' (e.g. '.v1')")
        else:
            reasons.append("missing or malformed version suffix (expected '.v<digits>')")
        middle = parts[1:]
    else:
        middle = parts[1:-1]

    if any(segment == "" for segment in parts):
        reasons.append("empty segment")

    for segment in middle:
        if not segment:
            continue
        if segment != segment.upper() and _SEGMENT_CHARS.match(segment.upper()):
            reasons.append(f"segment '{segment}' must be uppercase")
        elif not _SEGMENT_CHARS.match(segment):
            reasons.append(f"segment '{segment}' contains characters outside [A-Z0-9_]")

    if not 3 <= len(middle) <= 8:
        reasons.append(f"expected 3 to 8 segments between root and version, got {len(middle)}")
    elif middle and middle[0] and not 3 <= len(middle[0]) <= 15:
        reasons.append(f"module segment '{middle[0]}' must be 3-15 characters")
    else:
        for segment in middle[1:]:
            if segment and not 2 <= len(segment) <= 30:
                reasons.append(f"segment '{segment}' must be 2-30 characters")

    if not reasons:
        reasons.append("does not match the smart code grammar")
    return reasons


def validate_smart_code(smart_code: object, field: str = "smart_code") -> str:
    """Validate a smart code and return it.

    Raises:
        ValidationError: naming the offending code and listing the reasons
    """
    reasons = explain_smart_code(smart_code)
    if reasons:
        raise ValidationError(
            invalid_smart_code(str(smart_code)),
            details=[f"{field}: {reason}" for reason in reasons],
        )
    return smart_code  # type: ignore[return-value]
