"""Response envelope helpers.

Success: {"success": true, "data": ...} or, for lists,
{"success": true, "items": [...], "count": n}.
Failure: {"success": false, "error": "...", "details": [...]}.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": jsonable_encoder(data)}


def ok_items(items: list[Any]) -> dict[str, Any]:
    return {"success": True, "items": jsonable_encoder(items), "count": len(items)}


def error_body(
    message: str,
    details: Optional[list[str]] = None,
    suggestion: Optional[str] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if details:
        body["details"] = details
    if suggestion:
        body["suggestion"] = suggestion
    return body
