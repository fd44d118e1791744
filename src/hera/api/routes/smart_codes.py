"""Smart code validation endpoint."""

from fastapi import APIRouter

from hera.api.responses import ok
from hera.api.schemas import SmartCodeRequest
from hera.domain.smart_code import explain_smart_code

router = APIRouter()


@router.post("/validate")
def validate(request: SmartCodeRequest) -> dict:
    """Check a smart code against the grammar without storing anything."""
    reasons = explain_smart_code(request.smart_code)
    return ok({"smart_code": request.smart_code, "valid": not reasons, "reasons": reasons})
