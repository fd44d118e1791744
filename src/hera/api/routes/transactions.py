"""Transaction endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hera.api.dependencies import get_tenant, get_transaction_service
from hera.api.responses import ok, ok_items
from hera.api.schemas import (
    ReverseRequest,
    TransactionCreateRequest,
    TransactionStatusRequest,
    TransactionUpdateRequest,
    VoidRequest,
)
from hera.domain.entities import TenantContext
from hera.domain.transaction import TransactionService

router = APIRouter()


@router.post("", status_code=201)
def create_transaction(
    request: TransactionCreateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Create a transaction header and its lines in one write."""
    transaction_id = service.create_transaction(
        ctx, request.to_input(), [line.to_input() for line in request.lines]
    )
    return ok(service.get_transaction_with_lines(ctx, transaction_id))


@router.get("")
def list_transactions(
    transaction_type: Optional[str] = None,
    status: Optional[str] = None,
    source_entity_id: Optional[str] = None,
    target_entity_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    include_void: bool = True,
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    transactions = service.list_transactions(
        ctx,
        transaction_type=transaction_type,
        status=status,
        source_entity_id=source_entity_id,
        target_entity_id=target_entity_id,
        start_date=start_date,
        end_date=end_date,
        include_void=include_void,
        limit=limit,
        offset=offset,
    )
    return ok_items(transactions)


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    return ok(service.get_transaction_with_lines(ctx, transaction_id))


@router.patch("/{transaction_id}")
def update_transaction(
    transaction_id: str,
    request: TransactionUpdateRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Edit header fields of a draft."""
    transaction = service.update_transaction(
        ctx,
        transaction_id,
        transaction_date=request.transaction_date,
        transaction_code=request.transaction_code,
        source_entity_id=request.source_entity_id,
        target_entity_id=request.target_entity_id,
        metadata=request.metadata,
    )
    return ok(transaction)


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Hard-delete an empty, zero-amount draft."""
    service.delete_transaction(ctx, transaction_id)
    return ok({"transaction_id": transaction_id, "deleted": True})


@router.post("/{transaction_id}/status")
def update_status(
    transaction_id: str,
    request: TransactionStatusRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    return ok(service.update_status(ctx, transaction_id, request.status))


@router.post("/{transaction_id}/void")
def void_transaction(
    transaction_id: str,
    request: VoidRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    return ok(service.void_transaction(ctx, transaction_id, reason=request.reason))


@router.post("/{transaction_id}/reverse", status_code=201)
def reverse_transaction(
    transaction_id: str,
    request: ReverseRequest,
    ctx: TenantContext = Depends(get_tenant),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Post a compensating transaction."""
    reversal_id = service.reverse_transaction(
        ctx,
        transaction_id,
        reason=request.reason,
        transaction_date=request.transaction_date,
    )
    return ok(service.get_transaction_with_lines(ctx, reversal_id))
