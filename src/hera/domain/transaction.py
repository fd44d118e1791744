"""Transaction domain service.

Transactions are business events: a header plus ordered lines, written
together in one unit of work.
"""

import dataclasses
import logging
import re
import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from hera.database.base import Database
from hera.domain.entities import (
    TenantContext,
    Transaction,
    TransactionInput,
    TransactionLine,
    TransactionLineInput,
    TransactionStatus,
    TransactionView,
)
from hera.domain.errors import (
    InvariantError,
    NotFoundError,
    ValidationError,
    entity_not_found,
    transaction_delete_blocked,
    transaction_not_found,
)
from hera.domain.field_placement import validate_metadata
from hera.domain.ledger import BALANCE_TOLERANCE, CREDIT, DEBIT, check_gl_balance, is_gl_line
from hera.domain.smart_code import validate_smart_code
from hera.domain.status import TRANSACTION_STATUS_MACHINE
from hera.domain.tenant import require_context

logger = logging.getLogger(__name__)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

# Scales of the NUMERIC(18, n) amount columns
AMOUNT_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.0001")
RATE_PLACES = Decimal("0.000001")
_MAX_DIGITS = 18


def to_decimal(value: Any, field: str) -> Decimal:
    """Convert a number or numeric string to Decimal.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number, got '{value}'")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def quantize(value: Decimal, places: Decimal, field: str) -> Decimal:
    """Round a value half-up to the scale of the column that stores it.

    Raises:
        ValidationError: If the value has more digits than the column holds
    """
    try:
        rounded = value.quantize(places, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range: {value}")
    if len(rounded.as_tuple().digits) > _MAX_DIGITS:
        raise ValidationError(f"{field} is out of range: {value}")
    return rounded


def generate_transaction_code(transaction_type: str) -> str:
    """Return a readable unique code such as SALE-1A2B3C4D."""
    prefix = re.sub(r"[^A-Z0-9]", "", transaction_type.upper())[:10] or "TXN"
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"


def expected_total(lines: list[TransactionLineInput]) -> Decimal:
    """Return the header total implied by the lines.

    For journals this is the debit total, otherwise the sum of line amounts.
    """
    gl_lines = [line for line in lines if is_gl_line(line.smart_code, line.line_data)]
    if gl_lines:
        return sum(
            (line.line_amount for line in gl_lines if str(line.line_data.get("side", "")).upper() == DEBIT),
            Decimal("0"),
        )
    return sum((line.line_amount for line in lines), Decimal("0"))


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_entity(self, ctx: TenantContext, entity_id: Optional[str]) -> None:
        if entity_id is not None and self.db.get_entity(ctx.organization_id, entity_id) is None:
            raise NotFoundError(entity_not_found(entity_id))

    def _prepare_lines(
        self, ctx: TenantContext, lines: list[TransactionLineInput]
    ) -> list[TransactionLineInput]:
        prepared = []
        seen: set[int] = set()
        for line in lines:
            if isinstance(line.line_number, bool) or not isinstance(line.line_number, int) or line.line_number < 1:
                raise ValidationError(f"Line number must be a positive integer, got '{line.line_number}'")
            if line.line_number in seen:
                raise ValidationError(f"Duplicate line number {line.line_number}")
            seen.add(line.line_number)

            if not line.line_type or not line.line_type.strip():
                raise ValidationError(f"Line {line.line_number} has no line type")
            validate_smart_code(line.smart_code, field=f"lines[{line.line_number}].smart_code")
            self._check_entity(ctx, line.entity_id)

            label = f"Line {line.line_number}"
            quantity = quantize(
                to_decimal(line.quantity, f"{label} quantity"), QUANTITY_PLACES, f"{label} quantity"
            )
            unit_amount = quantize(
                to_decimal(line.unit_amount, f"{label} unit_amount"), QUANTITY_PLACES, f"{label} unit_amount"
            )
            if line.line_amount is None:
                line_amount = quantity * unit_amount
            else:
                line_amount = to_decimal(line.line_amount, f"{label} line_amount")
            # Balance and reconciliation run on the values as stored
            line_amount = quantize(line_amount, AMOUNT_PLACES, f"{label} line_amount")
            if line.line_data is not None and not isinstance(line.line_data, dict):
                raise ValidationError(f"Line {line.line_number} line_data must be an object")

            prepared.append(
                dataclasses.replace(
                    line,
                    quantity=quantity,
                    unit_amount=unit_amount,
                    line_amount=line_amount,
                    line_data=dict(line.line_data or {}),
                )
            )
        return sorted(prepared, key=lambda line: line.line_number)

    def create_transaction(
        self,
        ctx: TenantContext,
        header: TransactionInput,
        lines: Optional[list[TransactionLineInput]] = None,
    ) -> str:
        """Create a transaction header and its lines.

        Args:
            ctx: Tenant context
            header: Header fields
            lines: Line items; line_amount defaults to quantity * unit_amount

        Returns:
            Transaction ID

        Raises:
            ValidationError: If a field or smart code is invalid, or the total
                does not reconcile with the lines
            InvariantError: If the initial status is not allowed or a journal
                is unbalanced
            NotFoundError: If a referenced entity doesn't exist
        """
        require_context(self.db, ctx, write=True)
        if not header.transaction_type or not header.transaction_type.strip():
            raise ValidationError("Transaction type is required")
        validate_smart_code(header.smart_code)

        try:
            status = TransactionStatus(header.transaction_status).value
        except ValueError:
            raise ValidationError(
                f"Unknown transaction status '{header.transaction_status}'",
                details=[f"allowed: {', '.join(s.value for s in TransactionStatus)}"],
            )
        TRANSACTION_STATUS_MACHINE.check_transition(None, status)

        metadata = validate_metadata(header.metadata)
        for code in (header.transaction_currency_code, header.base_currency_code):
            if code is not None and not _CURRENCY_CODE.match(code):
                raise ValidationError(f"Currency code must be three upper-case letters, got '{code}'")
        exchange_rate = None
        if header.exchange_rate is not None:
            exchange_rate = quantize(to_decimal(header.exchange_rate, "exchange_rate"), RATE_PLACES, "exchange_rate")
            if exchange_rate <= 0:
                raise ValidationError("exchange_rate must be positive")
        self._check_entity(ctx, header.source_entity_id)
        self._check_entity(ctx, header.target_entity_id)

        prepared = self._prepare_lines(ctx, lines or [])
        check_gl_balance(prepared, header.transaction_currency_code)

        if header.total_amount is None:
            total_amount = expected_total(prepared)
        else:
            total_amount = quantize(to_decimal(header.total_amount, "total_amount"), AMOUNT_PLACES, "total_amount")
            if prepared:
                implied = expected_total(prepared)
                if abs(total_amount - implied) >= BALANCE_TOLERANCE:
                    raise ValidationError(
                        f"Total amount {total_amount} does not reconcile with lines ({implied})",
                        details=["omit total_amount to derive it from the lines"],
                    )

        with self.db.unit_of_work():
            transaction_id = self.db.create_transaction(
                organization_id=ctx.organization_id,
                actor_id=ctx.actor_id,
                transaction_type=header.transaction_type.strip(),
                transaction_code=header.transaction_code or generate_transaction_code(header.transaction_type),
                transaction_date=header.transaction_date or date.today(),
                smart_code=header.smart_code,
                total_amount=total_amount,
                transaction_status=status,
                source_entity_id=header.source_entity_id,
                target_entity_id=header.target_entity_id,
                transaction_currency_code=header.transaction_currency_code,
                base_currency_code=header.base_currency_code,
                exchange_rate=exchange_rate,
                metadata=metadata,
            )
            for line in prepared:
                self.db.add_transaction_line(
                    organization_id=ctx.organization_id,
                    transaction_id=transaction_id,
                    actor_id=ctx.actor_id,
                    line_number=line.line_number,
                    line_type=line.line_type.strip(),
                    smart_code=line.smart_code,
                    quantity=line.quantity,
                    unit_amount=line.unit_amount,
                    line_amount=line.line_amount,
                    entity_id=line.entity_id,
                    description=line.description,
                    line_data=line.line_data,
                )

        logger.info(
            "Created %s transaction %s with %d lines", header.transaction_type, transaction_id, len(prepared)
        )
        return transaction_id

    def get_transaction(self, ctx: TenantContext, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID.

        Returns:
            Transaction or None if it doesn't exist in the organization
        """
        require_context(self.db, ctx)
        return self.db.get_transaction(ctx.organization_id, transaction_id)

    def require_transaction(self, ctx: TenantContext, transaction_id: str) -> Transaction:
        """Get transaction by ID or raise NotFoundError."""
        transaction = self.get_transaction(ctx, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def get_lines(self, ctx: TenantContext, transaction_id: str) -> list[TransactionLine]:
        """Get the lines of a transaction ordered by line number."""
        self.require_transaction(ctx, transaction_id)
        return self.db.get_transaction_lines(ctx.organization_id, transaction_id)

    def get_transaction_with_lines(self, ctx: TenantContext, transaction_id: str) -> TransactionView:
        transaction = self.require_transaction(ctx, transaction_id)
        lines = self.db.get_transaction_lines(ctx.organization_id, transaction_id)
        return TransactionView(transaction=transaction, lines=lines)

    def list_transactions(
        self,
        ctx: TenantContext,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
        source_entity_id: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_void: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions, newest first.

        Args:
            ctx: Tenant context
            transaction_type: Only this transaction type
            status: Only this status
            source_entity_id: Only transactions from this entity
            target_entity_id: Only transactions to this entity
            start_date: Earliest transaction date (inclusive)
            end_date: Latest transaction date (inclusive)
            include_void: Include voided transactions
            limit: Maximum number of results
            offset: Number of results to skip

        Raises:
            ValidationError: If the status is unknown or the date range is inverted
        """
        require_context(self.db, ctx)
        if isinstance(status, TransactionStatus):
            status = status.value
        if status is not None:
            TRANSACTION_STATUS_MACHINE.check_known(status)
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        return self.db.list_transactions(
            ctx.organization_id,
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

    def update_transaction(
        self,
        ctx: TenantContext,
        transaction_id: str,
        transaction_date: Optional[date] = None,
        transaction_code: Optional[str] = None,
        source_entity_id: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Transaction:
        """Update header fields of a draft transaction.

        Raises:
            InvariantError: If the transaction is no longer a draft
            NotFoundError: If the transaction or a referenced entity doesn't exist
        """
        require_context(self.db, ctx, write=True)
        transaction = self.require_transaction(ctx, transaction_id)
        if transaction.transaction_status is not TransactionStatus.DRAFT:
            raise InvariantError(
                f"Cannot edit transaction {transaction_id} in status '{transaction.transaction_status.value}'",
                details=["only draft transactions can be edited; void or reverse it instead"],
            )
        if transaction_code is not None and not transaction_code.strip():
            raise ValidationError("Transaction code must not be empty")
        if metadata is not None:
            metadata = validate_metadata(metadata)
        self._check_entity(ctx, source_entity_id)
        self._check_entity(ctx, target_entity_id)

        self.db.update_transaction(
            ctx.organization_id,
            transaction_id,
            actor_id=ctx.actor_id,
            transaction_date=transaction_date,
            transaction_code=transaction_code,
            source_entity_id=source_entity_id,
            target_entity_id=target_entity_id,
            metadata=metadata,
        )
        return self.db.get_transaction(ctx.organization_id, transaction_id)

    def update_status(self, ctx: TenantContext, transaction_id: str, status: str) -> Transaction:
        """Move a transaction along the status machine.

        Raises:
            ValidationError: If the status is unknown
            InvariantError: If the transition is not allowed
        """
        require_context(self.db, ctx, write=True)
        if isinstance(status, TransactionStatus):
            status = status.value
        transaction = self.require_transaction(ctx, transaction_id)
        TRANSACTION_STATUS_MACHINE.check_transition(transaction.transaction_status.value, status)
        self.db.update_transaction(
            ctx.organization_id, transaction_id, actor_id=ctx.actor_id, transaction_status=status
        )
        logger.info(
            "Transaction %s status %s -> %s", transaction_id, transaction.transaction_status.value, status
        )
        return self.db.get_transaction(ctx.organization_id, transaction_id)

    def void_transaction(self, ctx: TenantContext, transaction_id: str, reason: Optional[str] = None) -> Transaction:
        """Void a transaction, keeping its rows for the record.

        Raises:
            InvariantError: If the transaction is already void
        """
        require_context(self.db, ctx, write=True)
        transaction = self.require_transaction(ctx, transaction_id)
        TRANSACTION_STATUS_MACHINE.check_transition(
            transaction.transaction_status.value, TransactionStatus.VOID.value
        )
        metadata = dict(transaction.metadata)
        if reason:
            metadata["void_reason"] = reason
        self.db.update_transaction(
            ctx.organization_id,
            transaction_id,
            actor_id=ctx.actor_id,
            transaction_status=TransactionStatus.VOID.value,
            metadata=metadata,
        )
        logger.info("Voided transaction %s", transaction_id)
        return self.db.get_transaction(ctx.organization_id, transaction_id)

    def reverse_transaction(
        self,
        ctx: TenantContext,
        transaction_id: str,
        reason: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> str:
        """Post a compensating transaction that cancels out another one.

        GL lines swap sides; other lines and the total are negated. The two
        transactions reference each other through reversal_of/reversed_by
        metadata.

        Args:
            ctx: Tenant context
            transaction_id: Completed or posted transaction to reverse
            reason: Optional note recorded on the reversal
            transaction_date: Date of the reversal; defaults to today

        Returns:
            ID of the reversal transaction

        Raises:
            InvariantError: If the transaction is a draft, void, already
                reversed, or itself a reversal
        """
        require_context(self.db, ctx, write=True)
        original = self.require_transaction(ctx, transaction_id)
        status = original.transaction_status
        if status not in (TransactionStatus.COMPLETED, TransactionStatus.POSTED):
            raise InvariantError(
                f"Cannot reverse transaction {transaction_id} in status '{status.value}'",
                details=["only completed or posted transactions can be reversed; delete or void drafts"],
            )
        if original.metadata.get("reversed_by"):
            raise InvariantError(
                f"Transaction {transaction_id} was already reversed by {original.metadata['reversed_by']}"
            )
        if original.metadata.get("reversal_of"):
            raise InvariantError(f"Transaction {transaction_id} is itself a reversal and cannot be reversed")

        lines = self.db.get_transaction_lines(ctx.organization_id, transaction_id)
        reversed_lines = []
        has_gl = False
        for line in lines:
            line_data = dict(line.line_data)
            if is_gl_line(line.smart_code, line.line_data):
                has_gl = True
                side = str(line_data.get("side", "")).upper()
                line_data["side"] = CREDIT if side == DEBIT else DEBIT
                unit_amount, line_amount = line.unit_amount, line.line_amount
            else:
                unit_amount, line_amount = -line.unit_amount, -line.line_amount
            reversed_lines.append(
                TransactionLineInput(
                    line_number=line.line_number,
                    line_type=line.line_type,
                    smart_code=line.smart_code,
                    quantity=line.quantity,
                    unit_amount=unit_amount,
                    line_amount=line_amount,
                    entity_id=line.entity_id,
                    description=line.description,
                    line_data=line_data,
                )
            )

        metadata: dict[str, Any] = {"reversal_of": transaction_id}
        if reason:
            metadata["change_log"] = [{"event": "reversal", "reason": reason}]
        header = TransactionInput(
            transaction_type=original.transaction_type,
            smart_code=original.smart_code,
            transaction_date=transaction_date or date.today(),
            transaction_code=f"{original.transaction_code}-REV",
            total_amount=original.total_amount if has_gl else -original.total_amount,
            transaction_status=TransactionStatus.POSTED,
            source_entity_id=original.source_entity_id,
            target_entity_id=original.target_entity_id,
            transaction_currency_code=original.transaction_currency_code,
            base_currency_code=original.base_currency_code,
            exchange_rate=original.exchange_rate,
            metadata=metadata,
        )

        with self.db.unit_of_work():
            reversal_id = self.create_transaction(ctx, header, reversed_lines)
            original_metadata = dict(original.metadata)
            original_metadata["reversed_by"] = reversal_id
            self.db.update_transaction(
                ctx.organization_id, transaction_id, actor_id=ctx.actor_id, metadata=original_metadata
            )

        logger.info("Reversed transaction %s with %s", transaction_id, reversal_id)
        return reversal_id

    def delete_transaction(self, ctx: TenantContext, transaction_id: str) -> None:
        """Permanently delete an empty, zero-amount draft.

        Raises:
            InvariantError: If the transaction is not a draft, has lines, or
                has a non-zero total
            NotFoundError: If the transaction doesn't exist
        """
        require_context(self.db, ctx, write=True)
        transaction = self.require_transaction(ctx, transaction_id)
        line_count = self.db.count_transaction_lines(ctx.organization_id, transaction_id)
        status = transaction.transaction_status.value
        if status != TransactionStatus.DRAFT.value or line_count > 0 or transaction.total_amount != 0:
            raise InvariantError(
                transaction_delete_blocked(transaction_id, status, line_count, transaction.total_amount),
                details=[
                    f"status: {status}",
                    f"lines: {line_count}",
                    f"total_amount: {transaction.total_amount}",
                ],
            )
        self.db.delete_transaction(ctx.organization_id, transaction_id)
        logger.info("Deleted draft transaction %s", transaction_id)
