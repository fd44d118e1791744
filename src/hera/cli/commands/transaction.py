"""Transaction commands."""

import json
from decimal import Decimal, InvalidOperation

import click

from hera.cli.date_filters import resolve_cli_date_range
from hera.cli.error_handling import get_tenant, handle_domain_error
from hera.domain.entities import TransactionInput, TransactionLineInput, TransactionStatus
from hera.domain.errors import DomainError
from hera.domain.transaction import TransactionService
from hera.utils.amount_parser import parse_amount, split_currency
from hera.utils.date_parser import parse_date

_STATUSES = [status.value for status in TransactionStatus]


def parse_line_option(line_number: int, spec: str) -> TransactionLineInput:
    """Parse a --line option of the form line_type:smart_code:amount[:side].

    Examples:
        service:HERA.SALON.SERVICE.LINE.v1:150
        gl:HERA.FIN.GL.LINE.v1:100:DR
    """
    parts = spec.split(":")
    if len(parts) not in (3, 4):
        raise ValueError(f"Invalid line '{spec}'. Expected line_type:smart_code:amount[:side]")
    line_type, smart_code, amount_str = (part.strip() for part in parts[:3])
    amount = parse_amount(amount_str)
    line_data = {}
    if len(parts) == 4:
        line_data["side"] = parts[3].strip().upper()
    return TransactionLineInput(
        line_number=line_number,
        line_type=line_type,
        smart_code=smart_code,
        quantity=Decimal("1"),
        unit_amount=amount,
        line_amount=amount,
        line_data=line_data,
    )


def load_lines_file(path: str, first_line_number: int = 1) -> list[TransactionLineInput]:
    """Load lines from a JSON file holding a list of line objects."""
    with open(path, "r", encoding="utf-8") as f:
        items = json.load(f)
    if not isinstance(items, list):
        raise ValueError(f"{path} must contain a JSON list of lines")

    lines = []
    for offset, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Line {offset + 1} in {path} must be an object")
        data = dict(item)
        data.setdefault("line_number", first_line_number + offset)
        for key in ("quantity", "unit_amount", "line_amount"):
            if data.get(key) is not None:
                try:
                    data[key] = Decimal(str(data[key]))
                except InvalidOperation:
                    raise ValueError(f"Line {offset + 1} in {path}: invalid {key} '{data[key]}'")
        try:
            lines.append(TransactionLineInput(**data))
        except TypeError as e:
            raise ValueError(f"Line {offset + 1} in {path}: {e}")
    return lines


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("create")
@click.option("--type", "transaction_type", required=True, help="Transaction type (e.g., sale, journal_entry)")
@click.option("--smart-code", required=True, help="Smart code of the transaction")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or relative like 'today'); defaults to today")
@click.option("--code", "transaction_code", help="Transaction code; generated when omitted")
@click.option("--total", help="Total amount (e.g., 150.00 or 'AED 150.00'); derived from lines when omitted")
@click.option("--status", type=click.Choice(_STATUSES), default="draft", show_default=True)
@click.option("--source", "source_entity_id", help="Source entity ID")
@click.option("--target", "target_entity_id", help="Target entity ID")
@click.option("--currency", help="Transaction currency (ISO 4217)")
@click.option("--line", "line_specs", multiple=True, help="line_type:smart_code:amount[:side] (repeatable)")
@click.option("--lines-json", type=click.Path(exists=True, dir_okay=False), help="JSON file with a list of lines")
@click.pass_context
def create_transaction(
    ctx,
    transaction_type: str,
    smart_code: str,
    txn_date: str | None,
    transaction_code: str | None,
    total: str | None,
    status: str,
    source_entity_id: str | None,
    target_entity_id: str | None,
    currency: str | None,
    line_specs: tuple[str, ...],
    lines_json: str | None,
):
    """Create a transaction with its lines.

    Examples:
        hera txn create --type sale --smart-code HERA.SALON.POS.SALE.v1 --line service:HERA.SALON.SERVICE.LINE.v1:150
        hera txn create --type journal_entry --smart-code HERA.FIN.GL.JOURNAL.v1 \\
            --line gl:HERA.FIN.GL.LINE.v1:100:DR --line gl:HERA.FIN.GL.LINE.v1:100:CR --status posted
    """
    try:
        transaction_date = parse_date(txn_date) if txn_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
        return

    total_amount = None
    if total is not None:
        try:
            amount_text, total_currency = split_currency(total)
            total_amount = parse_amount(amount_text)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)
            return
        currency = currency or total_currency

    try:
        lines = [parse_line_option(number, spec) for number, spec in enumerate(line_specs, start=1)]
        if lines_json:
            lines.extend(load_lines_file(lines_json, first_line_number=len(lines) + 1))
    except (ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    header = TransactionInput(
        transaction_type=transaction_type,
        smart_code=smart_code,
        transaction_date=transaction_date,
        transaction_code=transaction_code,
        total_amount=total_amount,
        transaction_status=TransactionStatus(status),
        source_entity_id=source_entity_id,
        target_entity_id=target_entity_id,
        transaction_currency_code=currency.upper() if currency else None,
    )
    service = TransactionService(ctx.obj["db"])
    try:
        transaction_id = service.create_transaction(get_tenant(ctx), header, lines)
        transaction = service.require_transaction(get_tenant(ctx), transaction_id)
        click.echo(
            f"Created transaction {transaction.transaction_code} (ID: {transaction_id}) "
            f"total {transaction.total_amount:,.2f}"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--type", "transaction_type", help="Only this transaction type")
@click.option("--status", type=click.Choice(_STATUSES), help="Only this status")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--period", help="Named period such as this-month or last-quarter")
@click.option("--no-void", is_flag=True, help="Hide voided transactions")
@click.pass_context
def list_transactions(
    ctx,
    transaction_type: str | None,
    status: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    no_void: bool,
):
    """List transactions, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    service = TransactionService(ctx.obj["db"])
    try:
        transactions = service.list_transactions(
            get_tenant(ctx),
            transaction_type=transaction_type,
            status=status,
            start_date=start,
            end_date=end,
            include_void=not no_void,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'Date':<12} {'Code':<20} {'Type':<18} {'Status':<10} {'Total':>14}  ID")
    click.echo("-" * 100)
    for txn in transactions:
        total = f"{txn.total_amount:,.2f}"
        if txn.transaction_currency_code:
            total = f"{total} {txn.transaction_currency_code}"
        click.echo(
            f"{txn.transaction_date.isoformat():<12} {txn.transaction_code:<20} {txn.transaction_type:<18} "
            f"{txn.transaction_status.value:<10} {total:>14}  {txn.id}"
        )


@transaction_group.command("show")
@click.argument("transaction_id")
@click.pass_context
def show_transaction(ctx, transaction_id: str):
    """Show a transaction with its lines."""
    service = TransactionService(ctx.obj["db"])
    try:
        view = service.get_transaction_with_lines(get_tenant(ctx), transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    txn = view.transaction
    click.echo(f"Transaction {txn.transaction_code} (ID: {txn.id})")
    click.echo(f"  Type: {txn.transaction_type}")
    click.echo(f"  Smart code: {txn.smart_code}")
    click.echo(f"  Date: {txn.transaction_date.isoformat()}")
    click.echo(f"  Status: {txn.transaction_status.value}")
    click.echo(f"  Total: {txn.total_amount:,.2f} {txn.transaction_currency_code or ''}".rstrip())
    if txn.source_entity_id:
        click.echo(f"  Source: {txn.source_entity_id}")
    if txn.target_entity_id:
        click.echo(f"  Target: {txn.target_entity_id}")
    for key, value in sorted(txn.metadata.items()):
        click.echo(f"  {key}: {value}")

    if view.lines:
        click.echo("  Lines:")
    for line in view.lines:
        side = line.line_data.get("side")
        side_text = f" {side}" if side else ""
        click.echo(
            f"    {line.line_number:>3}. {line.line_type:<12} {line.quantity} x {line.unit_amount} "
            f"= {line.line_amount:,.2f}{side_text}  [{line.smart_code}]"
        )


@transaction_group.command("status")
@click.argument("transaction_id")
@click.argument("status", type=click.Choice(_STATUSES))
@click.pass_context
def set_status(ctx, transaction_id: str, status: str):
    """Move a transaction to a new status."""
    service = TransactionService(ctx.obj["db"])
    try:
        txn = service.update_status(get_tenant(ctx), transaction_id, status)
        click.echo(f"Transaction {txn.transaction_code} is now {txn.transaction_status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("void")
@click.argument("transaction_id")
@click.option("--reason", help="Why the transaction is voided")
@click.pass_context
def void_transaction(ctx, transaction_id: str, reason: str | None):
    """Void a transaction."""
    service = TransactionService(ctx.obj["db"])
    try:
        txn = service.void_transaction(get_tenant(ctx), transaction_id, reason=reason)
        click.echo(f"Voided transaction {txn.transaction_code}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("reverse")
@click.argument("transaction_id")
@click.option("--reason", help="Why the transaction is reversed")
@click.option("--date", "txn_date", help="Date of the reversal; defaults to today")
@click.pass_context
def reverse_transaction(ctx, transaction_id: str, reason: str | None, txn_date: str | None):
    """Post a reversal of a completed or posted transaction."""
    try:
        reversal_date = parse_date(txn_date) if txn_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
        return

    service = TransactionService(ctx.obj["db"])
    try:
        reversal_id = service.reverse_transaction(
            get_tenant(ctx), transaction_id, reason=reason, transaction_date=reversal_date
        )
        reversal = service.require_transaction(get_tenant(ctx), reversal_id)
        click.echo(f"Posted reversal {reversal.transaction_code} (ID: {reversal_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool):
    """Delete an empty draft transaction."""
    if not yes:
        click.confirm(f"Delete transaction {transaction_id}?", abort=True)
    service = TransactionService(ctx.obj["db"])
    try:
        service.delete_transaction(get_tenant(ctx), transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
