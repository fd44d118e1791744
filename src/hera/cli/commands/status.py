"""Workflow status commands."""

import click

from hera.cli.error_handling import get_tenant, handle_domain_error
from hera.domain.errors import DomainError
from hera.domain.workflow import WorkflowService


@click.group()
def status_group():
    """Manage entity workflow status."""
    pass


@status_group.command("set")
@click.argument("entity_id")
@click.argument("status")
@click.option("--reason", help="Note stored with the status change")
@click.pass_context
def set_status(ctx, entity_id: str, status: str, reason: str | None):
    """Move an entity to a new status.

    Examples:
        hera status set <appointment-id> CONFIRMED
    """
    service = WorkflowService(ctx.obj["db"])
    try:
        service.assign_status(get_tenant(ctx), entity_id, status, reason=reason)
        click.echo(f"Entity {entity_id} is now {service.current_status(get_tenant(ctx), entity_id)}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@status_group.command("show")
@click.argument("entity_id")
@click.pass_context
def show_status(ctx, entity_id: str):
    """Show the current status of an entity."""
    service = WorkflowService(ctx.obj["db"])
    try:
        status = service.current_status(get_tenant(ctx), entity_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(status or "No status assigned.")


@status_group.command("history")
@click.argument("entity_id")
@click.pass_context
def status_history(ctx, entity_id: str):
    """Show every status an entity has had."""
    service = WorkflowService(ctx.obj["db"])
    try:
        history = service.status_history(get_tenant(ctx), entity_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not history:
        click.echo("No status history.")
        return
    for item in history:
        marker = "*" if item["is_active"] else " "
        click.echo(f"{marker} {item['status']:20s} {item['assigned_at'] or ''}")


def register_commands(cli):
    """Register status commands with main CLI."""
    cli.add_command(status_group, name="status")
