"""Organization management commands."""

import click

from hera.cli.error_handling import handle_domain_error
from hera.domain.errors import DomainError
from hera.domain.organization import OrganizationService


@click.group()
def organization_group():
    """Manage organizations (tenants)."""
    pass


@organization_group.command("create")
@click.argument("name", metavar="ORGANIZATION_NAME")
@click.argument("code", metavar="ORGANIZATION_CODE")
@click.pass_context
def create_organization(ctx, name: str, code: str):
    """Create a new organization.

    Examples:
        hera org create "Hair Talkz Salon" SALON-HT
    """
    service = OrganizationService(ctx.obj["db"])
    try:
        organization_id = service.create_organization(name=name, code=code, actor_id=ctx.obj["tenant"].actor_id)
        click.echo(f"Created organization '{name}' (ID: {organization_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@organization_group.command("list")
@click.pass_context
def list_organizations(ctx):
    """List all organizations."""
    service = OrganizationService(ctx.obj["db"])

    organizations = service.list_organizations()
    if not organizations:
        click.echo("No organizations found.")
        return

    click.echo("\nOrganizations:")
    click.echo("-" * 80)
    for org in organizations:
        click.echo(f"{org.id} | {org.organization_code:15s} | {org.organization_name}")


@organization_group.command("show")
@click.argument("organization_id")
@click.pass_context
def show_organization(ctx, organization_id: str):
    """Show one organization."""
    service = OrganizationService(ctx.obj["db"])
    try:
        org = service.require_organization(organization_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"ID:      {org.id}")
    click.echo(f"Name:    {org.organization_name}")
    click.echo(f"Code:    {org.organization_code}")
    click.echo(f"Status:  {org.status}")
    click.echo(f"Created: {org.created_at:%Y-%m-%d %H:%M}")


def register_commands(cli):
    """Register organization commands with main CLI."""
    cli.add_command(organization_group, name="org")
