"""CLI error handling helpers."""

import click

from hera.domain.entities import TenantContext
from hera.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    for detail in getattr(error, "details", None) or []:
        click.echo(f"  - {detail}", err=True)
    suggestion = getattr(error, "suggestion", None)
    if suggestion:
        click.echo(f"Suggestion: {suggestion}", err=True)
    ctx.exit(1)


def get_tenant(ctx: click.Context) -> TenantContext:
    """Return the tenant context set up by the main command group."""
    return ctx.obj["tenant"]
