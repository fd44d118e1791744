"""Main CLI entry point."""

import dataclasses

import click

from hera.config import Settings
from hera.database.factories import create_database
from hera.domain.entities import TenantContext
from hera.logging_config import configure_logging

# Import and register all commands at module level
from hera.cli.commands import (
    entity,
    field,
    organization,
    relationship,
    serve,
    smart_code,
    status,
    transaction,
)


@click.group()
@click.option(
    "--database-url",
    help="SQLAlchemy database URL (overrides HERA_DATABASE_URL environment variable)",
    envvar="HERA_DATABASE_URL",
)
@click.option(
    "--org",
    "organization_id",
    help="Organization ID to act in (overrides HERA_ORGANIZATION_ID environment variable)",
    envvar="HERA_ORGANIZATION_ID",
)
@click.option("--actor", "actor_id", help="ID of the acting user", envvar="HERA_ACTOR_ID")
@click.option("--verbose", "-v", is_flag=True, help="Log informational messages")
@click.pass_context
def cli(ctx, database_url: str | None, organization_id: str | None, actor_id: str | None, verbose: bool):
    """HERA - universal business data layer.

    Store organizations, entities, dynamic fields, relationships and
    transactions in six generic tables.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return
    if database_url:
        settings = dataclasses.replace(settings, database_url=database_url)

    configure_logging(settings.log_level if verbose else "WARNING", settings.log_format)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(settings)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.obj["tenant"] = TenantContext(
            organization_id=organization_id or settings.default_organization_id,
            actor_id=actor_id,
        )


# Register all commands
organization.register_commands(cli)
entity.register_commands(cli)
field.register_commands(cli)
relationship.register_commands(cli)
status.register_commands(cli)
transaction.register_commands(cli)
smart_code.register_commands(cli)
serve.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
