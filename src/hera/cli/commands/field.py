"""Dynamic field commands."""

import click

from hera.cli.commands.entity import format_value
from hera.cli.error_handling import get_tenant, handle_domain_error
from hera.domain.dynamic_data import DynamicDataService
from hera.domain.entities import FieldType
from hera.domain.errors import DomainError


@click.group()
def field_group():
    """Manage dynamic fields of entities."""
    pass


@field_group.command("set")
@click.argument("entity_id")
@click.argument("field_name")
@click.argument("value")
@click.option("--smart-code", required=True, help="Smart code of the field")
@click.option(
    "--type",
    "field_type",
    type=click.Choice([t.value for t in FieldType]),
    default="text",
    show_default=True,
    help="Field value type",
)
@click.pass_context
def set_field(ctx, entity_id: str, field_name: str, value: str, smart_code: str, field_type: str):
    """Create or overwrite a dynamic field.

    Examples:
        hera field set <entity-id> loyalty_points 750 --type number --smart-code HERA.SALON.CUSTOMER.FIELD.v1
    """
    service = DynamicDataService(ctx.obj["db"])
    try:
        field = service.set_field(
            get_tenant(ctx), entity_id, field_name, value, smart_code=smart_code, field_type=FieldType(field_type)
        )
        click.echo(f"Set {field.field_name} = {format_value(field.value)} ({field.field_type.value})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@field_group.command("get")
@click.argument("entity_id")
@click.argument("field_names", nargs=-1)
@click.pass_context
def get_fields(ctx, entity_id: str, field_names: tuple[str, ...]):
    """Show dynamic fields of an entity (all of them when no names are given)."""
    service = DynamicDataService(ctx.obj["db"])
    try:
        fields = service.list_fields(get_tenant(ctx), entity_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if field_names:
        fields = [field for field in fields if field.field_name in field_names]
    if not fields:
        click.echo("No fields found.")
        return
    for field in fields:
        click.echo(f"{field.field_name} ({field.field_type.value}): {format_value(field.value)}")


@field_group.command("delete")
@click.argument("entity_id")
@click.argument("field_name")
@click.pass_context
def delete_field(ctx, entity_id: str, field_name: str):
    """Delete a dynamic field."""
    service = DynamicDataService(ctx.obj["db"])
    try:
        service.delete_field(get_tenant(ctx), entity_id, field_name)
        click.echo(f"Deleted field {field_name}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@field_group.command("hydrate")
@click.argument("entity_ids", nargs=-1, required=True)
@click.option("--field", "field_names", multiple=True, help="Only include this field (repeatable)")
@click.option("--smart-code", help="Only include fields with this smart code")
@click.pass_context
def hydrate(ctx, entity_ids: tuple[str, ...], field_names: tuple[str, ...], smart_code: str | None):
    """Show field values of several entities at once."""
    service = DynamicDataService(ctx.obj["db"])
    try:
        values = service.hydrate(
            get_tenant(ctx), list(entity_ids), smart_code=smart_code, field_names=list(field_names) or None
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for entity_id, fields in values.items():
        rendered = ", ".join(f"{name}={format_value(value)}" for name, value in sorted(fields.items()))
        click.echo(f"{entity_id}: {rendered or '(no fields)'}")


def register_commands(cli):
    """Register field commands with main CLI."""
    cli.add_command(field_group, name="field")
