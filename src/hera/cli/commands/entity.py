"""Entity management commands."""

from decimal import Decimal

import click

from hera.cli.error_handling import get_tenant, handle_domain_error
from hera.domain.entities import DynamicFieldInput, FieldType
from hera.domain.entity import EntityService
from hera.domain.errors import DomainError, ValidationError


def parse_field_option(text: str) -> tuple[str, FieldType | None, str]:
    """Parse NAME=VALUE or NAME:TYPE=VALUE.

    Examples:
        "phone=+971501234001" -> ("phone", None, "+971501234001")
        "loyalty_points:number=750" -> ("loyalty_points", FieldType.NUMBER, "750")
    """
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise ValidationError(f"Invalid field '{text}'", details=["use NAME=VALUE or NAME:TYPE=VALUE"])
    name, _, type_name = key.strip().partition(":")
    field_type = None
    if type_name:
        try:
            field_type = FieldType(type_name.lower())
        except ValueError:
            raise ValidationError(
                f"Unknown field type '{type_name}'",
                details=[f"allowed: {', '.join(t.value for t in FieldType)}"],
            )
    return name, field_type, value


def format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


@click.group()
def entity_group():
    """Manage entities."""
    pass


@entity_group.command("create")
@click.argument("entity_type")
@click.argument("name", metavar="ENTITY_NAME")
@click.option("--smart-code", required=True, help="Smart code, e.g. HERA.SALON.CUSTOMER.ENTITY.v1")
@click.option("--code", "entity_code", help="Entity code (unique per organization and type)")
@click.option("--field", "fields", multiple=True, help="Dynamic field as NAME=VALUE or NAME:TYPE=VALUE")
@click.option("--field-smart-code", help="Smart code for the dynamic fields (defaults to --smart-code)")
@click.pass_context
def create_entity(ctx, entity_type: str, name: str, smart_code: str, entity_code: str | None,
                  fields: tuple[str, ...], field_smart_code: str | None):
    """Create an entity with optional dynamic fields.

    Examples:
        hera entity create customer "Sara Ali" --smart-code HERA.SALON.CUSTOMER.ENTITY.v1 \\
            --field phone=+971501234001 --field loyalty_points:number=750
    """
    service = EntityService(ctx.obj["db"])
    try:
        field_inputs = []
        for text in fields:
            field_name, field_type, value = parse_field_option(text)
            field_inputs.append(
                DynamicFieldInput(field_name, value, field_smart_code or smart_code, field_type)
            )
        entity_id = service.create_entity(
            get_tenant(ctx),
            entity_type=entity_type,
            entity_name=name,
            smart_code=smart_code,
            entity_code=entity_code,
            fields=field_inputs,
        )
        click.echo(f"Created {entity_type} '{name}' (ID: {entity_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entity_group.command("list")
@click.option("--type", "entity_type", help="Only entities of this type")
@click.option("--status", type=click.Choice(["active", "archived"]), help="Only entities with this status")
@click.option("--smart-code", help="Only entities with this smart code")
@click.option("--limit", type=int, help="Maximum number of entities to show")
@click.pass_context
def list_entities(ctx, entity_type: str | None, status: str | None, smart_code: str | None, limit: int | None):
    """List entities of the organization."""
    service = EntityService(ctx.obj["db"])
    try:
        entities = service.list_entities(
            get_tenant(ctx), entity_type=entity_type, status=status, smart_code=smart_code, limit=limit
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not entities:
        click.echo("No entities found.")
        return

    click.echo(f"\n{'ID':36s}  {'Type':12s}  {'Code':12s}  {'Status':8s}  Name")
    click.echo("-" * 100)
    for entity in entities:
        click.echo(
            f"{entity.id:36s}  {entity.entity_type[:12]:12s}  {(entity.entity_code or '')[:12]:12s}  "
            f"{entity.status:8s}  {entity.entity_name}"
        )
    click.echo(f"\n{len(entities)} entit{'y' if len(entities) == 1 else 'ies'}")


@entity_group.command("show")
@click.argument("entity_id")
@click.pass_context
def show_entity(ctx, entity_id: str):
    """Show an entity with its fields, relationships and status."""
    service = EntityService(ctx.obj["db"])
    try:
        view = service.read_entity(get_tenant(ctx), entity_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    entity = view.entity
    click.echo(f"ID:         {entity.id}")
    click.echo(f"Type:       {entity.entity_type}")
    click.echo(f"Name:       {entity.entity_name}")
    click.echo(f"Code:       {entity.entity_code or '-'}")
    click.echo(f"Smart code: {entity.smart_code}")
    click.echo(f"Status:     {entity.status}")
    click.echo(f"Workflow:   {view.status or '-'}")

    if view.fields:
        click.echo("\nFields:")
        for field_name in sorted(view.fields):
            click.echo(f"  {field_name}: {format_value(view.fields[field_name])}")

    if view.relationships:
        click.echo("\nRelationships:")
        for rel in view.relationships:
            target = rel.to_entity_id or f"org:{rel.to_organization_id}"
            click.echo(f"  {rel.relationship_type} -> {target} ({rel.id})")


@entity_group.command("update")
@click.argument("entity_id")
@click.option("--name", help="New entity name")
@click.option("--code", "entity_code", help="New entity code")
@click.option("--smart-code", help="New smart code")
@click.pass_context
def update_entity(ctx, entity_id: str, name: str | None, entity_code: str | None, smart_code: str | None):
    """Update an entity. Only the provided options are changed."""
    service = EntityService(ctx.obj["db"])
    try:
        service.update_entity(
            get_tenant(ctx), entity_id, entity_name=name, entity_code=entity_code, smart_code=smart_code
        )
        click.echo(f"Updated entity {entity_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entity_group.command("archive")
@click.argument("entity_id")
@click.pass_context
def archive_entity(ctx, entity_id: str):
    """Archive an entity (soft delete)."""
    service = EntityService(ctx.obj["db"])
    try:
        service.archive_entity(get_tenant(ctx), entity_id)
        click.echo(f"Archived entity {entity_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entity_group.command("restore")
@click.argument("entity_id")
@click.pass_context
def restore_entity(ctx, entity_id: str):
    """Restore an archived entity."""
    service = EntityService(ctx.obj["db"])
    try:
        service.restore_entity(get_tenant(ctx), entity_id)
        click.echo(f"Restored entity {entity_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register entity commands with main CLI."""
    cli.add_command(entity_group, name="entity")
