"""Relationship commands."""

import click

from hera.cli.error_handling import get_tenant, handle_domain_error
from hera.domain.errors import DomainError
from hera.domain.relationship import RelationshipService


@click.group()
def relationship_group():
    """Link entities to entities and organizations."""
    pass


@relationship_group.command("create")
@click.argument("from_entity_id")
@click.argument("target_id")
@click.argument("relationship_type")
@click.option("--smart-code", required=True, help="Smart code of the relationship")
@click.option("--to-org", is_flag=True, help="TARGET_ID is an organization instead of an entity")
@click.pass_context
def create_link(ctx, from_entity_id: str, target_id: str, relationship_type: str, smart_code: str, to_org: bool):
    """Link FROM_ENTITY_ID to TARGET_ID. Linking twice keeps a single link.

    Examples:
        hera link create <customer-id> <stylist-id> PREFERRED_STYLIST --smart-code HERA.SALON.CUSTOMER.REL.v1
        hera link create <user-id> <org-id> MEMBER_OF --to-org --smart-code HERA.SYSTEM.USER.MEMBERSHIP.v1
    """
    service = RelationshipService(ctx.obj["db"])
    tenant = get_tenant(ctx)
    try:
        if to_org:
            rel = service.ensure_membership(tenant, from_entity_id, target_id, relationship_type, smart_code)
        else:
            rel = service.ensure_link(tenant, from_entity_id, target_id, relationship_type, smart_code)
        click.echo(f"Linked {rel.relationship_type} (ID: {rel.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@relationship_group.command("list")
@click.option("--from", "from_entity_id", help="Only links from this entity")
@click.option("--to", "to_entity_id", help="Only links to this entity")
@click.option("--type", "relationship_type", help="Only links of this type")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive links")
@click.pass_context
def list_links(ctx, from_entity_id: str | None, to_entity_id: str | None, relationship_type: str | None,
               include_inactive: bool):
    """List relationships."""
    service = RelationshipService(ctx.obj["db"])
    try:
        rels = service.list_relationships(
            get_tenant(ctx),
            from_entity_id=from_entity_id,
            to_entity_id=to_entity_id,
            relationship_type=relationship_type,
            include_inactive=include_inactive,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not rels:
        click.echo("No relationships found.")
        return
    for rel in rels:
        target = rel.to_entity_id or f"org:{rel.to_organization_id}"
        state = "" if rel.is_active else " [inactive]"
        click.echo(f"{rel.id} | {rel.from_entity_id} -{rel.relationship_type}-> {target}{state}")


@relationship_group.command("remove")
@click.argument("relationship_id")
@click.option("--purge", is_flag=True, help="Delete permanently instead of deactivating")
@click.pass_context
def remove_link(ctx, relationship_id: str, purge: bool):
    """Remove a relationship (deactivates it unless --purge is given)."""
    service = RelationshipService(ctx.obj["db"])
    try:
        service.unlink(get_tenant(ctx), relationship_id, purge=purge)
        click.echo(f"{'Deleted' if purge else 'Deactivated'} relationship {relationship_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register relationship commands with main CLI."""
    cli.add_command(relationship_group, name="link")
