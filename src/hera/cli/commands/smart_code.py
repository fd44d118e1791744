"""Smart code commands."""

import click

from hera.domain.smart_code import explain_smart_code


@click.group()
def smart_code_group():
    """Work with smart codes."""
    pass


@smart_code_group.command("validate")
@click.argument("smart_codes", nargs=-1, required=True)
@click.pass_context
def validate(ctx, smart_codes: tuple[str, ...]):
    """Check smart codes against the grammar. Exits 1 if any is invalid.

    Examples:
        hera smart-code validate HERA.SALON.CUSTOMER.ENTITY.v1
    """
    invalid = 0
    for code in smart_codes:
        reasons = explain_smart_code(code)
        if not reasons:
            click.echo(f"{code}: valid")
            continue
        invalid += 1
        click.echo(f"{code}: invalid", err=True)
        for reason in reasons:
            click.echo(f"  - {reason}", err=True)
    if invalid:
        ctx.exit(1)


def register_commands(cli):
    """Register smart code commands with main CLI."""
    cli.add_command(smart_code_group, name="smart-code")
