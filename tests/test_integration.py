"""Integration tests for end-to-end CLI workflows."""

import json
import re

import pytest

from hera.cli.commands.transaction import load_lines_file, parse_line_option
from hera.cli.main import cli

ID_PATTERN = re.compile(r"\(ID: ([^)]+)\)")


def _id_from(output: str) -> str:
    match = ID_PATTERN.search(output)
    assert match is not None, output
    return match.group(1)


@pytest.fixture
def run(cli_runner, database_url, ctx):
    """Invoke the CLI against the temporary database in the sample organization."""

    def invoke(*args, **kwargs):
        base = ["--database-url", database_url, "--org", ctx.organization_id, "--actor", ctx.actor_id]
        return cli_runner.invoke(cli, base + list(args), **kwargs)

    return invoke


def test_help_does_not_touch_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "txn" in result.output
    assert "smart-code" in result.output


def test_organization_commands(cli_runner, database_url, actor_id):
    result = cli_runner.invoke(
        cli, ["--database-url", database_url, "--actor", actor_id, "org", "create", "Hair Talkz Salon", "SALON-HT"]
    )
    assert result.exit_code == 0
    organization_id = _id_from(result.output)

    result = cli_runner.invoke(cli, ["--database-url", database_url, "org", "list"])
    assert "SALON-HT" in result.output

    result = cli_runner.invoke(cli, ["--database-url", database_url, "org", "show", organization_id])
    assert "Hair Talkz Salon" in result.output

    result = cli_runner.invoke(cli, ["--database-url", database_url, "org", "create", "Copy", "SALON-HT"])
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_full_workflow(run, tmp_path):
    """Test complete workflow: customer -> fields -> stylist link -> status -> sale -> reversal."""
    # Step 1: Create customer with fields
    result = run(
        "entity", "create", "customer", "Sara Ali",
        "--smart-code", "HERA.SALON.CUSTOMER.ENTITY.v1",
        "--code", "CUST-001",
        "--field", "phone=+971501234001",
        "--field", "loyalty_points:number=750",
    )
    assert result.exit_code == 0, result.output
    customer_id = _id_from(result.output)

    # Step 2: Create stylist and link it
    result = run("entity", "create", "staff", "Rocky", "--smart-code", "HERA.SALON.STAFF.ENTITY.v1")
    stylist_id = _id_from(result.output)
    result = run(
        "link", "create", customer_id, stylist_id, "preferred_stylist",
        "--smart-code", "HERA.SALON.CUSTOMER.REL.v1",
    )
    assert result.exit_code == 0
    assert "Linked PREFERRED_STYLIST" in result.output
    link_id = _id_from(result.output)

    # Step 3: Workflow status
    result = run("status", "set", customer_id, "vip", "--reason", "big spender")
    assert "is now VIP" in result.output
    assert run("status", "show", customer_id).output.strip() == "VIP"

    # Step 4: Show entity
    result = run("entity", "show", customer_id)
    assert "loyalty_points: 750" in result.output
    assert "phone: +971501234001" in result.output
    assert "Workflow:   VIP" in result.output
    assert f"PREFERRED_STYLIST -> {stylist_id}" in result.output

    # Step 5: Sale with one line, then post it
    result = run(
        "txn", "create", "--type", "sale", "--smart-code", "HERA.SALON.POS.SALE.v1",
        "--date", "2024-03-01", "--code", "SALE-001", "--total", "AED 150.00",
        "--source", customer_id,
        "--line", "service:HERA.SALON.POS.LINE.v1:150.00",
    )
    assert result.exit_code == 0, result.output
    assert "total 150.00" in result.output
    sale_id = _id_from(result.output)

    result = run("txn", "status", sale_id, "posted")
    assert "SALE-001 is now posted" in result.output

    # Step 6: Reverse it
    result = run("txn", "reverse", sale_id, "--reason", "refund", "--date", "2024-03-02")
    assert result.exit_code == 0
    assert "Posted reversal SALE-001-REV" in result.output

    result = run("txn", "list", "--type", "sale")
    assert "SALE-001 " in result.output
    assert "SALE-001-REV" in result.output
    assert "-150.00 AED" in result.output

    # Step 7: Remove the link
    result = run("link", "remove", link_id)
    assert f"Deactivated relationship {link_id}" in result.output
    assert "[inactive]" in run("link", "list", "--from", customer_id, "--all").output


def test_status_field_shows_suggestion(run):
    result = run(
        "entity", "create", "customer", "Sara Ali",
        "--smart-code", "HERA.SALON.CUSTOMER.ENTITY.v1",
        "--field", "approval_status=pending",
    )

    assert result.exit_code == 1
    assert "Suggestion:" in result.output
    assert "HAS_STATUS" in result.output


def test_field_commands(run, customer):
    result = run(
        "field", "set", customer.id, "vip", "yes", "--type", "boolean",
        "--smart-code", "HERA.SALON.CUSTOMER.FIELD.v1",
    )
    assert result.exit_code == 0
    assert "Set vip = true (boolean)" in result.output

    assert "vip (boolean): true" in run("field", "get", customer.id, "vip").output
    assert f"{customer.id}: vip=true" in run("field", "hydrate", customer.id).output

    assert "Deleted field vip" in run("field", "delete", customer.id, "vip").output
    assert "No fields found." in run("field", "get", customer.id).output


def test_missing_organization_is_rejected(cli_runner, database_url, actor_id):
    result = cli_runner.invoke(cli, ["--database-url", database_url, "--actor", actor_id, "entity", "list"])

    assert result.exit_code == 1
    assert "Organization context is required" in result.output


def test_unbalanced_journal_is_rejected(run):
    result = run(
        "txn", "create", "--type", "journal_entry", "--smart-code", "HERA.FIN.GL.JOURNAL.v1",
        "--line", "gl:HERA.FIN.GL.LINE.v1:100:DR",
        "--line", "gl:HERA.FIN.GL.LINE.v1:90:CR",
    )

    assert result.exit_code == 1
    assert "not balanced" in result.output
    assert "No transactions found." in run("txn", "list", "--type", "journal_entry").output


def test_journal_from_lines_file(run, tmp_path):
    lines_file = tmp_path / "lines.json"
    lines_file.write_text(
        json.dumps(
            [
                {"line_type": "gl", "smart_code": "HERA.FIN.GL.LINE.v1", "line_amount": "100", "line_data": {"side": "DR"}},
                {"line_type": "gl", "smart_code": "HERA.FIN.GL.LINE.v1", "line_amount": "100", "line_data": {"side": "CR"}},
            ]
        )
    )

    result = run(
        "txn", "create", "--type", "journal_entry", "--smart-code", "HERA.FIN.GL.JOURNAL.v1",
        "--status", "posted", "--lines-json", str(lines_file),
    )

    assert result.exit_code == 0, result.output
    transaction_id = _id_from(result.output)
    shown = run("txn", "show", transaction_id).output
    assert "Status: posted" in shown
    assert "100.00 DR" in shown
    assert "100.00 CR" in shown


def test_delete_and_void(run):
    result = run("txn", "create", "--type", "sale", "--smart-code", "HERA.SALON.POS.SALE.v1")
    empty_id = _id_from(result.output)
    result = run(
        "txn", "create", "--type", "sale", "--smart-code", "HERA.SALON.POS.SALE.v1",
        "--line", "service:HERA.SALON.POS.LINE.v1:20",
    )
    sale_id = _id_from(result.output)

    result = run("txn", "delete", sale_id, "--yes")
    assert result.exit_code == 1
    assert "void or reverse it instead" in result.output

    result = run("txn", "delete", empty_id, input="n\n")
    assert result.exit_code == 1
    assert run("txn", "show", empty_id).exit_code == 0

    assert f"Deleted transaction {empty_id}" in run("txn", "delete", empty_id, "--yes").output

    assert "Voided transaction" in run("txn", "void", sale_id, "--reason", "duplicate").output
    listed = run("txn", "list", "--type", "sale", "--no-void").output
    assert "No transactions found." in listed


def test_list_rejects_period_with_dates(run):
    result = run("txn", "list", "--period", "this-month", "--start-date", "2024-01-01")

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_smart_code_validate(cli_runner):
    result = cli_runner.invoke(cli, ["smart-code", "validate", "HERA.SALON.CUSTOMER.ENTITY.v1"])
    assert result.exit_code == 0
    assert "HERA.SALON.CUSTOMER.ENTITY.v1: valid" in result.output

    result = cli_runner.invoke(cli, ["smart-code", "validate", "HERA.SALON.CUSTOMER.ENTITY.v1", "bad.code"])
    assert result.exit_code == 1
    assert "bad.code: invalid" in result.output


def test_parse_line_option():
    line = parse_line_option(2, "gl:HERA.FIN.GL.LINE.v1:1,250.50:dr")

    assert line.line_number == 2
    assert line.line_amount == line.unit_amount
    assert str(line.line_amount) == "1250.50"
    assert line.line_data == {"side": "DR"}

    with pytest.raises(ValueError):
        parse_line_option(1, "service:150")


def test_load_lines_file_numbers_lines(tmp_path):
    path = tmp_path / "lines.json"
    path.write_text(json.dumps([{"line_type": "service", "smart_code": "HERA.SALON.POS.LINE.v1", "unit_amount": 5}]))

    lines = load_lines_file(str(path), first_line_number=3)

    assert [line.line_number for line in lines] == [3]
    assert str(lines[0].unit_amount) == "5"

    path.write_text(json.dumps({"not": "a list"}))
    with pytest.raises(ValueError):
        load_lines_file(str(path))


def test_load_lines_file_rejects_bad_amount(tmp_path):
    path = tmp_path / "lines.json"
    path.write_text(json.dumps([{"line_type": "service", "smart_code": "HERA.SALON.POS.LINE.v1", "unit_amount": "ten"}]))

    with pytest.raises(ValueError) as excinfo:
        load_lines_file(str(path))

    assert "invalid unit_amount 'ten'" in str(excinfo.value)


def test_bad_amount_in_lines_file_is_reported(run, tmp_path):
    lines_file = tmp_path / "lines.json"
    lines_file.write_text(
        json.dumps([{"line_type": "gl", "smart_code": "HERA.FIN.GL.LINE.v1", "line_amount": "1,00x"}])
    )

    result = run(
        "txn", "create", "--type", "journal_entry", "--smart-code", "HERA.FIN.GL.JOURNAL.v1",
        "--lines-json", str(lines_file),
    )

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Error: Line 1" in result.output
    assert "invalid line_amount" in result.output
