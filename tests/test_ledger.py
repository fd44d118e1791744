"""Tests for general ledger balance checks."""

from decimal import Decimal

import pytest

from hera.domain.entities import TransactionLineInput
from hera.domain.errors import InvariantError
from hera.domain.ledger import check_gl_balance, gl_balances, is_gl_line, line_side


def _gl_line(number, amount, side, currency=None):
    line_data = {"side": side}
    if currency:
        line_data["currency"] = currency
    return TransactionLineInput(
        line_number=number,
        line_type="gl",
        smart_code="HERA.FIN.GL.LINE.v1",
        line_amount=Decimal(amount),
        line_data=line_data,
    )


def test_is_gl_line():
    assert is_gl_line("HERA.FIN.GL.LINE.v1", {})
    assert is_gl_line("HERA.SALON.POS.LINE.v1", {"side": "DR"})
    assert not is_gl_line("HERA.SALON.POS.LINE.v1", {})
    assert not is_gl_line("HERA.SALON.POS.LINE.v1", None)


def test_line_side_normalizes_case():
    assert line_side(1, {"side": "dr"}) == "DR"
    assert line_side(1, {"side": " CR "}) == "CR"


def test_line_side_rejects_missing_or_invalid_side():
    with pytest.raises(InvariantError):
        line_side(1, {})
    with pytest.raises(InvariantError):
        line_side(2, {"side": "debit"})


def test_balanced_journal():
    lines = [_gl_line(1, "100.00", "DR"), _gl_line(2, "60.00", "CR"), _gl_line(3, "40.00", "CR")]
    balances = check_gl_balance(lines, "AED")

    assert len(balances) == 1
    assert balances[0].currency == "AED"
    assert balances[0].debits == Decimal("100.00")
    assert balances[0].credits == Decimal("100.00")
    assert balances[0].is_balanced


def test_difference_below_tolerance_is_balanced():
    lines = [_gl_line(1, "100.004", "DR"), _gl_line(2, "100.00", "CR")]
    assert check_gl_balance(lines)[0].is_balanced


def test_unbalanced_journal_is_rejected():
    lines = [_gl_line(1, "100.00", "DR"), _gl_line(2, "90.00", "CR")]
    with pytest.raises(InvariantError) as excinfo:
        check_gl_balance(lines, "AED")
    assert "not balanced" in str(excinfo.value)
    assert "AED" in excinfo.value.details[0]


def test_balance_is_checked_per_currency():
    """Test that debits in one currency cannot offset credits in another."""
    lines = [_gl_line(1, "100.00", "DR", "USD"), _gl_line(2, "100.00", "CR", "AED")]
    balances = gl_balances(lines, "AED")
    assert {balance.currency for balance in balances} == {"USD", "AED"}
    with pytest.raises(InvariantError):
        check_gl_balance(lines, "AED")


def test_negative_gl_amount_is_rejected():
    lines = [_gl_line(1, "-100.00", "DR"), _gl_line(2, "-100.00", "CR")]
    with pytest.raises(InvariantError):
        check_gl_balance(lines)


def test_non_gl_lines_are_ignored():
    lines = [
        TransactionLineInput(
            line_number=1, line_type="service", smart_code="HERA.SALON.POS.LINE.v1", line_amount=Decimal("150")
        )
    ]
    assert check_gl_balance(lines) == []
