"""General ledger line checks.

A line is a GL line when its smart code has a GL segment or its line_data
carries a side. GL lines post line_amount to the debit (DR) or credit (CR)
side, and a journal is balanced when both sides agree per currency.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from hera.domain.errors import InvariantError

DEBIT = "DR"
CREDIT = "CR"
BALANCE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class CurrencyBalance:
    """Debit and credit totals of one currency."""

    currency: Optional[str]
    debits: Decimal
    credits: Decimal

    @property
    def difference(self) -> Decimal:
        return self.debits - self.credits

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < BALANCE_TOLERANCE


def is_gl_line(smart_code: str, line_data: Optional[dict[str, Any]]) -> bool:
    """Return True if the line posts to the general ledger."""
    if line_data and "side" in line_data:
        return True
    return ".GL." in (smart_code or "")


def line_side(line_number: int, line_data: Optional[dict[str, Any]]) -> str:
    """Return the normalized side of a GL line.

    Raises:
        InvariantError: If the side is missing or not DR/CR
    """
    side = (line_data or {}).get("side")
    if side is None:
        raise InvariantError(
            f"GL line {line_number} has no side",
            details=["set line_data.side to 'DR' or 'CR'"],
        )
    side = str(side).strip().upper()
    if side not in (DEBIT, CREDIT):
        raise InvariantError(
            f"GL line {line_number} has invalid side '{line_data.get('side')}'",
            details=["line_data.side must be 'DR' or 'CR'"],
        )
    return side


def gl_balances(lines: Iterable[Any], default_currency: Optional[str] = None) -> list[CurrencyBalance]:
    """Sum GL lines per currency.

    Lines are any objects with line_number, smart_code, line_amount and
    line_data attributes. A line's currency is line_data.currency, falling
    back to the transaction currency.

    Raises:
        InvariantError: If a GL line has an invalid side or a negative amount
    """
    debits: dict[Optional[str], Decimal] = defaultdict(Decimal)
    credits: dict[Optional[str], Decimal] = defaultdict(Decimal)
    currencies: list[Optional[str]] = []

    for line in lines:
        if not is_gl_line(line.smart_code, line.line_data):
            continue
        side = line_side(line.line_number, line.line_data)
        amount = Decimal(line.line_amount)
        if amount < 0:
            raise InvariantError(
                f"GL line {line.line_number} has negative amount {amount}",
                details=["post negative amounts to the opposite side"],
            )
        currency = (line.line_data or {}).get("currency", default_currency)
        if currency not in currencies:
            currencies.append(currency)
        if side == DEBIT:
            debits[currency] += amount
        else:
            credits[currency] += amount

    return [CurrencyBalance(currency, debits[currency], credits[currency]) for currency in currencies]


def check_gl_balance(lines: Iterable[Any], default_currency: Optional[str] = None) -> list[CurrencyBalance]:
    """Require debits to equal credits in every currency.

    Returns:
        Per-currency balances (empty when there are no GL lines)

    Raises:
        InvariantError: If any currency is unbalanced
    """
    balances = gl_balances(lines, default_currency)
    unbalanced = [balance for balance in balances if not balance.is_balanced]
    if unbalanced:
        raise InvariantError(
            "Journal entry is not balanced",
            details=[
                f"{balance.currency or 'default currency'}: debits {balance.debits}, "
                f"credits {balance.credits}"
                for balance in unbalanced
            ],
        )
    return balances
