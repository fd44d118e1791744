"""Tests for transaction service."""

from datetime import date
from decimal import Decimal

import pytest

from hera.domain.entities import TransactionInput, TransactionLineInput, TransactionStatus
from hera.domain.errors import InvariantError, NotFoundError, ValidationError
from hera.domain.transaction import (
    AMOUNT_PLACES,
    QUANTITY_PLACES,
    expected_total,
    generate_transaction_code,
    quantize,
    to_decimal,
)

SALE = "HERA.SALON.POS.SALE.v1"
SALE_LINE = "HERA.SALON.POS.LINE.v1"
JOURNAL = "HERA.FIN.GL.JOURNAL.v1"
GL_LINE = "HERA.FIN.GL.LINE.v1"


def _sale_line(number, amount, quantity="1", **kwargs):
    return TransactionLineInput(
        line_number=number,
        line_type="service",
        smart_code=SALE_LINE,
        quantity=Decimal(quantity),
        unit_amount=Decimal(amount),
        **kwargs,
    )


def _gl_line(number, amount, side):
    return TransactionLineInput(
        line_number=number,
        line_type="gl",
        smart_code=GL_LINE,
        line_amount=Decimal(amount),
        line_data={"side": side, "account": f"ACC-{number}"},
    )


def _sale(**kwargs):
    kwargs.setdefault("transaction_date", date(2024, 3, 1))
    return TransactionInput(transaction_type="sale", smart_code=SALE, **kwargs)


def _list(service, ctx, **kwargs):
    return service.list_transactions(ctx, transaction_type=kwargs.pop("transaction_type", "sale"), **kwargs)


class TestHelpers:
    def test_to_decimal(self):
        assert to_decimal("150.00", "total") == Decimal("150.00")
        assert to_decimal(2, "total") == Decimal("2")
        for bad in ("abc", True, "NaN", "Infinity"):
            with pytest.raises(ValidationError):
                to_decimal(bad, "total")

    def test_quantize_rounds_half_up_to_column_scale(self):
        assert quantize(Decimal("0.005"), AMOUNT_PLACES, "total") == Decimal("0.01")
        assert quantize(Decimal("-2.125"), AMOUNT_PLACES, "total") == Decimal("-2.13")
        assert str(quantize(Decimal("1.23456"), QUANTITY_PLACES, "quantity")) == "1.2346"
        for too_big in (Decimal("1E+20"), Decimal("1E+30")):
            with pytest.raises(ValidationError):
                quantize(too_big, AMOUNT_PLACES, "total")

    def test_generate_transaction_code(self):
        code = generate_transaction_code("journal entry")
        assert code.startswith("JOURNALENT-")
        assert len(code.split("-")[1]) == 8
        assert generate_transaction_code("!!!").startswith("TXN-")

    def test_expected_total(self):
        assert expected_total([_sale_line(1, "100", line_amount=Decimal("100"))]) == Decimal("100")
        journal = [_gl_line(1, "40", "DR"), _gl_line(2, "40", "CR")]
        assert expected_total(journal) == Decimal("40")


class TestCreate:
    def test_total_is_derived_from_lines(self, transaction_service, ctx, customer):
        transaction_id = transaction_service.create_transaction(
            ctx,
            _sale(source_entity_id=customer.id, transaction_currency_code="AED"),
            [_sale_line(1, "75", quantity="2"), _sale_line(2, "25.50")],
        )

        view = transaction_service.get_transaction_with_lines(ctx, transaction_id)

        assert view.transaction.total_amount == Decimal("175.50")
        assert view.transaction.transaction_status is TransactionStatus.DRAFT
        assert view.transaction.transaction_code.startswith("SALE-")
        assert view.transaction.created_by == ctx.actor_id
        assert [line.line_amount for line in view.lines] == [Decimal("150"), Decimal("25.50")]

    def test_lines_are_ordered_by_line_number(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx, _sale(), [_sale_line(3, "1"), _sale_line(1, "1"), _sale_line(2, "1")]
        )
        assert [line.line_number for line in transaction_service.get_lines(ctx, transaction_id)] == [1, 2, 3]

    def test_total_must_reconcile_with_lines(self, transaction_service, ctx):
        with pytest.raises(ValidationError) as excinfo:
            transaction_service.create_transaction(
                ctx, _sale(total_amount=Decimal("200.00")), [_sale_line(1, "150.00")]
            )
        assert "does not reconcile" in str(excinfo.value)
        assert _list(transaction_service, ctx) == []

    def test_total_within_tolerance_is_accepted(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx, _sale(total_amount=Decimal("150.004")), [_sale_line(1, "150.00")]
        )
        assert transaction_service.get_transaction(ctx, transaction_id) is not None

    def test_stored_total_equals_sum_of_stored_lines(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx, _sale(), [_sale_line(1, "0.005"), _sale_line(2, "0.005"), _sale_line(3, "0.005")]
        )

        view = transaction_service.get_transaction_with_lines(ctx, transaction_id)

        assert [line.line_amount for line in view.lines] == [Decimal("0.01")] * 3
        assert view.transaction.total_amount == Decimal("0.03")
        assert view.transaction.total_amount == sum(line.line_amount for line in view.lines)

    def test_journal_balance_uses_rounded_amounts(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx,
            TransactionInput(transaction_type="journal_entry", smart_code=JOURNAL),
            [_gl_line(1, "100.004", "DR"), _gl_line(2, "100.00", "CR")],
        )

        view = transaction_service.get_transaction_with_lines(ctx, transaction_id)

        assert [line.line_amount for line in view.lines] == [Decimal("100.00"), Decimal("100.00")]
        assert view.transaction.total_amount == Decimal("100.00")

    def test_header_without_lines_keeps_given_total(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale(total_amount="99.99"))
        assert transaction_service.require_transaction(ctx, transaction_id).total_amount == Decimal("99.99")

    def test_balanced_journal_is_posted(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx,
            TransactionInput(
                transaction_type="journal_entry",
                smart_code=JOURNAL,
                transaction_status=TransactionStatus.POSTED,
                transaction_currency_code="AED",
            ),
            [_gl_line(1, "150.00", "DR"), _gl_line(2, "142.86", "CR"), _gl_line(3, "7.14", "CR")],
        )

        transaction = transaction_service.require_transaction(ctx, transaction_id)
        assert transaction.transaction_status is TransactionStatus.POSTED
        assert transaction.total_amount == Decimal("150.00")

    def test_unbalanced_journal_is_rejected(self, transaction_service, ctx):
        with pytest.raises(InvariantError) as excinfo:
            transaction_service.create_transaction(
                ctx,
                TransactionInput(transaction_type="journal_entry", smart_code=JOURNAL),
                [_gl_line(1, "150.00", "DR"), _gl_line(2, "100.00", "CR")],
            )
        assert "not balanced" in str(excinfo.value)
        assert _list(transaction_service, ctx, transaction_type="journal_entry") == []

    def test_gl_line_needs_valid_side(self, transaction_service, ctx):
        with pytest.raises(InvariantError):
            transaction_service.create_transaction(
                ctx,
                TransactionInput(transaction_type="journal_entry", smart_code=JOURNAL),
                [_gl_line(1, "10", "LEFT"), _gl_line(2, "10", "CR")],
            )

    def test_cannot_start_void(self, transaction_service, ctx):
        with pytest.raises(InvariantError):
            transaction_service.create_transaction(ctx, _sale(transaction_status=TransactionStatus.VOID))

    def test_unknown_status_is_rejected(self, transaction_service, ctx):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(ctx, _sale(transaction_status="settled"))

    @pytest.mark.parametrize(
        "header_kwargs",
        [
            {"transaction_currency_code": "aed"},
            {"base_currency_code": "DIRHAM"},
            {"exchange_rate": Decimal("0")},
            {"metadata": {"notes": "VIP"}},
        ],
    )
    def test_invalid_header_fields(self, transaction_service, ctx, header_kwargs):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(ctx, _sale(**header_kwargs))

    def test_invalid_smart_codes(self, transaction_service, ctx):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(
                ctx, TransactionInput(transaction_type="sale", smart_code="HERA.POS.SALE")
            )
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(
                ctx,
                _sale(),
                [TransactionLineInput(line_number=1, line_type="service", smart_code="bad", unit_amount=Decimal("1"))],
            )

    @pytest.mark.parametrize("numbers", [[0], [1, 1], [-2]])
    def test_invalid_line_numbers(self, transaction_service, ctx, numbers):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(ctx, _sale(), [_sale_line(n, "1") for n in numbers])

    def test_unknown_entities_are_not_found(self, transaction_service, ctx):
        with pytest.raises(NotFoundError):
            transaction_service.create_transaction(ctx, _sale(source_entity_id="missing"))
        with pytest.raises(NotFoundError):
            transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "1", entity_id="missing")])

    def test_requires_actor(self, transaction_service, organization):
        from hera.domain.entities import TenantContext
        from hera.domain.errors import AuthorizationError

        with pytest.raises(AuthorizationError):
            transaction_service.create_transaction(TenantContext(organization_id=organization.id), _sale())


class TestQueries:
    def test_list_filters(self, transaction_service, ctx, customer):
        march = transaction_service.create_transaction(ctx, _sale(source_entity_id=customer.id), [_sale_line(1, "10")])
        april = transaction_service.create_transaction(
            ctx, _sale(transaction_date=date(2024, 4, 1)), [_sale_line(1, "20")]
        )
        transaction_service.void_transaction(ctx, april)

        assert [t.id for t in _list(transaction_service, ctx)] == [april, march]
        assert [t.id for t in _list(transaction_service, ctx, include_void=False)] == [march]
        assert [t.id for t in _list(transaction_service, ctx, status="void")] == [april]
        assert [t.id for t in _list(transaction_service, ctx, status=TransactionStatus.DRAFT)] == [march]
        assert [t.id for t in _list(transaction_service, ctx, source_entity_id=customer.id)] == [march]
        assert [
            t.id
            for t in _list(transaction_service, ctx, start_date=date(2024, 3, 15), end_date=date(2024, 4, 30))
        ] == [april]
        assert [t.id for t in _list(transaction_service, ctx, limit=1)] == [april]

    def test_list_rejects_bad_filters(self, transaction_service, ctx):
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(ctx, status="settled")
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(ctx, start_date=date(2024, 5, 1), end_date=date(2024, 4, 1))

    def test_transactions_are_isolated_between_organizations(self, transaction_service, ctx, other_ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "10")])

        assert transaction_service.get_transaction(other_ctx, transaction_id) is None
        assert _list(transaction_service, other_ctx) == []
        with pytest.raises(NotFoundError):
            transaction_service.get_lines(other_ctx, transaction_id)
        with pytest.raises(NotFoundError):
            transaction_service.void_transaction(other_ctx, transaction_id)


class TestLifecycle:
    def test_status_moves_forward(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "10")])

        assert transaction_service.update_status(ctx, transaction_id, "completed").transaction_status is (
            TransactionStatus.COMPLETED
        )
        assert transaction_service.update_status(ctx, transaction_id, TransactionStatus.POSTED).transaction_status is (
            TransactionStatus.POSTED
        )
        with pytest.raises(InvariantError):
            transaction_service.update_status(ctx, transaction_id, "draft")

    def test_void_records_reason_and_is_terminal(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx, _sale(transaction_status=TransactionStatus.COMPLETED), [_sale_line(1, "10")]
        )

        voided = transaction_service.void_transaction(ctx, transaction_id, reason="customer cancelled")

        assert voided.transaction_status is TransactionStatus.VOID
        assert voided.metadata["void_reason"] == "customer cancelled"
        with pytest.raises(InvariantError):
            transaction_service.void_transaction(ctx, transaction_id)
        with pytest.raises(InvariantError):
            transaction_service.update_status(ctx, transaction_id, "posted")

    def test_only_drafts_can_be_edited(self, transaction_service, ctx, customer):
        transaction_id = transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "10")])

        updated = transaction_service.update_transaction(
            ctx, transaction_id, transaction_code="SALE-0001", target_entity_id=customer.id
        )
        assert updated.transaction_code == "SALE-0001"
        assert updated.target_entity_id == customer.id

        transaction_service.update_status(ctx, transaction_id, "posted")
        with pytest.raises(InvariantError):
            transaction_service.update_transaction(ctx, transaction_id, transaction_code="SALE-0002")


class TestDelete:
    def test_empty_zero_draft_can_be_deleted(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale())

        transaction_service.delete_transaction(ctx, transaction_id)

        assert transaction_service.get_transaction(ctx, transaction_id) is None
        with pytest.raises(NotFoundError):
            transaction_service.delete_transaction(ctx, transaction_id)

    def test_draft_with_lines_is_blocked(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "0")])

        with pytest.raises(InvariantError) as excinfo:
            transaction_service.delete_transaction(ctx, transaction_id)

        assert "1 line" in str(excinfo.value)
        assert "lines: 1" in excinfo.value.details
        assert transaction_service.get_transaction(ctx, transaction_id) is not None

    def test_draft_with_total_is_blocked(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(ctx, _sale(total_amount=Decimal("10")))

        with pytest.raises(InvariantError) as excinfo:
            transaction_service.delete_transaction(ctx, transaction_id)

        assert "total amount" in str(excinfo.value)

    def test_posted_is_blocked(self, transaction_service, ctx):
        transaction_id = transaction_service.create_transaction(
            ctx, _sale(transaction_status=TransactionStatus.POSTED)
        )

        with pytest.raises(InvariantError) as excinfo:
            transaction_service.delete_transaction(ctx, transaction_id)

        assert "status is 'posted'" in str(excinfo.value)


class TestReverse:
    def test_reverse_sale_negates_lines(self, transaction_service, ctx):
        original_id = transaction_service.create_transaction(
            ctx,
            _sale(transaction_code="SALE-100", transaction_status=TransactionStatus.COMPLETED),
            [_sale_line(1, "75", quantity="2")],
        )

        reversal_id = transaction_service.reverse_transaction(
            ctx, original_id, reason="refund", transaction_date=date(2024, 3, 2)
        )

        reversal = transaction_service.get_transaction_with_lines(ctx, reversal_id)
        original = transaction_service.require_transaction(ctx, original_id)
        assert reversal.transaction.transaction_code == "SALE-100-REV"
        assert reversal.transaction.transaction_status is TransactionStatus.POSTED
        assert reversal.transaction.transaction_date == date(2024, 3, 2)
        assert reversal.transaction.total_amount == Decimal("-150")
        assert reversal.lines[0].quantity == Decimal("2")
        assert reversal.lines[0].line_amount == Decimal("-150")
        assert reversal.transaction.metadata["reversal_of"] == original_id
        assert reversal.transaction.metadata["change_log"] == [{"event": "reversal", "reason": "refund"}]
        assert original.metadata["reversed_by"] == reversal_id

    def test_reverse_journal_swaps_sides(self, transaction_service, ctx):
        original_id = transaction_service.create_transaction(
            ctx,
            TransactionInput(
                transaction_type="journal_entry", smart_code=JOURNAL, transaction_status=TransactionStatus.POSTED
            ),
            [_gl_line(1, "100", "DR"), _gl_line(2, "100", "CR")],
        )

        reversal_id = transaction_service.reverse_transaction(ctx, original_id)

        lines = transaction_service.get_lines(ctx, reversal_id)
        assert [line.line_data["side"] for line in lines] == ["CR", "DR"]
        assert [line.line_amount for line in lines] == [Decimal("100"), Decimal("100")]
        assert lines[0].line_data["account"] == "ACC-1"
        assert transaction_service.require_transaction(ctx, reversal_id).total_amount == Decimal("100")

    def test_cannot_reverse_twice(self, transaction_service, ctx):
        original_id = transaction_service.create_transaction(
            ctx, _sale(transaction_status=TransactionStatus.POSTED), [_sale_line(1, "10")]
        )
        reversal_id = transaction_service.reverse_transaction(ctx, original_id)

        with pytest.raises(InvariantError):
            transaction_service.reverse_transaction(ctx, original_id)
        with pytest.raises(InvariantError):
            transaction_service.reverse_transaction(ctx, reversal_id)

    @pytest.mark.parametrize("status", ["draft", "void"])
    def test_only_completed_or_posted_can_be_reversed(self, transaction_service, ctx, status):
        transaction_id = transaction_service.create_transaction(ctx, _sale(), [_sale_line(1, "10")])
        if status == "void":
            transaction_service.void_transaction(ctx, transaction_id)

        with pytest.raises(InvariantError):
            transaction_service.reverse_transaction(ctx, transaction_id)


def test_customer_sale_scenario(entity_service, dynamic_data_service, transaction_service, ctx):
    """Test a customer with dynamic fields buying a 150.00 service."""
    from hera.domain.entities import DynamicFieldInput

    customer_id = entity_service.create_entity(
        ctx,
        entity_type="customer",
        entity_name="Sara Ali",
        smart_code="HERA.SALON.CUSTOMER.ENTITY.v1",
        fields=[
            DynamicFieldInput("phone", "+971501234001", "HERA.SALON.CUSTOMER.FIELD.v1", None),
            DynamicFieldInput("loyalty_points", 750, "HERA.SALON.CUSTOMER.FIELD.v1", None),
        ],
    )
    transaction_id = transaction_service.create_transaction(
        ctx,
        _sale(source_entity_id=customer_id, total_amount=Decimal("150.00"), transaction_currency_code="AED"),
        [_sale_line(1, "150.00", line_amount=Decimal("150.00"), entity_id=customer_id)],
    )

    fields = dynamic_data_service.hydrate(ctx, [customer_id])[customer_id]
    view = transaction_service.get_transaction_with_lines(ctx, transaction_id)

    assert fields == {"phone": "+971501234001", "loyalty_points": 750}
    assert view.transaction.total_amount == sum(line.line_amount for line in view.lines)
    assert view.transaction.total_amount == Decimal("150.00")
