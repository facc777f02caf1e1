# ss_core/billing/tests/test_rules.py
from decimal import Decimal

import pytest

from ss_core.billing import rules
from ss_core.common.errors import TerminalStateError, ValidationError


def test_compute_total_is_exact():
    items = [{"quantity": 2, "unit_price": "10.00"}, {"quantity": 1, "unit_price": "5.00"}]
    assert rules.compute_total(items) == Decimal("25.00")
    assert str(rules.compute_total(items)) == "25.00"


def test_compute_total_has_no_float_drift():
    items = [{"quantity": 3, "unit_price": 0.1}, {"quantity": 1, "unit_price": 0.2}]
    assert rules.compute_total(items) == Decimal("0.50")


def test_compute_total_empty():
    assert rules.compute_total([]) == Decimal("0.00")


def test_item_total_rounds_half_up():
    assert rules.item_total(1, "0.005") == Decimal("0.01")


def test_verify_total_flags_mismatch(caplog):
    items = [{"quantity": 2, "unit_price": "10.00"}, {"quantity": 1, "unit_price": "5.00"}]

    assert rules.verify_total("25.00", items).ok
    assert rules.verify_total("25.01", items).ok

    check = rules.verify_total("26.00", items)
    assert not check.ok
    assert check.difference == Decimal("1.00")
    assert "Invoice total mismatch" in caplog.text


@pytest.mark.parametrize("status", ["PAID", "VOID"])
def test_terminal_invoices_are_immutable(status):
    with pytest.raises(TerminalStateError):
        rules.ensure_mutable(status)


@pytest.mark.parametrize("status", ["DRAFT", "ISSUED", "OVERDUE"])
def test_open_invoices_are_mutable(status):
    rules.ensure_mutable(status)


def test_validate_item_reports_all_fields_at_once():
    with pytest.raises(ValidationError) as exc:
        rules.validate_item(quantity=0, unit_price="-1", description="  ")

    assert set(exc.value.errors) == {"quantity", "unit_price", "description"}


def test_validate_item_rejects_fractional_quantity():
    with pytest.raises(ValidationError) as exc:
        rules.validate_item(quantity="1.5", unit_price="1.00", description="x")
    assert exc.value.errors == {"quantity": ["Quantity must be a whole number."]}


def test_validate_item_partial_only_checks_given_fields():
    rules.validate_item(unit_price="0", partial=True)
    with pytest.raises(ValidationError):
        rules.validate_item(description="", partial=True)


@pytest.mark.parametrize("reason", ["", "   ", None])
def test_blank_void_reason_is_rejected(reason):
    with pytest.raises(ValidationError) as exc:
        rules.normalize_void_reason(reason)
    assert "void_reason" in exc.value.errors


def test_void_reason_is_trimmed():
    assert rules.normalize_void_reason("  duplicate  ") == "duplicate"


@pytest.mark.parametrize("amount", [0, "-5", "abc"])
def test_payment_amount_must_be_positive(amount):
    with pytest.raises(ValidationError):
        rules.validate_payment_amount(amount)


def test_payment_amount_is_quantized():
    assert rules.validate_payment_amount("10.5") == Decimal("10.50")


@pytest.mark.parametrize("amount", ["NaN", "sNaN", "Infinity", "-Infinity", Decimal("NaN")])
def test_non_finite_payment_amount_is_rejected(amount):
    with pytest.raises(ValidationError) as exc:
        rules.validate_payment_amount(amount)
    assert exc.value.errors == {"amount": ["Enter a valid number."]}


@pytest.mark.parametrize("price", ["NaN", "Infinity", Decimal("-Infinity")])
def test_non_finite_unit_price_is_rejected(price):
    errors = rules.item_errors(quantity=1, unit_price=price, description="Rent")
    assert errors == {"unit_price": ["Enter a valid number."]}


@pytest.mark.parametrize("quantity", ["Infinity", "NaN"])
def test_non_finite_quantity_is_rejected(quantity):
    errors = rules.item_errors(quantity=quantity, unit_price="1.00", description="Rent")
    assert errors == {"quantity": ["Enter a valid number."]}
