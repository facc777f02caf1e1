# ss_core/billing/rules.py
"""
Invoice ledger rules. Pure functions: no database, no HTTP.

Both the REST services and the async client call these, so a rule rejected
locally is rejected the same way by the server.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from ss_core.billing.constants import TERMINAL_INVOICE_STATUSES
from ss_core.common.errors import TerminalStateError, ValidationError

logger = logging.getLogger(__name__)

MINOR_UNIT = Decimal("0.01")
DEFAULT_EPSILON = Decimal("0.01")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Decimal(str(x)) so floats never leak binary drift into money.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError({field: "Enter a valid number."})
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError({field: "Enter a valid number."})
    if not d.is_finite():
        raise ValidationError({field: "Enter a valid number."})
    return d


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def item_total(quantity: Any, unit_price: Any) -> Decimal:
    return quantize(Decimal(int(quantity)) * to_decimal(unit_price, "unit_price"))


def compute_total(items: Iterable[Any]) -> Decimal:
    """
    Sum of quantity x unit_price over items (mappings or objects).
    Items are summed exactly and rounded once to the minor unit.
    """
    total = Decimal("0")
    for item in items:
        total += Decimal(int(_field(item, "quantity"))) * to_decimal(_field(item, "unit_price"), "unit_price")
    return quantize(total)


@dataclass(frozen=True)
class TotalCheck:
    reported: Decimal
    computed: Decimal
    epsilon: Decimal

    @property
    def difference(self) -> Decimal:
        return abs(self.reported - self.computed)

    @property
    def ok(self) -> bool:
        return self.difference <= self.epsilon


def verify_total(reported_total: Any, items: Iterable[Any], epsilon: Any = DEFAULT_EPSILON) -> TotalCheck:
    """
    Recompute and compare against the stored total. A mismatch is reported
    (and logged), never corrected here.
    """
    check = TotalCheck(
        reported=to_decimal(reported_total, "total_amount"),
        computed=compute_total(items),
        epsilon=to_decimal(epsilon, "epsilon"),
    )
    if not check.ok:
        logger.warning(
            "Invoice total mismatch: reported=%s computed=%s (epsilon=%s)",
            check.reported,
            check.computed,
            check.epsilon,
        )
    return check


def is_terminal(status: str) -> bool:
    return str(status) in TERMINAL_INVOICE_STATUSES


def ensure_mutable(status: str) -> None:
    if is_terminal(status):
        raise TerminalStateError("invoice", status)


def item_errors(
    *,
    quantity: Any = None,
    unit_price: Any = None,
    description: Any = None,
    partial: bool = False,
) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    if not partial or description is not None:
        if not str(description or "").strip():
            errors["description"] = ["This field is required."]

    if not partial or quantity is not None:
        if quantity is None or isinstance(quantity, bool):
            errors["quantity"] = ["This field is required."]
        else:
            try:
                q = Decimal(str(quantity))
            except (InvalidOperation, ValueError):
                q = None
            if q is None or not q.is_finite():
                errors["quantity"] = ["Enter a valid number."]
            elif q != q.to_integral_value():
                errors["quantity"] = ["Quantity must be a whole number."]
            elif q < 1:
                errors["quantity"] = ["Quantity must be >= 1."]

    if not partial or unit_price is not None:
        if unit_price is None or unit_price == "":
            errors["unit_price"] = ["This field is required."]
        else:
            try:
                price = to_decimal(unit_price, "unit_price")
            except ValidationError:
                errors["unit_price"] = ["Enter a valid number."]
            else:
                if price < 0:
                    errors["unit_price"] = ["Unit price must be >= 0."]

    return errors


def validate_item(*, quantity: Any = None, unit_price: Any = None, description: Any = None, partial: bool = False) -> None:
    errors = item_errors(quantity=quantity, unit_price=unit_price, description=description, partial=partial)
    if errors:
        raise ValidationError(errors)


def normalize_void_reason(reason: Any) -> str:
    text = str(reason or "").strip()
    if not text:
        raise ValidationError({"void_reason": "A reason is required to void an invoice."})
    return text


def validate_payment_amount(amount: Any) -> Decimal:
    value = to_decimal(amount, "amount")
    if value <= 0:
        raise ValidationError({"amount": "Payment amount must be > 0."})
    return quantize(value)
