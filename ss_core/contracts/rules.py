# ss_core/contracts/rules.py
"""
Contract term validation shared by direct contract writes and the lead
conversion wizard. Pure: no database access.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping


def to_decimal(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    # NaN and Infinity parse but are not amounts
    return d if d.is_finite() else None


def to_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def contract_term_errors(
    data: Mapping[str, Any],
    *,
    today: date | None = None,
    partial: bool = False,
) -> dict[str, list[str]]:
    """
    Returns every failing field at once ({} when valid).

    - move_in: required, ISO date; when `today` is given it must be >= today
    - move_out: optional, must not precede move_in
    - monthly_rate: required, decimal >= 0
    - deposit_amount: optional, decimal >= 0
    - terms: required, non-blank

    partial=True skips "required" checks for keys absent from data.
    """
    errors: dict[str, list[str]] = {}

    def add(field: str, msg: str) -> None:
        errors.setdefault(field, []).append(msg)

    def present(field: str) -> bool:
        return not partial or field in data

    move_in = to_date(data.get("move_in"))
    if present("move_in"):
        if data.get("move_in") in (None, ""):
            add("move_in", "This field is required.")
        elif move_in is None:
            add("move_in", "Enter a valid date.")
        elif today is not None and move_in < today:
            add("move_in", "Move-in date cannot be in the past.")

    raw_move_out = data.get("move_out")
    if raw_move_out not in (None, ""):
        move_out = to_date(raw_move_out)
        if move_out is None:
            add("move_out", "Enter a valid date.")
        elif move_in is not None and move_out < move_in:
            add("move_out", "Move-out date cannot precede move-in date.")

    if present("monthly_rate"):
        raw = data.get("monthly_rate")
        rate = to_decimal(raw)
        if raw in (None, ""):
            add("monthly_rate", "This field is required.")
        elif rate is None:
            add("monthly_rate", "Enter a valid number.")
        elif rate < 0:
            add("monthly_rate", "Monthly rate must be >= 0.")

    raw_deposit = data.get("deposit_amount")
    if raw_deposit not in (None, ""):
        deposit = to_decimal(raw_deposit)
        if deposit is None:
            add("deposit_amount", "Enter a valid number.")
        elif deposit < 0:
            add("deposit_amount", "Deposit must be >= 0.")

    if present("terms") and not str(data.get("terms") or "").strip():
        add("terms", "This field is required.")

    return errors
