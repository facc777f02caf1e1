# ss_core/client/records.py
"""
Local snapshots of server records. Built from API payloads and replaced
wholesale after every successful write; never mutated in place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from ss_core.billing.rules import is_terminal


def _dec(value: Any) -> Decimal:
    return Decimal(str(value if value not in (None, "") else "0"))


def _opt_str(value: Any) -> str | None:
    return None if value in (None, "") else str(value)


@dataclass(frozen=True)
class InvoiceItemRecord:
    id: str
    description: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "InvoiceItemRecord":
        return cls(
            id=str(data["id"]),
            description=data.get("description") or "",
            quantity=int(data.get("quantity") or 0),
            unit_price=_dec(data.get("unit_price")),
            total_amount=_dec(data.get("total_amount")),
        )


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    invoice: str
    amount: Decimal
    method: str
    transaction_id: str | None
    status: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "PaymentRecord":
        return cls(
            id=str(data["id"]),
            invoice=str(data["invoice"]),
            amount=_dec(data.get("amount")),
            method=data.get("method") or "",
            transaction_id=_opt_str(data.get("transaction_id")),
            status=data.get("status") or "",
        )


@dataclass(frozen=True)
class InvoiceRecord:
    id: str
    status: str
    total_amount: Decimal
    tenant: str | None = None
    contract: str | None = None
    invoice_number: str = ""
    void_reason: str = ""
    items: tuple[InvoiceItemRecord, ...] = field(default_factory=tuple)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "InvoiceRecord":
        return cls(
            id=str(data["id"]),
            status=str(data["status"]),
            total_amount=_dec(data.get("total_amount")),
            tenant=_opt_str(data.get("tenant")),
            contract=_opt_str(data.get("contract")),
            invoice_number=data.get("invoice_number") or "",
            void_reason=data.get("void_reason") or "",
            items=tuple(InvoiceItemRecord.from_api(i) for i in data.get("items") or ()),
        )


@dataclass(frozen=True)
class ContractRecord:
    id: str
    status: str
    tenant: str | None = None
    unit: str | None = None
    move_in: str | None = None
    move_out: str | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ContractRecord":
        return cls(
            id=str(data["id"]),
            status=str(data["status"]),
            tenant=_opt_str(data.get("tenant")),
            unit=_opt_str(data.get("unit")),
            move_in=_opt_str(data.get("move_in")),
            move_out=_opt_str(data.get("move_out")),
        )


@dataclass(frozen=True)
class ConversionOutcome:
    lead_id: str
    tenant_id: str
    contract_id: str
    contract_status: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ConversionOutcome":
        return cls(
            lead_id=str(data["lead"]["id"]),
            tenant_id=str(data["tenant"]["id"]),
            contract_id=str(data["contract"]["id"]),
            contract_status=str(data["contract"]["status"]),
        )
