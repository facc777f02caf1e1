# ss_core/client/billing.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable

from ss_core.billing import rules
from ss_core.billing.constants import PaymentMethod
from ss_core.client.backend import BackendClient
from ss_core.client.inflight import InFlightGuard
from ss_core.client.records import InvoiceItemRecord, InvoiceRecord, PaymentRecord
from ss_core.common.errors import NotFoundError, ValidationError
from ss_core.common.permissions import Actor, Capability, require_permission

logger = logging.getLogger(__name__)


class BillingLedger:
    """
    Client-side invoice ledger.

    Every write checks, in order and before any request:
      1) the capability token for the action
      2) the invoice is not PAID/VOID (TerminalStateError)
      3) local field rules (items, void reason, payment amount)
    The server re-validates all of it; its answer wins.
    """

    def __init__(
        self,
        backend: BackendClient,
        *,
        guard: InFlightGuard | None = None,
        epsilon: Decimal | None = None,
    ) -> None:
        self.backend = backend
        self.guard = guard or InFlightGuard()
        self.epsilon = epsilon if epsilon is not None else backend.config.total_epsilon

    # ---- totals ----

    @staticmethod
    def compute_total(items: Iterable[Any]) -> Decimal:
        return rules.compute_total(items)

    def verify_total(self, invoice: InvoiceRecord) -> rules.TotalCheck:
        return rules.verify_total(invoice.total_amount, invoice.items, self.epsilon)

    # ---- reads ----

    async def fetch(self, actor: Actor, invoice_id: str) -> InvoiceRecord:
        require_permission(actor, Capability.VIEW_INVOICE)
        invoice = InvoiceRecord.from_api(await self.backend.get(f"invoices/{invoice_id}/"))
        self.verify_total(invoice)
        return invoice

    async def download_document(self, actor: Actor, invoice: InvoiceRecord) -> bytes:
        """
        Read-only; allowed in any status, gated only by view permission.
        """
        require_permission(actor, Capability.VIEW_INVOICE)
        return await self.backend.get_bytes(f"invoices/{invoice.id}/pdf/")

    # ---- writes ----

    def _guard_write(self, actor: Actor, capability: Capability, invoice: InvoiceRecord) -> None:
        require_permission(actor, capability)
        rules.ensure_mutable(invoice.status)

    async def add_item(
        self,
        actor: Actor,
        invoice: InvoiceRecord,
        *,
        description: str,
        quantity: int,
        unit_price: Any,
    ) -> InvoiceItemRecord:
        self._guard_write(actor, Capability.ADD_INVOICEITEM, invoice)
        rules.validate_item(quantity=quantity, unit_price=unit_price, description=description)

        body = {
            "description": str(description).strip(),
            "quantity": int(quantity),
            "unit_price": str(rules.to_decimal(unit_price, "unit_price")),
        }
        # keyed by body: a different item on the same invoice is not a duplicate
        async with self.guard.hold("invoice.add_item", invoice.id, *body.values()):
            data = await self.backend.post(f"invoices/{invoice.id}/items/", json=body)
        return InvoiceItemRecord.from_api(data)

    async def update_item(self, actor: Actor, invoice: InvoiceRecord, item_id: str, **patch: Any) -> InvoiceItemRecord:
        self._guard_write(actor, Capability.CHANGE_INVOICEITEM, invoice)
        rules.validate_item(
            quantity=patch.get("quantity"),
            unit_price=patch.get("unit_price"),
            description=patch.get("description"),
            partial=True,
        )

        body = {k: v for k, v in patch.items() if k in ("description", "quantity", "unit_price") and v is not None}
        if "unit_price" in body:
            body["unit_price"] = str(rules.to_decimal(body["unit_price"], "unit_price"))

        async with self.guard.hold("invoice.update_item", invoice.id, str(item_id)):
            data = await self.backend.patch(f"invoices/{invoice.id}/items/{item_id}/", json=body)
        return InvoiceItemRecord.from_api(data)

    async def remove_item(self, actor: Actor, invoice: InvoiceRecord, item_id: str) -> None:
        self._guard_write(actor, Capability.DELETE_INVOICEITEM, invoice)

        async with self.guard.hold("invoice.remove_item", invoice.id, str(item_id)):
            try:
                await self.backend.delete(f"invoices/{invoice.id}/items/{item_id}/")
            except NotFoundError:
                logger.info("Invoice item %s already gone", item_id)

    async def record_payment(
        self,
        actor: Actor,
        invoice: InvoiceRecord,
        *,
        amount: Any,
        method: str = PaymentMethod.CASH,
        transaction_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentRecord:
        """
        Records one payment. The invoice status is not changed; reconcile
        it to PAID explicitly once fully paid.
        """
        self._guard_write(actor, Capability.RECORD_PAYMENT, invoice)
        value = rules.validate_payment_amount(amount)
        if str(method) not in PaymentMethod.values:
            raise ValidationError({"method": f"Invalid method. Allowed: {', '.join(PaymentMethod.values)}"})

        body = {"invoice": invoice.id, "amount": str(value), "method": str(method)}
        if transaction_id:
            body["transaction_id"] = transaction_id
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None

        async with self.guard.hold("invoice.record_payment", invoice.id, body["amount"], body["method"]):
            data = await self.backend.post("invoices/record-payment/", json=body, headers=headers)
        return PaymentRecord.from_api(data)

    async def void_invoice(self, actor: Actor, invoice: InvoiceRecord, reason: str) -> InvoiceRecord:
        self._guard_write(actor, Capability.CHANGE_INVOICE, invoice)
        text = rules.normalize_void_reason(reason)

        async with self.guard.hold("invoice.void", invoice.id):
            data = await self.backend.patch(f"invoices/{invoice.id}/void/", json={"void_reason": text})
        return InvoiceRecord.from_api(data)

    async def delete_invoice(self, actor: Actor, invoice: InvoiceRecord) -> None:
        self._guard_write(actor, Capability.DELETE_INVOICE, invoice)

        async with self.guard.hold("invoice.delete", invoice.id):
            try:
                await self.backend.delete(f"invoices/{invoice.id}/")
            except NotFoundError:
                logger.info("Invoice %s already gone", invoice.id)
