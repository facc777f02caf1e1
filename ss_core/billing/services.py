# ss_core/billing/services.py
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Iterable, Mapping
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from ss_core.billing import rules
from ss_core.billing.constants import InvoiceStatus, PaymentMethod
from ss_core.billing.models import Invoice, InvoiceItem, Payment
from ss_core.billing.selectors import get_invoice, get_invoice_item, invoice_items
from ss_core.common.errors import ConflictError, TerminalStateError, ValidationError
from ss_core.common.transitions import invoice_transitions
from ss_core.contracts.selectors import get_contract
from ss_core.tenants.selectors import get_tenant

logger = logging.getLogger(__name__)

EDITABLE_INVOICE_FIELDS = ("issue_date", "due_date", "notes")


class InvoiceService:
    @staticmethod
    @transaction.atomic
    def create_draft(
        *,
        organization_id: UUID,
        facility_id: UUID,
        tenant_id: UUID,
        contract_id: UUID | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
        notes: str = "",
        items: Iterable[Mapping[str, Any]] = (),
    ) -> Invoice:
        tenant = get_tenant(organization_id=organization_id, facility_id=facility_id, tenant_id=tenant_id)

        contract = None
        if contract_id:
            contract = get_contract(organization_id=organization_id, facility_id=facility_id, contract_id=contract_id)
            if contract.tenant_id != tenant.id:
                raise ValidationError({"contract": "Contract belongs to a different tenant."})

        if issue_date and due_date and due_date < issue_date:
            raise ValidationError({"due_date": "Due date cannot precede issue date."})

        invoice = Invoice.objects.create(
            organization_id=organization_id,
            facility_id=facility_id,
            tenant=tenant,
            contract=contract,
            status=InvoiceStatus.DRAFT,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes or "",
        )

        for item in items:
            InvoiceService._create_item(invoice, **item)
        InvoiceService._recalc_total(invoice)

        logger.info("Invoice %s created (draft)", invoice.id)
        return invoice

    @staticmethod
    def _recalc_total(invoice: Invoice) -> None:
        items = invoice_items(
            organization_id=invoice.organization_id,
            facility_id=invoice.facility_id,
            invoice_id=invoice.id,
        )
        invoice.total_amount = rules.compute_total(items)
        invoice.save(update_fields=["total_amount", "updated_at"])

    @staticmethod
    def _create_item(invoice: Invoice, *, description: str, quantity: int, unit_price) -> InvoiceItem:
        rules.validate_item(quantity=quantity, unit_price=unit_price, description=description)
        price = rules.quantize(rules.to_decimal(unit_price, "unit_price"))
        return InvoiceItem.objects.create(
            organization_id=invoice.organization_id,
            facility_id=invoice.facility_id,
            invoice=invoice,
            description=str(description).strip(),
            quantity=int(quantity),
            unit_price=price,
            total_amount=rules.item_total(quantity, price),
        )

    @staticmethod
    def _locked_mutable(*, organization_id: UUID, facility_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = get_invoice(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id, for_update=True
        )
        rules.ensure_mutable(invoice.status)
        return invoice

    @staticmethod
    def _next_invoice_number_locked(*, organization_id: UUID, facility_id: UUID) -> str:
        latest = (
            Invoice.objects.select_for_update()
            .filter(organization_id=organization_id, facility_id=facility_id)
            .exclude(invoice_number="")
            .order_by("-created_at")
            .first()
        )

        if not latest or not latest.invoice_number:
            return "INV-000001"

        m = re.match(r"INV-(\d{6})$", latest.invoice_number.strip())
        if not m:
            return f"INV-{timezone.now().strftime('%y%m%d%H%M%S')}"

        return f"INV-{int(m.group(1)) + 1:06d}"

    @staticmethod
    def _apply_status(invoice: Invoice, target: str, *, void_reason: str | None = None) -> None:
        invoice_transitions.assert_transition(invoice.status, target)
        if target == invoice.status:
            return

        if target == InvoiceStatus.ISSUED:
            has_items = invoice_items(
                organization_id=invoice.organization_id,
                facility_id=invoice.facility_id,
                invoice_id=invoice.id,
            ).exists()
            if not has_items:
                raise ValidationError({"invoice": "Cannot issue an empty invoice."})
            if not invoice.invoice_number:
                invoice.invoice_number = InvoiceService._next_invoice_number_locked(
                    organization_id=invoice.organization_id, facility_id=invoice.facility_id
                )
            if invoice.issue_date is None:
                invoice.issue_date = timezone.localdate()
        elif target == InvoiceStatus.PAID:
            invoice.paid_at = timezone.now()
        elif target == InvoiceStatus.VOID:
            invoice.mark_void(rules.normalize_void_reason(void_reason))
            logger.info("Invoice %s voided", invoice.id)
            return

        logger.info("Invoice %s: %s -> %s", invoice.id, invoice.status, target)
        invoice.status = target

    @staticmethod
    @transaction.atomic
    def update_invoice(
        *,
        organization_id: UUID,
        facility_id: UUID,
        invoice_id: UUID,
        status: str | None = None,
        void_reason: str | None = None,
        **fields: Any,
    ) -> Invoice:
        """
        PATCH semantics: mutable fields plus an optional status change
        through the invoice table. PAID/VOID invoices reject everything.
        """
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )

        for k, v in fields.items():
            if k not in EDITABLE_INVOICE_FIELDS:
                continue
            setattr(invoice, k, (v or "") if k == "notes" else v)

        if invoice.issue_date and invoice.due_date and invoice.due_date < invoice.issue_date:
            raise ValidationError({"due_date": "Due date cannot precede issue date."})

        if status is not None:
            InvoiceService._apply_status(invoice, status, void_reason=void_reason)

        invoice.save()
        return invoice

    @staticmethod
    @transaction.atomic
    def void(*, organization_id: UUID, facility_id: UUID, invoice_id: UUID, reason: str) -> Invoice:
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )
        InvoiceService._apply_status(invoice, InvoiceStatus.VOID, void_reason=reason)
        invoice.save(update_fields=["status", "void_reason", "voided_at", "updated_at"])
        return invoice

    @staticmethod
    @transaction.atomic
    def delete_invoice(*, organization_id: UUID, facility_id: UUID, invoice_id: UUID) -> None:
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )
        if invoice.status != InvoiceStatus.DRAFT:
            raise ConflictError(
                "Only DRAFT invoices can be deleted. Void it instead.",
                details={"status": invoice.status},
            )
        invoice.delete()
        logger.info("Invoice %s deleted", invoice_id)

    @staticmethod
    @transaction.atomic
    def add_item(
        *,
        organization_id: UUID,
        facility_id: UUID,
        invoice_id: UUID,
        description: str,
        quantity: int,
        unit_price,
    ) -> InvoiceItem:
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )
        item = InvoiceService._create_item(invoice, description=description, quantity=quantity, unit_price=unit_price)
        InvoiceService._recalc_total(invoice)
        return item

    @staticmethod
    @transaction.atomic
    def update_item(
        *,
        organization_id: UUID,
        facility_id: UUID,
        invoice_id: UUID,
        item_id: UUID,
        **patch: Any,
    ) -> InvoiceItem:
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )
        item = get_invoice_item(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice.id, item_id=item_id
        )

        rules.validate_item(
            quantity=patch.get("quantity"),
            unit_price=patch.get("unit_price"),
            description=patch.get("description"),
            partial=True,
        )

        if patch.get("description") is not None:
            item.description = str(patch["description"]).strip()
        if patch.get("quantity") is not None:
            item.quantity = int(patch["quantity"])
        if patch.get("unit_price") is not None:
            item.unit_price = rules.quantize(rules.to_decimal(patch["unit_price"], "unit_price"))
        item.total_amount = rules.item_total(item.quantity, item.unit_price)
        item.save()

        InvoiceService._recalc_total(invoice)
        return item

    @staticmethod
    @transaction.atomic
    def remove_item(*, organization_id: UUID, facility_id: UUID, invoice_id: UUID, item_id: UUID) -> None:
        invoice = InvoiceService._locked_mutable(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id
        )
        item = get_invoice_item(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice.id, item_id=item_id
        )
        item.delete()
        InvoiceService._recalc_total(invoice)

    @staticmethod
    @transaction.atomic
    def mark_overdue(*, today: date | None = None, organization_id: UUID | None = None) -> int:
        """
        ISSUED invoices past their due date move to OVERDUE. Returns the count.
        """
        today = today or timezone.localdate()
        qs = Invoice.objects.select_for_update().filter(status=InvoiceStatus.ISSUED, due_date__lt=today)
        if organization_id:
            qs = qs.filter(organization_id=organization_id)

        count = 0
        for invoice in qs:
            InvoiceService._apply_status(invoice, InvoiceStatus.OVERDUE)
            invoice.save(update_fields=["status", "updated_at"])
            count += 1

        if count:
            logger.info("Marked %s invoice(s) overdue", count)
        return count


class PaymentService:
    @staticmethod
    @transaction.atomic
    def record_payment(
        *,
        organization_id: UUID,
        facility_id: UUID,
        invoice_id: UUID,
        amount,
        method: str = PaymentMethod.CASH,
        transaction_id: str = "",
        recorded_by_user_id: int | None = None,
    ) -> Payment:
        """
        Records a payment against a non-terminal invoice.
        The invoice status is left alone: closing it as PAID is an explicit
        reconciliation step (PATCH status=PAID).
        """
        invoice = get_invoice(
            organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id, for_update=True
        )
        if invoice.is_terminal:
            raise TerminalStateError(
                "invoice", invoice.status, f"Cannot record payment for a {invoice.status} invoice."
            )

        value = rules.validate_payment_amount(amount)
        if method not in PaymentMethod.values:
            raise ValidationError({"method": f"Invalid method. Allowed: {', '.join(PaymentMethod.values)}"})

        pay = Payment.objects.create(
            organization_id=organization_id,
            facility_id=facility_id,
            invoice=invoice,
            tenant_id=invoice.tenant_id,
            amount=value,
            method=method,
            transaction_id=(transaction_id or "").strip(),
            recorded_by_user_id=recorded_by_user_id,
        )
        logger.info("Payment %s of %s recorded on invoice %s", pay.id, value, invoice.id)
        return pay
