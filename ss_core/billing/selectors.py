# ss_core/billing/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from ss_core.billing.models import Invoice, InvoiceItem, Payment
from ss_core.common.errors import NotFoundError


def invoices_filtered(
    *,
    organization_id,
    facility_id,
    tenant_id=None,
    contract_id=None,
    status: str | None = None,
) -> QuerySet[Invoice]:
    qs = (
        Invoice.objects.filter(organization_id=organization_id, facility_id=facility_id)
        .select_related("tenant", "contract")
        .prefetch_related("items", "payments")
        .order_by("-created_at")
    )
    if tenant_id:
        qs = qs.filter(tenant_id=tenant_id)
    if contract_id:
        qs = qs.filter(contract_id=contract_id)
    if status:
        qs = qs.filter(status=status)
    return qs


def get_invoice(*, organization_id, facility_id, invoice_id, for_update: bool = False) -> Invoice:
    qs = (
        Invoice.objects.select_for_update()
        if for_update
        else Invoice.objects.select_related("tenant", "contract").prefetch_related("items", "payments")
    )
    try:
        return qs.get(id=invoice_id, organization_id=organization_id, facility_id=facility_id)
    except Invoice.DoesNotExist:
        raise NotFoundError("Invoice not found in this scope.")


def invoice_items(*, organization_id, facility_id, invoice_id) -> QuerySet[InvoiceItem]:
    return InvoiceItem.objects.filter(
        organization_id=organization_id,
        facility_id=facility_id,
        invoice_id=invoice_id,
    ).order_by("created_at")


def get_invoice_item(*, organization_id, facility_id, invoice_id, item_id) -> InvoiceItem:
    try:
        return invoice_items(organization_id=organization_id, facility_id=facility_id, invoice_id=invoice_id).get(
            id=item_id
        )
    except InvoiceItem.DoesNotExist:
        raise NotFoundError("Invoice item not found.")


def invoice_payments(*, organization_id, facility_id, invoice_id) -> QuerySet[Payment]:
    return Payment.objects.filter(
        organization_id=organization_id,
        facility_id=facility_id,
        invoice_id=invoice_id,
    ).order_by("received_at")
