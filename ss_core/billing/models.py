# ss_core/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from ss_core.billing.constants import (
    TERMINAL_INVOICE_STATUSES,
    InvoiceStatus,
    PaymentMethod,
    PaymentStatus,
)
from ss_core.common.models import ScopedModel
from ss_core.contracts.models import Contract
from ss_core.tenants.models import Tenant


class Invoice(ScopedModel):
    """
    Billable document for a tenant (optionally tied to a contract).
    total_amount is derived from items in services; never authored.
    PAID and VOID are terminal.
    """
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="invoices")
    contract = models.ForeignKey(
        Contract,
        on_delete=models.PROTECT,
        related_name="invoices",
        null=True,
        blank=True,
    )

    invoice_number = models.CharField(max_length=32, blank=True)  # assigned on issue
    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT, db_index=True)

    issue_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    void_reason = models.TextField(blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)

    class Meta:
        db_table = "billing_invoice"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "status", "created_at"]),
            models.Index(fields=["organization_id", "facility_id", "tenant", "created_at"]),
            models.Index(fields=["organization_id", "facility_id", "due_date"]),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_INVOICE_STATUSES

    def mark_void(self, reason: str) -> None:
        self.status = InvoiceStatus.VOID
        self.void_reason = reason
        self.voided_at = timezone.now()

    def __str__(self) -> str:
        return self.invoice_number or f"Invoice {self.id}"


class InvoiceItem(ScopedModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")

    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "billing_invoice_item"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "invoice"]),
        ]


class Payment(ScopedModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="payments")
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="payments")

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    transaction_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.RECORDED)

    received_at = models.DateTimeField(default=timezone.now)
    recorded_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "billing_payment"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "invoice", "received_at"]),
        ]
