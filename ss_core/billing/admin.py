# ss_core/billing/admin.py
from django.contrib import admin

from ss_core.billing.models import Invoice, InvoiceItem, Payment


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ("total_amount",)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "tenant", "status", "total_amount", "issue_date", "due_date", "created_at")
    list_filter = ("status", "organization_id", "facility_id")
    search_fields = ("invoice_number", "tenant__last_name", "tenant__document")
    readonly_fields = ("total_amount", "voided_at", "paid_at", "created_at", "updated_at")
    inlines = [InvoiceItemInline]
    ordering = ("-created_at",)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("invoice", "amount", "method", "transaction_id", "status", "received_at")
    list_filter = ("method", "status")
    search_fields = ("transaction_id",)
    ordering = ("-received_at",)
