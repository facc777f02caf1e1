# ss_core/billing/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from ss_core.billing.constants import InvoiceStatus, PaymentMethod
from ss_core.billing.models import Invoice, InvoiceItem, Payment


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "invoice",
            "description",
            "quantity",
            "unit_price",
            "total_amount",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoiceItemWriteSerializer(serializers.Serializer):
    """
    Shape only; ledger rules (quantity >= 1, unit_price >= 0) run in services.
    """
    description = serializers.CharField(max_length=255, allow_blank=True)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "invoice",
            "tenant",
            "amount",
            "method",
            "transaction_id",
            "status",
            "received_at",
            "recorded_by_user_id",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    invoice = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    transaction_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    tenant_name = serializers.CharField(source="tenant.full_name", read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "organization_id",
            "facility_id",
            "tenant",
            "tenant_name",
            "contract",
            "invoice_number",
            "status",
            "issue_date",
            "due_date",
            "total_amount",
            "void_reason",
            "voided_at",
            "paid_at",
            "notes",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    tenant = serializers.UUIDField()
    contract = serializers.UUIDField(required=False, allow_null=True)
    issue_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = InvoiceItemWriteSerializer(many=True, required=False)


class InvoiceUpdateSerializer(serializers.Serializer):
    """
    PATCH body. total_amount is derived and not accepted here.
    """
    status = serializers.ChoiceField(choices=InvoiceStatus.choices, required=False)
    issue_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    void_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class InvoiceVoidSerializer(serializers.Serializer):
    void_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
