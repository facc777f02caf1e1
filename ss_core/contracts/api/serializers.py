# ss_core/contracts/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from ss_core.contracts.constants import ContractStatus
from ss_core.contracts.models import Contract


class ContractSerializer(serializers.ModelSerializer):
    tenant_name = serializers.CharField(source="tenant.full_name", read_only=True)
    unit_number = serializers.CharField(source="unit.unit_number", read_only=True)

    class Meta:
        model = Contract
        fields = [
            "id",
            "organization_id",
            "facility_id",
            "tenant",
            "tenant_name",
            "unit",
            "unit_number",
            "status",
            "move_in",
            "move_out",
            "monthly_rate",
            "deposit_amount",
            "terms",
            "notes",
            "signed_at",
            "signed_metadata",
            "audit_reference_id",
            "billing_reference_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class _ContractFieldsSerializer(serializers.Serializer):
    move_in = serializers.DateField()
    move_out = serializers.DateField(required=False, allow_null=True)
    monthly_rate = serializers.DecimalField(max_digits=12, decimal_places=2)
    deposit_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    terms = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    signed_at = serializers.DateTimeField(required=False, allow_null=True)
    signed_metadata = serializers.JSONField(required=False)
    audit_reference_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    billing_reference_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class ContractCreateSerializer(_ContractFieldsSerializer):
    tenant = serializers.UUIDField()
    unit = serializers.UUIDField()
    status = serializers.ChoiceField(
        choices=[ContractStatus.DRAFT, ContractStatus.ACTIVE], required=False, default=ContractStatus.DRAFT
    )


class ContractUpdateSerializer(_ContractFieldsSerializer):
    """
    PATCH body: status plus any mutable field.
    """
    unit = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=ContractStatus.choices, required=False)
