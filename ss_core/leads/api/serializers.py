# ss_core/leads/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from ss_core.contracts.api.serializers import ContractSerializer
from ss_core.leads.constants import LeadStage
from ss_core.leads.models import Lead
from ss_core.tenants.api.serializers import TenantSerializer


class LeadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lead
        fields = [
            "id",
            "organization_id",
            "facility_id",
            "first_name",
            "last_name",
            "email",
            "phone",
            "source",
            "notes",
            "stage",
            "converted_tenant",
            "converted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class LeadWriteSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    source = serializers.CharField(max_length=64, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    stage = serializers.ChoiceField(choices=LeadStage.choices, required=False)


class LeadConvertSerializer(serializers.Serializer):
    """
    {tenant: {...}, contract: {...}}. Field rules run in the conversion
    service so every failing field is reported together.
    """
    tenant = serializers.DictField()
    contract = serializers.DictField()


class LeadConversionResultSerializer(serializers.Serializer):
    lead = LeadSerializer()
    tenant = TenantSerializer()
    contract = ContractSerializer()
