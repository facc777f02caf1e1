# ss_core/tenants/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from ss_core.tenants.constants import TenantCategory
from ss_core.tenants.models import Tenant


class TenantSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Tenant
        fields = [
            "id",
            "organization_id",
            "facility_id",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone_primary",
            "phone_secondary",
            "document",
            "category",
            "address",
            "address_city",
            "address_state",
            "address_zip",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TenantWriteSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    phone_primary = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    phone_secondary = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    document = serializers.CharField(max_length=32)
    category = serializers.ChoiceField(choices=TenantCategory.choices)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    address_city = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=120)
    address_state = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    address_zip = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=16)
