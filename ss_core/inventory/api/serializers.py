# ss_core/inventory/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from ss_core.inventory.models import Unit


class UnitSerializer(serializers.ModelSerializer):
    status = serializers.CharField(source="effective_status", read_only=True)

    class Meta:
        model = Unit
        fields = [
            "id",
            "organization_id",
            "facility_id",
            "unit_number",
            "unit_type",
            "size_sqm",
            "status",
            "reservation_expires_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
