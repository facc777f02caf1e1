# ss_core/tenants/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction

from ss_core.common.errors import ValidationError
from ss_core.tenants.models import Tenant
from ss_core.tenants.selectors import get_tenant

logger = logging.getLogger(__name__)

REQUIRED_TENANT_FIELDS = ("first_name", "last_name", "document", "category")

EDITABLE_TENANT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone_primary",
    "phone_secondary",
    "document",
    "category",
    "address",
    "address_city",
    "address_state",
    "address_zip",
)


def _clean(data: dict) -> dict:
    return {k: ("" if data.get(k) is None else str(data.get(k)).strip()) for k in EDITABLE_TENANT_FIELDS if k in data}


class TenantService:
    @staticmethod
    @transaction.atomic
    def create_tenant(*, organization_id: UUID, facility_id: UUID, **fields) -> Tenant:
        data = _clean(fields)

        missing = {f: ["This field is required."] for f in REQUIRED_TENANT_FIELDS if not data.get(f)}
        if missing:
            raise ValidationError(missing)

        tenant = Tenant.objects.create(organization_id=organization_id, facility_id=facility_id, **data)
        logger.info("Tenant %s created", tenant.id)
        return tenant

    @staticmethod
    @transaction.atomic
    def update_tenant(*, organization_id: UUID, facility_id: UUID, tenant_id: UUID, **fields) -> Tenant:
        tenant = get_tenant(
            organization_id=organization_id, facility_id=facility_id, tenant_id=tenant_id, for_update=True
        )
        data = _clean(fields)

        blanked = {f: ["This field may not be blank."] for f in REQUIRED_TENANT_FIELDS if f in data and not data[f]}
        if blanked:
            raise ValidationError(blanked)

        for k, v in data.items():
            setattr(tenant, k, v)
        if data:
            tenant.save(update_fields=[*data.keys(), "updated_at"])
        return tenant
