# ss_core/tenants/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from ss_core.common.errors import NotFoundError
from ss_core.tenants.models import Tenant


def tenants_filtered(*, organization_id, facility_id, q: str | None = None) -> QuerySet[Tenant]:
    qs = Tenant.objects.filter(organization_id=organization_id, facility_id=facility_id)
    q = (q or "").strip()
    if q:
        qs = qs.filter(
            Q(first_name__icontains=q) | Q(last_name__icontains=q) | Q(document__icontains=q) | Q(email__icontains=q)
        )
    return qs.order_by("last_name", "first_name")


def get_tenant(*, organization_id, facility_id, tenant_id, for_update: bool = False) -> Tenant:
    qs = Tenant.objects.select_for_update() if for_update else Tenant.objects
    try:
        return qs.get(id=tenant_id, organization_id=organization_id, facility_id=facility_id)
    except Tenant.DoesNotExist:
        raise NotFoundError("Tenant not found in this scope.")
