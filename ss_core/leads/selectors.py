# ss_core/leads/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from ss_core.common.errors import NotFoundError
from ss_core.leads.models import Lead


def leads_filtered(*, organization_id, facility_id, stage: str | None = None, converted: bool | None = None) -> QuerySet[Lead]:
    qs = Lead.objects.filter(organization_id=organization_id, facility_id=facility_id).order_by("-created_at")
    if stage:
        qs = qs.filter(stage=stage)
    if converted is not None:
        qs = qs.filter(converted_tenant__isnull=not converted)
    return qs


def get_lead(*, organization_id, facility_id, lead_id, for_update: bool = False) -> Lead:
    qs = Lead.objects.select_for_update() if for_update else Lead.objects
    try:
        return qs.get(id=lead_id, organization_id=organization_id, facility_id=facility_id)
    except Lead.DoesNotExist:
        raise NotFoundError("Lead not found in this scope.")
