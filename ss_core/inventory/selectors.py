# ss_core/inventory/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet
from django.utils import timezone

from ss_core.common.errors import NotFoundError
from ss_core.inventory.constants import UnitStatus
from ss_core.inventory.models import Unit


def _lapsed_reservation(now) -> Q:
    return Q(status=UnitStatus.RESERVADA, reservation_expires_at__lte=now)


def units_filtered(*, organization_id, facility_id, status: str | None = None) -> QuerySet[Unit]:
    """
    Filters on the effective status: a lapsed reservation counts as LIVRE.
    """
    qs = Unit.objects.filter(organization_id=organization_id, facility_id=facility_id)
    if status == UnitStatus.LIVRE:
        qs = qs.filter(Q(status=UnitStatus.LIVRE) | _lapsed_reservation(timezone.now()))
    elif status == UnitStatus.RESERVADA:
        qs = qs.filter(status=status).exclude(_lapsed_reservation(timezone.now()))
    elif status:
        qs = qs.filter(status=status)
    return qs.order_by("unit_number")


def lapsed_reservations(*, now=None) -> QuerySet[Unit]:
    return Unit.objects.filter(_lapsed_reservation(now or timezone.now()))


def get_unit(*, organization_id, facility_id, unit_id, for_update: bool = False) -> Unit:
    qs = Unit.objects.select_for_update() if for_update else Unit.objects
    try:
        return qs.get(id=unit_id, organization_id=organization_id, facility_id=facility_id)
    except Unit.DoesNotExist:
        raise NotFoundError("Unit not found in this scope.")
