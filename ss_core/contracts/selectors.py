# ss_core/contracts/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from ss_core.common.errors import NotFoundError
from ss_core.contracts.constants import TERMINAL_CONTRACT_STATUSES
from ss_core.contracts.models import Contract


def contracts_filtered(
    *,
    organization_id,
    facility_id,
    tenant_id=None,
    unit_id=None,
    status: str | None = None,
) -> QuerySet[Contract]:
    qs = (
        Contract.objects.filter(organization_id=organization_id, facility_id=facility_id)
        .select_related("tenant", "unit")
        .order_by("-created_at")
    )
    if tenant_id:
        qs = qs.filter(tenant_id=tenant_id)
    if unit_id:
        qs = qs.filter(unit_id=unit_id)
    if status:
        qs = qs.filter(status=status)
    return qs


def unit_reclaimed(contract: Contract) -> bool:
    """
    True when a later live contract claimed this contract's unit after its
    reservation lapsed.
    """
    if contract.unit_claimed_at is None:
        return False
    return (
        Contract.objects.filter(unit_id=contract.unit_id, unit_claimed_at__gt=contract.unit_claimed_at)
        .exclude(id=contract.id)
        .exclude(status__in=TERMINAL_CONTRACT_STATUSES)
        .exists()
    )


def get_contract(*, organization_id, facility_id, contract_id, for_update: bool = False) -> Contract:
    qs = Contract.objects.select_for_update() if for_update else Contract.objects.select_related("tenant", "unit")
    try:
        return qs.get(id=contract_id, organization_id=organization_id, facility_id=facility_id)
    except Contract.DoesNotExist:
        raise NotFoundError("Contract not found in this scope.")
