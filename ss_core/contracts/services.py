# ss_core/contracts/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from ss_core.common.errors import ConflictError, TerminalStateError, ValidationError
from ss_core.common.transitions import contract_transitions
from ss_core.contracts.constants import ContractStatus
from ss_core.contracts.models import Contract
from ss_core.contracts.rules import contract_term_errors, to_date
from ss_core.contracts.selectors import get_contract, unit_reclaimed
from ss_core.inventory.selectors import get_unit
from ss_core.inventory.services import UnitService
from ss_core.tenants.selectors import get_tenant

logger = logging.getLogger(__name__)

EDITABLE_CONTRACT_FIELDS = (
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
)


def _money(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(Decimal("0.01"))


class ContractService:
    @staticmethod
    @transaction.atomic
    def create_contract(
        *,
        organization_id: UUID,
        facility_id: UUID,
        tenant_id: UUID,
        unit_id: UUID,
        status: str = ContractStatus.DRAFT,
        **fields: Any,
    ) -> Contract:
        """
        Creates a DRAFT or ACTIVE contract and claims the unit.
        The unit must be LIVRE: DRAFT reserves it, ACTIVE occupies it.
        """
        if status not in (ContractStatus.DRAFT, ContractStatus.ACTIVE):
            raise ValidationError({"status": "New contracts start as DRAFT or ACTIVE."})

        errors = contract_term_errors(fields)
        if errors:
            raise ValidationError(errors)

        tenant = get_tenant(organization_id=organization_id, facility_id=facility_id, tenant_id=tenant_id)
        unit = get_unit(organization_id=organization_id, facility_id=facility_id, unit_id=unit_id, for_update=True)

        UnitService.claim(unit, occupy=(status == ContractStatus.ACTIVE))

        contract = Contract.objects.create(
            organization_id=organization_id,
            facility_id=facility_id,
            tenant=tenant,
            unit=unit,
            status=status,
            unit_claimed_at=timezone.now(),
            move_in=to_date(fields["move_in"]),
            move_out=to_date(fields.get("move_out")),
            monthly_rate=_money(fields.get("monthly_rate")),
            deposit_amount=_money(fields.get("deposit_amount")),
            terms=str(fields["terms"]).strip(),
            notes=fields.get("notes") or "",
            signed_at=fields.get("signed_at"),
            signed_metadata=fields.get("signed_metadata") or {},
            audit_reference_id=fields.get("audit_reference_id") or "",
            billing_reference_id=fields.get("billing_reference_id") or "",
        )
        logger.info("Contract %s created as %s for unit %s", contract.id, status, unit.id)
        return contract

    @staticmethod
    def _apply_status(contract: Contract, target: str) -> None:
        contract_transitions.assert_transition(contract.status, target)
        if target == contract.status:
            return

        unit = get_unit(
            organization_id=contract.organization_id,
            facility_id=contract.facility_id,
            unit_id=contract.unit_id,
            for_update=True,
        )
        if target == ContractStatus.ACTIVE:
            if unit_reclaimed(contract):
                raise ConflictError(
                    f"The reservation of unit {unit.unit_number} expired and another contract claimed it.",
                    details={"unit": str(unit.id)},
                )
            UnitService.occupy(unit)
            if contract.signed_at is None:
                contract.signed_at = timezone.now()
        elif target in (ContractStatus.CLOSED, ContractStatus.CANCELED) and not unit_reclaimed(contract):
            UnitService.release(unit)

        logger.info("Contract %s: %s -> %s", contract.id, contract.status, target)
        contract.status = target

    @staticmethod
    @transaction.atomic
    def update_contract(
        *,
        organization_id: UUID,
        facility_id: UUID,
        contract_id: UUID,
        status: str | None = None,
        unit_id: UUID | None = None,
        **fields: Any,
    ) -> Contract:
        """
        PATCH semantics. Status goes through the contract table; a terminal
        contract rejects every change, including a repeated terminal status.
        """
        contract = get_contract(
            organization_id=organization_id, facility_id=facility_id, contract_id=contract_id, for_update=True
        )
        if contract.is_terminal:
            raise TerminalStateError("contract", contract.status)

        data = {k: v for k, v in fields.items() if k in EDITABLE_CONTRACT_FIELDS}
        if data:
            merged = {
                "move_in": contract.move_in,
                "move_out": contract.move_out,
                "monthly_rate": contract.monthly_rate,
                "deposit_amount": contract.deposit_amount,
                "terms": contract.terms,
                **data,
            }
            errors = contract_term_errors(merged)
            if errors:
                raise ValidationError(errors)

        if unit_id is not None and unit_id != contract.unit_id:
            if contract.status != ContractStatus.DRAFT:
                raise ValidationError({"unit": "The unit can only change while the contract is DRAFT."})
            old_unit = get_unit(
                organization_id=organization_id, facility_id=facility_id, unit_id=contract.unit_id, for_update=True
            )
            new_unit = get_unit(
                organization_id=organization_id, facility_id=facility_id, unit_id=unit_id, for_update=True
            )
            UnitService.claim(new_unit, occupy=False)
            if not unit_reclaimed(contract):
                UnitService.release(old_unit)
            contract.unit = new_unit
            contract.unit_claimed_at = timezone.now()

        for k, v in data.items():
            if k in ("monthly_rate", "deposit_amount"):
                v = _money(v)
            elif k in ("notes", "audit_reference_id", "billing_reference_id"):
                v = v or ""
            elif k == "signed_metadata":
                v = v or {}
            elif k == "terms":
                v = str(v).strip()
            elif k in ("move_in", "move_out"):
                v = to_date(v)
            setattr(contract, k, v)

        if status is not None:
            ContractService._apply_status(contract, status)

        contract.save()
        return contract

    @staticmethod
    @transaction.atomic
    def set_status(*, organization_id: UUID, facility_id: UUID, contract_id: UUID, status: str) -> Contract:
        return ContractService.update_contract(
            organization_id=organization_id, facility_id=facility_id, contract_id=contract_id, status=status
        )

    @staticmethod
    @transaction.atomic
    def delete_contract(*, organization_id: UUID, facility_id: UUID, contract_id: UUID) -> None:
        contract = get_contract(
            organization_id=organization_id, facility_id=facility_id, contract_id=contract_id, for_update=True
        )
        if contract.is_terminal:
            raise TerminalStateError("contract", contract.status)
        if contract.status != ContractStatus.DRAFT:
            raise ConflictError(
                "Only DRAFT contracts can be deleted.",
                details={"status": contract.status},
            )
        if contract.invoices.exists():
            raise ConflictError("Contract has invoices and cannot be deleted.")

        unit = get_unit(
            organization_id=organization_id, facility_id=facility_id, unit_id=contract.unit_id, for_update=True
        )
        if not unit_reclaimed(contract):
            UnitService.release(unit)
        contract.delete()
        logger.info("Contract %s deleted", contract_id)
