# ss_core/leads/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ss_core.common.errors import TerminalStateError, ValidationError
from ss_core.contracts.constants import ContractStatus
from ss_core.contracts.models import Contract
from ss_core.contracts.services import ContractService
from ss_core.leads.models import Lead
from ss_core.leads.selectors import get_lead
from ss_core.leads.wizard import ContractTerms, TenantInfo, ensure_convertible, unit_errors
from ss_core.tenants.models import Tenant
from ss_core.tenants.services import TenantService

logger = logging.getLogger(__name__)

EDITABLE_LEAD_FIELDS = ("first_name", "last_name", "email", "phone", "source", "notes", "stage")


def conversion_contract_status() -> str:
    value = str(getattr(settings, "SS_CONVERSION_CONTRACT_STATUS", ContractStatus.DRAFT)).upper()
    if value not in (ContractStatus.DRAFT, ContractStatus.ACTIVE):
        return ContractStatus.DRAFT
    return value


class LeadService:
    @staticmethod
    @transaction.atomic
    def create_lead(*, organization_id: UUID, facility_id: UUID, **fields: Any) -> Lead:
        data = {k: v for k, v in fields.items() if k in EDITABLE_LEAD_FIELDS}
        if not str(data.get("first_name") or "").strip():
            raise ValidationError({"first_name": "This field is required."})
        lead = Lead.objects.create(
            organization_id=organization_id,
            facility_id=facility_id,
            **{k: (v if v is not None else "") for k, v in data.items()},
        )
        return lead

    @staticmethod
    @transaction.atomic
    def update_lead(*, organization_id: UUID, facility_id: UUID, lead_id: UUID, **fields: Any) -> Lead:
        lead = get_lead(organization_id=organization_id, facility_id=facility_id, lead_id=lead_id, for_update=True)
        if lead.is_converted:
            raise TerminalStateError("lead", "CONVERTED", "Converted leads can no longer be changed.")

        data = {k: v for k, v in fields.items() if k in EDITABLE_LEAD_FIELDS}
        if "first_name" in data and not str(data["first_name"] or "").strip():
            raise ValidationError({"first_name": "This field may not be blank."})

        for k, v in data.items():
            setattr(lead, k, v if v is not None else "")
        if data:
            lead.save(update_fields=[*data.keys(), "updated_at"])
            if "stage" in data:
                logger.info("Lead %s stage -> %s", lead.id, lead.stage)
        return lead

    @staticmethod
    @transaction.atomic
    def delete_lead(*, organization_id: UUID, facility_id: UUID, lead_id: UUID) -> None:
        lead = get_lead(organization_id=organization_id, facility_id=facility_id, lead_id=lead_id, for_update=True)
        if lead.is_converted:
            raise TerminalStateError("lead", "CONVERTED", "Converted leads cannot be deleted.")
        lead.delete()


@dataclass(frozen=True)
class ConversionResult:
    lead: Lead
    tenant: Tenant
    contract: Contract


class LeadConversionService:
    @staticmethod
    @transaction.atomic
    def convert(
        *,
        organization_id: UUID,
        facility_id: UUID,
        lead_id: UUID,
        tenant: Mapping[str, Any],
        contract: Mapping[str, Any],
    ) -> ConversionResult:
        """
        All-or-nothing: Tenant, Contract (unit check-and-set) and the lead's
        converted_tenant are written in one transaction. Any error rolls
        back every row, so there is no orphan tenant.
        """
        lead = get_lead(organization_id=organization_id, facility_id=facility_id, lead_id=lead_id, for_update=True)
        ensure_convertible(lead)

        tenant_info = TenantInfo.from_payload(tenant)
        terms = ContractTerms.from_payload(contract)

        errors: dict[str, list[str]] = {}
        errors.update(tenant_info.errors())
        errors.update(unit_errors(contract.get("unit"), None))
        if "unit" not in errors:
            try:
                unit_id = UUID(str(contract["unit"]))
            except ValueError:
                errors["unit"] = ["Invalid unit id."]
        errors.update(terms.errors(today=timezone.localdate()))
        if errors:
            raise ValidationError(errors)

        new_tenant = TenantService.create_tenant(
            organization_id=organization_id,
            facility_id=facility_id,
            **tenant_info.to_payload(),
        )

        terms_payload = terms.to_payload()
        new_contract = ContractService.create_contract(
            organization_id=organization_id,
            facility_id=facility_id,
            tenant_id=new_tenant.id,
            unit_id=unit_id,
            status=conversion_contract_status(),
            **terms_payload,
        )

        lead.converted_tenant = new_tenant
        lead.converted_at = timezone.now()
        lead.save(update_fields=["converted_tenant", "converted_at", "updated_at"])

        logger.info(
            "Lead %s converted: tenant=%s contract=%s unit=%s",
            lead.id,
            new_tenant.id,
            new_contract.id,
            new_contract.unit_id,
        )
        return ConversionResult(lead=lead, tenant=new_tenant, contract=new_contract)
