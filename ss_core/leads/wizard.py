# ss_core/leads/wizard.py
"""
Lead -> Tenant + Contract conversion wizard as an explicit state machine.

Pure Python: no database, no HTTP. The REST conversion endpoint re-runs the
same validators inside its transaction, and the async client drives this
machine step by step before posting a single request.

    TENANT_INFO -> UNIT_SELECTION -> CONTRACT_TERMS -> CONFIRMATION
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping

from ss_core.common.errors import InvalidTransitionError, TerminalStateError, ValidationError
from ss_core.contracts.rules import contract_term_errors
from ss_core.inventory.constants import UnitStatus
from ss_core.leads.constants import LeadStage
from ss_core.tenants.constants import TenantCategory


class WizardStep(str, Enum):
    TENANT_INFO = "TENANT_INFO"
    UNIT_SELECTION = "UNIT_SELECTION"
    CONTRACT_TERMS = "CONTRACT_TERMS"
    CONFIRMATION = "CONFIRMATION"

    def __str__(self) -> str:
        return self.value


STEP_ORDER = (
    WizardStep.TENANT_INFO,
    WizardStep.UNIT_SELECTION,
    WizardStep.CONTRACT_TERMS,
    WizardStep.CONFIRMATION,
)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def ensure_convertible(lead: Any) -> None:
    """
    Entry guard: stage WON and not yet converted. Safe to call repeatedly.
    """
    converted = _get(lead, "converted_tenant_id") or _get(lead, "converted_tenant")
    if converted:
        raise TerminalStateError("lead", "CONVERTED", "This lead has already been converted.")
    if str(_get(lead, "stage")) != LeadStage.WON:
        raise ValidationError({"stage": "Only WON leads can be converted."})


@dataclass
class TenantInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone_primary: str = ""
    document: str = ""
    category: str = ""
    address: str = ""
    address_city: str = ""
    address_state: str = ""
    address_zip: str = ""

    @classmethod
    def from_lead(cls, lead: Any) -> "TenantInfo":
        return cls(
            first_name=_get(lead, "first_name") or "",
            last_name=_get(lead, "last_name") or "",
            email=_get(lead, "email") or "",
            phone_primary=_get(lead, "phone") or "",
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "TenantInfo":
        known = {f.name for f in fields(cls)}
        return cls(**{k: ("" if v is None else str(v)) for k, v in data.items() if k in known})

    def errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for name in ("first_name", "last_name", "document"):
            if not getattr(self, name).strip():
                errors[name] = ["This field is required."]
        if not self.category:
            errors["category"] = ["This field is required."]
        elif self.category not in TenantCategory.values:
            errors["category"] = [f"Invalid category. Allowed: {', '.join(TenantCategory.values)}"]
        return errors

    def to_payload(self) -> dict[str, str]:
        return {k: v.strip() for k, v in asdict(self).items()}


@dataclass
class ContractTerms:
    move_in: date | str | None = None
    move_out: date | str | None = None
    monthly_rate: Any = None
    deposit_amount: Any = None
    terms: str = ""
    notes: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ContractTerms":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def errors(self, *, today: date) -> dict[str, list[str]]:
        return contract_term_errors(asdict(self), today=today)

    def to_payload(self) -> dict[str, Any]:
        def iso(d):
            return d.isoformat() if isinstance(d, date) else (d or None)

        return {
            "move_in": iso(self.move_in),
            "move_out": iso(self.move_out),
            "monthly_rate": None if self.monthly_rate in (None, "") else str(self.monthly_rate),
            "deposit_amount": None if self.deposit_amount in (None, "") else str(self.deposit_amount),
            "terms": (self.terms or "").strip(),
            "notes": self.notes or "",
        }


def unit_errors(unit_id: Any, available_unit_ids: Iterable[str] | None) -> dict[str, list[str]]:
    if not unit_id:
        return {"unit": ["Select a unit."]}
    if available_unit_ids is not None and str(unit_id) not in available_unit_ids:
        return {"unit": ["Selected unit is not available."]}
    return {}


@dataclass
class ConversionWizard:
    """
    One in-memory conversion session. Discarding the object discards the
    draft; nothing is persisted until the payload is submitted.
    """
    lead_id: str
    tenant: TenantInfo
    today: date
    available_units: dict[str, Any] = field(default_factory=dict)
    unit_id: str | None = None
    terms: ContractTerms = field(default_factory=ContractTerms)
    step: WizardStep = WizardStep.TENANT_INFO

    @classmethod
    def start(cls, lead: Any, units: Iterable[Any] = (), *, today: date | None = None) -> "ConversionWizard":
        ensure_convertible(lead)
        livre = {
            str(_get(u, "id")): u
            for u in units
            if str(_get(u, "status")) == UnitStatus.LIVRE
        }
        return cls(
            lead_id=str(_get(lead, "id")),
            tenant=TenantInfo.from_lead(lead),
            today=today or date.today(),
            available_units=livre,
        )

    # ---- editing ----

    def update_tenant(self, **changes: Any) -> None:
        self._require_step(WizardStep.TENANT_INFO)
        self.tenant = replace(self.tenant, **changes)

    def select_unit(self, unit_id: Any) -> None:
        self._require_step(WizardStep.UNIT_SELECTION)
        errors = unit_errors(unit_id, self.available_units.keys())
        if errors:
            raise ValidationError(errors)
        self.unit_id = str(unit_id)

    def update_terms(self, **changes: Any) -> None:
        self._require_step(WizardStep.CONTRACT_TERMS)
        self.terms = replace(self.terms, **changes)

    # ---- navigation ----

    def step_errors(self, step: WizardStep | None = None) -> dict[str, list[str]]:
        step = step or self.step
        if step == WizardStep.TENANT_INFO:
            return self.tenant.errors()
        if step == WizardStep.UNIT_SELECTION:
            return unit_errors(self.unit_id, self.available_units.keys())
        if step == WizardStep.CONTRACT_TERMS:
            return self.terms.errors(today=self.today)
        return {}

    def advance(self) -> WizardStep:
        idx = STEP_ORDER.index(self.step)
        if idx == len(STEP_ORDER) - 1:
            raise InvalidTransitionError("wizard", self.step, "NEXT")

        errors = self.step_errors()
        if errors:
            raise ValidationError(errors)

        self.step = STEP_ORDER[idx + 1]
        return self.step

    def back(self) -> WizardStep:
        idx = STEP_ORDER.index(self.step)
        if idx > 0:
            self.step = STEP_ORDER[idx - 1]
        return self.step

    # ---- confirmation ----

    def summary(self) -> dict[str, Any]:
        unit = self.available_units.get(self.unit_id) if self.unit_id else None
        return {
            "lead": self.lead_id,
            "tenant": self.tenant.to_payload(),
            "unit": {
                "id": self.unit_id,
                "unit_number": _get(unit, "unit_number") if unit is not None else None,
            },
            "contract": self.terms.to_payload(),
        }

    def submit_payload(self) -> dict[str, Any]:
        """
        Body for POST /leads/{id}/convert/. Every step is re-validated.
        """
        self._require_step(WizardStep.CONFIRMATION)

        errors: dict[str, list[str]] = {}
        for step in STEP_ORDER[:-1]:
            errors.update(self.step_errors(step))
        if errors:
            raise ValidationError(errors)

        return {
            "tenant": self.tenant.to_payload(),
            "contract": {"unit": self.unit_id, **self.terms.to_payload()},
        }

    def _require_step(self, expected: WizardStep) -> None:
        if self.step != expected:
            raise InvalidTransitionError("wizard", self.step, expected)
