# ss_core/client/conversion.py
from __future__ import annotations

import logging
from datetime import date

from ss_core.client.backend import BackendClient
from ss_core.client.inflight import InFlightGuard
from ss_core.client.records import ConversionOutcome
from ss_core.common.errors import InvalidTransitionError, LifecycleError, TerminalStateError
from ss_core.common.permissions import CONTRACT_WRITER_ROLES, Actor, require_any_role
from ss_core.inventory.constants import UnitStatus
from ss_core.leads.wizard import ConversionWizard, WizardStep, ensure_convertible

logger = logging.getLogger(__name__)


class LeadConversionOrchestrator:
    """
    Drives one lead conversion session:

        start()  -> entry guard + LIVRE unit listing, wizard at TENANT_INFO
        wizard   -> step edits / advance / back (pure, local)
        submit() -> one POST /leads/{id}/convert/ from CONFIRMATION

    On failure the wizard stays on CONFIRMATION with its data and the
    aggregated message is kept in `last_error`, so the user can retry.
    """

    def __init__(self, backend: BackendClient, *, guard: InFlightGuard | None = None) -> None:
        self.backend = backend
        self.guard = guard or InFlightGuard()
        self.wizard: ConversionWizard | None = None
        self.outcome: ConversionOutcome | None = None
        self.last_error: str | None = None

    async def start(self, actor: Actor, lead_id: str, *, today: date | None = None) -> ConversionWizard:
        require_any_role(actor, CONTRACT_WRITER_ROLES)

        lead = await self.backend.get(f"leads/{lead_id}/")
        ensure_convertible(lead)

        page = await self.backend.get("inventory/units/", params={"status": UnitStatus.LIVRE.value, "page_size": 200})
        units = page.get("results", []) if isinstance(page, dict) else page

        self.wizard = ConversionWizard.start(lead, units, today=today)
        self.outcome = None
        self.last_error = None
        return self.wizard

    async def submit(self, actor: Actor, *, idempotency_key: str | None = None) -> str:
        """
        Returns the new tenant id.
        """
        require_any_role(actor, CONTRACT_WRITER_ROLES)
        wizard = self.wizard
        if wizard is None:
            raise InvalidTransitionError("wizard", "NOT_STARTED", WizardStep.CONFIRMATION)
        if self.outcome is not None:
            raise TerminalStateError("lead", "CONVERTED", "This lead has already been converted.")

        try:
            payload = wizard.submit_payload()
        except LifecycleError as exc:
            self.last_error = exc.message
            raise
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None

        async with self.guard.hold("lead.convert", wizard.lead_id):
            try:
                data = await self.backend.post(f"leads/{wizard.lead_id}/convert/", json=payload, headers=headers)
            except LifecycleError as exc:
                self.last_error = exc.message
                logger.info("Conversion of lead %s failed: %s", wizard.lead_id, exc.message)
                raise

        self.outcome = ConversionOutcome.from_api(data)
        self.last_error = None
        logger.info("Lead %s converted to tenant %s", wizard.lead_id, self.outcome.tenant_id)
        return self.outcome.tenant_id
