# ss_core/client/contracts.py
from __future__ import annotations

import logging
from typing import Any

from ss_core.client.backend import BackendClient
from ss_core.client.inflight import InFlightGuard
from ss_core.client.records import ContractRecord
from ss_core.common.errors import NotFoundError, TerminalStateError
from ss_core.common.permissions import CONTRACT_WRITER_ROLES, Actor, has_any_role, require_any_role
from ss_core.common.transitions import contract_transitions

logger = logging.getLogger(__name__)


class ContractCommands:
    """
    Contract writes: role-set gate, then the contract transition table,
    both before any request.
    """

    def __init__(self, backend: BackendClient, *, guard: InFlightGuard | None = None) -> None:
        self.backend = backend
        self.guard = guard or InFlightGuard()

    def allowed_targets(self, actor: Actor, contract: ContractRecord) -> frozenset[str]:
        """
        Statuses a status control may offer (empty when nothing may change).
        """
        if not has_any_role(actor, CONTRACT_WRITER_ROLES) or contract_transitions.is_terminal(contract.status):
            return frozenset()
        return contract_transitions.allowed_targets(contract.status) - {contract.status}

    def _guard_write(self, actor: Actor, contract: ContractRecord) -> None:
        require_any_role(actor, CONTRACT_WRITER_ROLES)
        if contract_transitions.is_terminal(contract.status):
            raise TerminalStateError("contract", contract.status)

    async def set_status(self, actor: Actor, contract: ContractRecord, target: str) -> ContractRecord:
        self._guard_write(actor, contract)
        contract_transitions.assert_transition(contract.status, target)
        if str(target) == contract.status:
            return contract

        async with self.guard.hold("contract.status", contract.id):
            data = await self.backend.patch(f"contracts/{contract.id}/", json={"status": str(target)})
        return ContractRecord.from_api(data)

    async def update(self, actor: Actor, contract: ContractRecord, **fields: Any) -> ContractRecord:
        self._guard_write(actor, contract)
        if "status" in fields:
            contract_transitions.assert_transition(contract.status, fields["status"])

        async with self.guard.hold("contract.update", contract.id):
            data = await self.backend.patch(f"contracts/{contract.id}/", json=fields)
        return ContractRecord.from_api(data)

    async def delete(self, actor: Actor, contract_id: str) -> None:
        require_any_role(actor, CONTRACT_WRITER_ROLES)

        async with self.guard.hold("contract.delete", str(contract_id)):
            try:
                await self.backend.delete(f"contracts/{contract_id}/")
            except NotFoundError:
                logger.info("Contract %s already gone", contract_id)
