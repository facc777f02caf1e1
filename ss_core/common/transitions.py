# ss_core/common/transitions.py
from __future__ import annotations

from typing import Iterable, Mapping

from ss_core.billing.constants import InvoiceStatus
from ss_core.common.errors import InvalidTransitionError
from ss_core.contracts.constants import ContractStatus


class StatusTransitionValidator:
    """
    Finite-state-machine checker over a fixed transition table.

    Rules:
    - x -> x is always allowed (no-op save).
    - A status with no outgoing edges is terminal.
    - Every pair not listed in the table is rejected.
    """

    def __init__(self, entity: str, table: Mapping[str, Iterable[str]]):
        self.entity = entity
        self._table = {str(k): frozenset(str(t) for t in v) for k, v in table.items()}

    @property
    def statuses(self) -> frozenset[str]:
        known = set(self._table)
        for targets in self._table.values():
            known.update(targets)
        return frozenset(known)

    def can_transition(self, current: str, target: str) -> bool:
        current, target = str(current), str(target)
        if current == target:
            return current in self.statuses
        return target in self._table.get(current, frozenset())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current, target):
            raise InvalidTransitionError(self.entity, current, target)

    def allowed_targets(self, current: str) -> frozenset[str]:
        current = str(current)
        if current not in self.statuses:
            return frozenset()
        return self._table.get(current, frozenset()) | {current}

    def is_terminal(self, status: str) -> bool:
        return str(status) in self.statuses and not self._table.get(str(status))


CONTRACT_TRANSITIONS = {
    ContractStatus.DRAFT: {ContractStatus.ACTIVE},
    ContractStatus.ACTIVE: {ContractStatus.CLOSED, ContractStatus.CANCELED},
    ContractStatus.CLOSED: set(),
    ContractStatus.CANCELED: set(),
}

INVOICE_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.ISSUED, InvoiceStatus.VOID},
    InvoiceStatus.ISSUED: {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.VOID},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID, InvoiceStatus.VOID},
    InvoiceStatus.PAID: set(),
    InvoiceStatus.VOID: set(),
}

contract_transitions = StatusTransitionValidator("contract", CONTRACT_TRANSITIONS)
invoice_transitions = StatusTransitionValidator("invoice", INVOICE_TRANSITIONS)
