# ss_core/common/permissions.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

from ss_core.common.errors import PermissionDeniedError
from ss_core.common.scope import ensure_scope_on_request

_TOKEN_RE = re.compile(r"^(?P<domain>[a-z]+)\.(?P<verb>[a-z]+)_(?P<model>[a-z]+)$")


class Capability(str, Enum):
    """
    Closed set of capability tokens. Wire format: "{domain}.{verb}_{model}".
    """
    VIEW_INVOICE = "billing.view_invoice"
    ADD_INVOICE = "billing.add_invoice"
    CHANGE_INVOICE = "billing.change_invoice"
    DELETE_INVOICE = "billing.delete_invoice"
    RECORD_PAYMENT = "billing.record_payment"
    VIEW_INVOICEITEM = "billing.view_invoiceitem"
    ADD_INVOICEITEM = "billing.add_invoiceitem"
    CHANGE_INVOICEITEM = "billing.change_invoiceitem"
    DELETE_INVOICEITEM = "billing.delete_invoiceitem"

    @property
    def domain(self) -> str:
        return _TOKEN_RE.match(self.value).group("domain")

    @property
    def verb(self) -> str:
        return _TOKEN_RE.match(self.value).group("verb")

    @property
    def model(self) -> str:
        return _TOKEN_RE.match(self.value).group("model")

    def __str__(self) -> str:
        return self.value


def parse_capability(token: str | Capability) -> Capability:
    if isinstance(token, Capability):
        return token
    if not isinstance(token, str) or not _TOKEN_RE.match(token):
        raise ValueError(f"Malformed capability token: {token!r}")
    try:
        return Capability(token)
    except ValueError:
        raise ValueError(f"Unknown capability token: {token!r}") from None


class Role(str, Enum):
    ADMIN = "admin"
    ADMIN_CORPORATIVO = "admin_corporativo"
    GERENTE = "gerente"
    FINANCEIRO = "financeiro"
    OPS = "ops"
    VIEWER = "viewer"

    def __str__(self) -> str:
        return self.value


CONTRACT_WRITER_ROLES = frozenset({Role.ADMIN, Role.ADMIN_CORPORATIVO, Role.GERENTE})

_FULL_BILLING = frozenset(Capability)

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: _FULL_BILLING,
    Role.ADMIN_CORPORATIVO: _FULL_BILLING,
    Role.GERENTE: frozenset({
        Capability.VIEW_INVOICE,
        Capability.ADD_INVOICE,
        Capability.CHANGE_INVOICE,
        Capability.VIEW_INVOICEITEM,
        Capability.ADD_INVOICEITEM,
    }),
    Role.FINANCEIRO: _FULL_BILLING,
    Role.OPS: frozenset({Capability.VIEW_INVOICE, Capability.VIEW_INVOICEITEM}),
    Role.VIEWER: frozenset(),
}


@dataclass(frozen=True)
class Actor:
    """
    The acting user, passed explicitly into every gate/orchestrator call.
    """
    user_id: str | int | None
    roles: frozenset[str] = field(default_factory=frozenset)
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def from_roles(
        cls,
        roles: Iterable[str],
        *,
        user_id: str | int | None = None,
        extra_capabilities: Iterable[str | Capability] = (),
    ) -> "Actor":
        role_set = frozenset(str(r).strip().lower() for r in roles if r)
        caps: Set[Capability] = set()
        for role in role_set:
            try:
                caps.update(ROLE_CAPABILITIES[Role(role)])
            except ValueError:
                # Unknown role tags grant nothing.
                continue
        caps.update(parse_capability(c) for c in extra_capabilities)
        return cls(user_id=user_id, roles=role_set, capabilities=frozenset(caps))


ANONYMOUS = Actor(user_id=None)


def has_permission(actor: Actor | None, requirement: str | Capability) -> bool:
    if actor is None:
        return False
    return parse_capability(requirement) in actor.capabilities


def has_any_role(actor: Actor | None, roles: Iterable[str]) -> bool:
    if actor is None:
        return False
    return bool(actor.roles & {str(r) for r in roles})


def require_permission(actor: Actor | None, requirement: str | Capability) -> None:
    if not has_permission(actor, requirement):
        raise PermissionDeniedError()


def require_any_role(actor: Actor | None, roles: Iterable[str]) -> None:
    if not has_any_role(actor, roles):
        raise PermissionDeniedError()


def actor_from_user(user) -> Actor:
    """
    Resolve an Actor from a Django user:
    1) Django groups -> role tags (lowercased)
    2) Superuser treated as admin
    3) Django model permissions that are known capability tokens
       (e.g. "billing.add_invoiceitem") are merged in.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return ANONYMOUS

    roles: Set[str] = set()
    if getattr(user, "is_superuser", False):
        roles.add(Role.ADMIN.value)

    if hasattr(user, "groups"):
        roles.update(name.lower() for name in user.groups.values_list("name", flat=True))

    extra: list[Capability] = []
    if hasattr(user, "get_all_permissions"):
        for token in user.get_all_permissions():
            try:
                extra.append(parse_capability(token))
            except ValueError:
                continue

    return Actor.from_roles(roles, user_id=getattr(user, "id", None), extra_capabilities=extra)


# -----------------------------
# DRF permission classes
# -----------------------------

class _ActionPermission(BasePermission):
    """
    Shared action inference for both gate styles below.

    - Scope headers must be present and valid.
    - Unknown actions are denied, except SAFE methods, which fall back to
      list/retrieve.
    """
    message = PermissionDeniedError.default_message

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def _requirement_for(self, request, view, mapping: dict):
        action = self._infer_action(request, view)
        if action in mapping:
            return True, mapping[action]

        if request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            read_action = "retrieve" if ("pk" in kwargs or "id" in kwargs) else "list"
            if read_action in mapping:
                return True, mapping[read_action]

        return False, None

    def _actor(self, request) -> Actor:
        actor = getattr(request, "actor", None)
        if actor is None:
            actor = actor_from_user(request.user)
            request.actor = actor
        return actor

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class CapabilityPermission(_ActionPermission):
    """
    Views declare `required_capability_per_action = {"action": Capability | None}`.
    None means "authenticated is enough".
    """

    def has_permission(self, request, view) -> bool:
        if not ensure_scope_on_request(request):
            return False

        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        mapping = getattr(view, "required_capability_per_action", {}) or {}
        known, requirement = self._requirement_for(request, view, mapping)
        if not known:
            return False
        if requirement is None:
            return True
        return has_permission(self._actor(request), requirement)


class RoleSetPermission(_ActionPermission):
    """
    Views declare `allowed_roles_per_action = {"action": {roles} | None}`.
    """

    def has_permission(self, request, view) -> bool:
        if not ensure_scope_on_request(request):
            return False

        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        mapping = getattr(view, "allowed_roles_per_action", {}) or {}
        known, roles = self._requirement_for(request, view, mapping)
        if not known:
            return False
        if roles is None:
            return True
        return has_any_role(self._actor(request), roles)
