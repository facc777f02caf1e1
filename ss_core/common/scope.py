# ss_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ss_core.common.errors import ValidationError


@dataclass(frozen=True)
class Scope:
    organization_id: UUID
    facility_id: UUID


HDR_ORGANIZATION = "X-Organization-Id"
HDR_FACILITY = "X-Facility-Id"

MISSING_SCOPE_MSG = "Missing scope headers. Provide X-Organization-Id and X-Facility-Id."
INVALID_SCOPE_MSG = "Invalid scope headers. Provide valid UUIDs for X-Organization-Id and X-Facility-Id."


def _parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _get_header(request, name: str) -> Optional[str]:
    """
    request.headers is case-insensitive; fallback to META for the test client.
    """
    headers = getattr(request, "headers", None)
    if headers is not None:
        v = headers.get(name)
        if v:
            return v

    meta_key = "HTTP_" + name.upper().replace("-", "_")
    return request.META.get(meta_key)


def resolve_scope(request) -> Optional[Scope]:
    """
    Returns Scope when both headers are present and valid, None otherwise.
    Middleware/test-attached values on the request win over headers.
    """
    org = getattr(request, "organization_id", None)
    fac = getattr(request, "facility_id", None)
    if org and fac:
        ou, fu = _parse_uuid(org), _parse_uuid(fac)
        if ou and fu:
            return Scope(organization_id=ou, facility_id=fu)

    ou = _parse_uuid(_get_header(request, HDR_ORGANIZATION))
    fu = _parse_uuid(_get_header(request, HDR_FACILITY))
    if not ou or not fu:
        return None
    return Scope(organization_id=ou, facility_id=fu)


def ensure_scope_on_request(request) -> bool:
    """
    Permission-layer check. Must not raise (a raise here becomes 400);
    returning False makes DRF answer 403.
    """
    scope = resolve_scope(request)
    if scope is None:
        return False

    request.scope = scope
    request.organization_id = scope.organization_id
    request.facility_id = scope.facility_id
    return True


def require_scope(request) -> Scope:
    scope = getattr(request, "scope", None) or resolve_scope(request)
    if scope is None:
        org_present = bool(_get_header(request, HDR_ORGANIZATION))
        fac_present = bool(_get_header(request, HDR_FACILITY))
        msg = INVALID_SCOPE_MSG if (org_present and fac_present) else MISSING_SCOPE_MSG
        raise ValidationError({"scope": msg}, message=msg)
    return scope
