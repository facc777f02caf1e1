# ss_core/common/api/params.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import OpenApiParameter

from ss_core.common.errors import NotFoundError, ValidationError
from ss_core.common.scope import HDR_FACILITY, HDR_ORGANIZATION


def uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Invalid UUID"})


def path_uuid(value, entity: str = "Record") -> UUID:
    """
    Path ids that are not UUIDs cannot match any row: answer 404, not 400.
    """
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(f"{entity} not found in this scope.")


SCOPE_HEADERS = [
    OpenApiParameter(name=HDR_ORGANIZATION, location=OpenApiParameter.HEADER, required=True, type=str),
    OpenApiParameter(name=HDR_FACILITY, location=OpenApiParameter.HEADER, required=True, type=str),
]

IDEMPOTENCY_HEADER = OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)
