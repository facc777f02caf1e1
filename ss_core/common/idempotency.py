# ss_core/common/idempotency.py
"""
Idempotency-Key replay for non-idempotent POSTs (lead conversion, payment
recording).

A stored entry is keyed by (scope, user, method, path, key) and remembers a
fingerprint of the request body. Replaying the same key with a different
body is a conflict, not a replay.
"""
from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction

from ss_core.common.errors import ConflictError
from ss_core.common.models import IdempotencyRecord
from ss_core.common.scope import Scope

logger = logging.getLogger(__name__)

KEY_HEADER = "Idempotency-Key"

_LOCK = threading.Lock()
_MEMORY: dict[tuple, tuple[str, int, Any]] = {}


def _use_db() -> bool:
    return bool(getattr(settings, "COMMON_IDEMPOTENCY_USE_DB", False))


def idempotency_key(request) -> str | None:
    return request.headers.get(KEY_HEADER) or None


def _fingerprint(request) -> str:
    payload = json.dumps(request.data, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _lookup(scope: Scope, request, key: str) -> dict[str, Any]:
    return {
        "organization_id": scope.organization_id,
        "facility_id": scope.facility_id,
        "user_id": int(request.user.id),
        "method": request.method.upper(),
        "path": request.path,
        "idempotency_key": key,
    }


def _memory_key(lookup: dict[str, Any]) -> tuple:
    return tuple(str(lookup[k]) for k in sorted(lookup))


def replay(request, scope: Scope) -> tuple[int, Any] | None:
    """
    (status_code, data) stored for this request's key, or None.
    """
    key = idempotency_key(request)
    if not key:
        return None

    lookup = _lookup(scope, request, key)
    if _use_db():
        rec = IdempotencyRecord.objects.filter(**lookup).first()
        stored = None if rec is None else (rec.request_hash, rec.status_code, rec.response_data)
    else:
        with _LOCK:
            stored = _MEMORY.get(_memory_key(lookup))

    if stored is None:
        return None

    request_hash, status_code, data = stored
    if request_hash and request_hash != _fingerprint(request):
        raise ConflictError(
            "This Idempotency-Key was already used with a different request.",
            details={"idempotency_key": key},
        )
    logger.info("Replaying %s %s for key=%s", request.method, request.path, key)
    return status_code, data


def remember(request, scope: Scope, data: Any, status_code: int = 200) -> None:
    key = idempotency_key(request)
    if not key:
        return

    lookup = _lookup(scope, request, key)
    request_hash = _fingerprint(request)

    if not _use_db():
        with _LOCK:
            _MEMORY[_memory_key(lookup)] = (request_hash, int(status_code), data)
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                **lookup,
                request_hash=request_hash,
                status_code=int(status_code),
                response_data=data,
            )
    except IntegrityError:
        # a concurrent request with the same key stored first
        logger.info("Idempotency record already stored for %s %s key=%s", request.method, request.path, key)
