# ss_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from ss_core.common.errors import LifecycleError, aggregate_messages

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

# First match wins; order subclasses before their bases.
_DRF_CODES = (
    (drf_exceptions.ValidationError, "validation_error"),
    (drf_exceptions.NotAuthenticated, "not_authenticated"),
    (drf_exceptions.AuthenticationFailed, "not_authenticated"),
    (drf_exceptions.PermissionDenied, "permission_denied"),
    (drf_exceptions.NotFound, "not_found"),
    (Http404, "not_found"),
    (drf_exceptions.MethodNotAllowed, "method_not_allowed"),
)


def request_id_for(request) -> str:
    """
    The caller's X-Request-Id when sent, otherwise a fresh one. Cached on
    the request so every log line and envelope for it agree.
    """
    if request is None:
        return uuid.uuid4().hex

    rid = getattr(request, "request_id", None)
    if not rid:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.request_id = rid
    return rid


def error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": request_id_for(request),
        }
    }


def _drf_code(exc: Exception, http_status: int) -> str:
    for exc_class, code in _DRF_CODES:
        if isinstance(exc, exc_class):
            return code
    if isinstance(exc, drf_exceptions.APIException):
        return exc.default_code or "api_error"
    return "server_error" if http_status >= 500 else "error"


def _split_drf_payload(data: Any) -> tuple[str, Any]:
    """
    {"detail": msg, ...rest} -> (msg, rest or None)
    {"field": [...], ...}    -> (aggregated field messages, data)
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), (rest or None)
    if isinstance(data, dict) and data:
        return aggregate_messages(data), data
    if isinstance(data, list) and data:
        return "; ".join(str(m) for m in data), data
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    if isinstance(exc, LifecycleError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("Rejected request: %s (%s)", exc.code, exc.message)
        return Response(
            error_envelope(request=request, code=exc.code, message=exc.message, details=exc.details),
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled API error", exc_info=exc)
        return Response(
            error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = _split_drf_payload(response.data)
    return Response(
        error_envelope(
            request=request,
            code=_drf_code(exc, response.status_code),
            message=message,
            details=details,
        ),
        status=response.status_code,
        headers=dict(response.items()),
    )
