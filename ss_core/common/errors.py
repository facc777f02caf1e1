# ss_core/common/errors.py
from __future__ import annotations

from typing import Any, Mapping


class LifecycleError(Exception):
    """
    Base for every business-lifecycle failure.

    Each subclass carries the HTTP status and envelope code it maps to, so the
    same class can be raised locally (client guards) and rendered by the API
    exception handler (server re-validation).
    """
    status_code = 400
    default_code = "error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None, *, details: Any = None, code: str | None = None):
        self.message = message or self.default_message
        self.details = details
        self.code = code or self.default_code
        super().__init__(self.message)


def _flatten(messages: Any) -> list[str]:
    if messages is None:
        return []
    if isinstance(messages, (list, tuple)):
        out: list[str] = []
        for m in messages:
            out.extend(_flatten(m))
        return out
    if isinstance(messages, Mapping):
        return [f"{k}: {'; '.join(_flatten(v))}" for k, v in messages.items()]
    return [str(messages)]


def aggregate_messages(errors: Mapping[str, Any]) -> str:
    """
    One user-facing message for a field-keyed error dict:
        {"first_name": ["Required."], "document": "Required."}
        -> "first_name: Required.; document: Required."
    """
    parts = []
    for field, messages in errors.items():
        parts.append(f"{field}: {', '.join(_flatten(messages))}")
    return "; ".join(parts)


class ValidationError(LifecycleError):
    status_code = 400
    default_code = "validation_error"
    default_message = "Please fill in all required fields."

    def __init__(self, errors: Mapping[str, Any] | str, message: str | None = None):
        if isinstance(errors, str):
            errors = {"non_field_errors": [errors]}
        self.errors = {k: _flatten(v) for k, v in errors.items()}
        super().__init__(message or aggregate_messages(self.errors) or None, details=self.errors)


class PermissionDeniedError(LifecycleError):
    status_code = 403
    default_code = "permission_denied"
    default_message = "You are not authorized to perform this action."


class NotFoundError(LifecycleError):
    status_code = 404
    default_code = "not_found"
    default_message = "Not found."


class ConflictError(LifecycleError):
    """
    Server-side rejection of a write the client believed valid (stale read).
    """
    status_code = 409
    default_code = "conflict"
    default_message = "This record was changed by someone else. Refresh and try again."


class InvalidTransitionError(ConflictError):
    default_code = "invalid_transition"

    def __init__(self, entity: str, from_status: str, to_status: str):
        self.entity = entity
        self.from_status = str(from_status)
        self.to_status = str(to_status)
        super().__init__(
            f"Invalid status transition from {self.from_status} to {self.to_status}.",
            details={"entity": entity, "from": self.from_status, "to": self.to_status},
        )


class TerminalStateError(ConflictError):
    default_code = "terminal_state"

    def __init__(self, entity: str, status: str, message: str | None = None):
        self.entity = entity
        self.status = str(status)
        super().__init__(
            message or f"{entity.capitalize()} is {self.status} and can no longer be changed.",
            details={"entity": entity, "status": self.status},
        )


class DuplicateSubmissionError(LifecycleError):
    status_code = 409
    default_code = "duplicate_submission"
    default_message = "This action is already in progress."


class NetworkError(LifecycleError):
    status_code = 503
    default_code = "network_error"
    default_message = "Unable to reach the server. Please try again."
