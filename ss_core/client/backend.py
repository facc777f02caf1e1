# ss_core/client/backend.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ss_core.client.config import ClientConfig
from ss_core.common.errors import (
    ConflictError,
    InvalidTransitionError,
    LifecycleError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    TerminalStateError,
    ValidationError,
)
from ss_core.common.scope import HDR_FACILITY, HDR_ORGANIZATION

logger = logging.getLogger(__name__)


def _envelope(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    if isinstance(body, dict):
        return {"details": body}
    return {}


def error_from_response(response: httpx.Response) -> LifecycleError:
    """
    Map a failed response (error envelope) onto the lifecycle taxonomy.
    """
    err = _envelope(response)
    code = err.get("code")
    message = err.get("message")
    details = err.get("details")
    status = response.status_code

    if status in (400, 422):
        if isinstance(details, dict) and details:
            return ValidationError(details, message=message)
        return ValidationError(message or "Request failed.")
    if status in (401, 403):
        return PermissionDeniedError()
    if status == 404:
        return NotFoundError(message)
    if status == 409:
        info = details if isinstance(details, dict) else {}
        if code == "invalid_transition":
            return InvalidTransitionError(info.get("entity", ""), info.get("from", ""), info.get("to", ""))
        if code == "terminal_state":
            return TerminalStateError(info.get("entity", ""), info.get("status", ""), message)
        return ConflictError()
    return NetworkError()


class BackendClient:
    """
    Thin async wrapper over the REST service. Every call carries the
    scope headers; failures come back as lifecycle errors. No retries.
    """

    def __init__(self, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        headers = {
            HDR_ORGANIZATION: str(config.organization_id),
            HDR_FACILITY: str(config.facility_id),
            "Accept": "application/json",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"

        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/") + "/",
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path.lstrip("/"), **kwargs)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError() from exc

        if response.is_error:
            error = error_from_response(response)
            logger.info("%s %s -> %s (%s)", method, path, response.status_code, error.code)
            raise error
        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._send(method, path, json=json, params=params, headers=headers)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any = None, headers: dict[str, str] | None = None) -> Any:
        return await self.request("POST", path, json=json, headers=headers)

    async def patch(self, path: str, *, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> None:
        await self.request("DELETE", path)

    async def get_bytes(self, path: str) -> bytes:
        response = await self._send("GET", path)
        return response.content
