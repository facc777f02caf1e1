# ss_core/client/tests/test_backend.py
import httpx
import pytest

from ss_core.client.actor import fetch_actor
from ss_core.client.backend import BackendClient, error_from_response
from ss_core.client.config import ClientConfig
from ss_core.common.errors import (
    ConflictError,
    InvalidTransitionError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ss_core.common.permissions import Capability


def _resp(status, error=None):
    if error is None:
        return httpx.Response(status)
    return httpx.Response(status, json={"error": error})


def test_error_mapping():
    assert isinstance(error_from_response(_resp(401)), PermissionDeniedError)
    assert isinstance(error_from_response(_resp(403)), PermissionDeniedError)
    assert isinstance(error_from_response(_resp(404)), NotFoundError)
    assert isinstance(error_from_response(_resp(500)), NetworkError)

    stale = error_from_response(_resp(409, {"code": "conflict", "message": "x", "details": None}))
    assert type(stale) is ConflictError

    bad = error_from_response(
        _resp(409, {"code": "invalid_transition", "details": {"entity": "invoice", "from": "DRAFT", "to": "PAID"}})
    )
    assert isinstance(bad, InvalidTransitionError)
    assert bad.to_status == "PAID"

    invalid = error_from_response(
        _resp(400, {"code": "validation_error", "message": "amount: Required.", "details": {"amount": ["Required."]}})
    )
    assert isinstance(invalid, ValidationError)
    assert invalid.message == "amount: Required."


@pytest.mark.asyncio
async def test_transport_failure_is_network_error(config):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with BackendClient(config, transport=httpx.MockTransport(handler)) as backend:
        with pytest.raises(NetworkError):
            await backend.get("me/")


@pytest.mark.asyncio
async def test_fetch_actor_from_me(backend, server):
    server.add(
        "GET",
        "/api/v1/me/",
        body={
            "user": {"id": 7, "username": "ana"},
            "roles": ["gerente"],
            "capabilities": ["billing.view_invoice"],
            "active_scope": None,
        },
    )

    actor = await fetch_actor(backend)

    assert actor.user_id == 7
    assert actor.roles == frozenset({"gerente"})
    assert Capability.ADD_INVOICEITEM in actor.capabilities
    assert Capability.DELETE_INVOICEITEM not in actor.capabilities


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SS_API_BASE_URL", "https://api.example.com/api/v1")
    monkeypatch.setenv("SS_ORGANIZATION_ID", "org")
    monkeypatch.setenv("SS_FACILITY_ID", "fac")
    monkeypatch.setenv("SS_TOTAL_EPSILON", "0.05")

    config = ClientConfig.from_env()

    assert config.base_url == "https://api.example.com/api/v1"
    assert str(config.total_epsilon) == "0.05"
