# ss_core/client/tests/conftest.py
import json

import httpx
import pytest
import pytest_asyncio

from ss_core.client.backend import BackendClient
from ss_core.client.config import ClientConfig
from ss_core.common.permissions import Actor, Role


class FakeServer:
    """
    Canned responses keyed by (method, path); every request is recorded.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, body=None, content=None, headers=None):
        self.routes[(method, path)] = (status, body, content, headers)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"error": {"code": "not_found", "message": "Not found.", "details": None}})
        status, body, content, headers = self.routes[key]
        if content is not None:
            return httpx.Response(status, content=content, headers=headers)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def body_of(self, index):
        return json.loads(self.requests[index].content)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def config():
    return ClientConfig(
        base_url="http://testserver/api/v1",
        organization_id="00000000-0000-0000-0000-000000000001",
        facility_id="00000000-0000-0000-0000-000000000101",
        token="secret",
    )


@pytest_asyncio.fixture
async def backend(config, server):
    client = BackendClient(config, transport=httpx.MockTransport(server.handle))
    yield client
    await client.aclose()


@pytest.fixture
def as_role():
    def _actor(*roles):
        return Actor.from_roles([str(r) for r in roles], user_id=1)

    return _actor


@pytest.fixture
def admin(as_role):
    return as_role(Role.ADMIN)
