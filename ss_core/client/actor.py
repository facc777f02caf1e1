# ss_core/client/actor.py
from __future__ import annotations

from ss_core.client.backend import BackendClient
from ss_core.common.permissions import Actor


async def fetch_actor(backend: BackendClient) -> Actor:
    """
    Build the session Actor from GET /me/. Callers pass it explicitly into
    every ledger, contract and conversion command.
    """
    data = await backend.get("me/")
    return Actor.from_roles(
        data.get("roles") or (),
        user_id=(data.get("user") or {}).get("id"),
        extra_capabilities=data.get("capabilities") or (),
    )
