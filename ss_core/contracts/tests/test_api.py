# ss_core/contracts/tests/test_api.py
from datetime import date, timedelta

import pytest

from ss_core.common.permissions import Role
from ss_core.conftest import scope_headers
from ss_core.inventory.constants import UnitStatus

BASE = "/api/v1/contracts/"


def _create_body(tenant, unit, **overrides):
    body = {
        "tenant": str(tenant.id),
        "unit": str(unit.id),
        "move_in": (date.today() + timedelta(days=1)).isoformat(),
        "monthly_rate": "350.00",
        "terms": "Standard monthly lease.",
    }
    body.update(overrides)
    return body


@pytest.mark.django_db
def test_gerente_creates_draft_and_unit_is_reserved(client_for, headers, tenant, unit):
    resp = client_for(Role.GERENTE).post(BASE, _create_body(tenant, unit), format="json", **headers)

    assert resp.status_code == 201
    assert resp.data["status"] == "DRAFT"
    assert resp.data["unit_number"] == "A-101"
    unit.refresh_from_db()
    assert unit.status == UnitStatus.RESERVADA


@pytest.mark.django_db
def test_financeiro_cannot_write_contracts(client_for, headers, tenant, unit, contract):
    c = client_for(Role.FINANCEIRO)

    assert c.get(BASE, **headers).status_code == 200
    assert c.post(BASE, _create_body(tenant, unit), format="json", **headers).status_code == 403
    resp = c.patch(f"{BASE}{contract.id}/", {"status": "ACTIVE"}, format="json", **headers)
    assert resp.status_code == 403
    assert resp.data["error"]["code"] == "permission_denied"


@pytest.mark.django_db
def test_draft_to_closed_is_rejected(client_for, headers, contract):
    resp = client_for(Role.GERENTE).patch(f"{BASE}{contract.id}/", {"status": "CLOSED"}, format="json", **headers)

    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "invalid_transition"
    assert resp.data["error"]["details"] == {"entity": "contract", "from": "DRAFT", "to": "CLOSED"}


@pytest.mark.django_db
def test_lifecycle_through_api(client_for, headers, contract, unit):
    c = client_for(Role.ADMIN_CORPORATIVO)
    url = f"{BASE}{contract.id}/"

    assert c.patch(url, {"status": "ACTIVE"}, format="json", **headers).data["status"] == "ACTIVE"
    unit.refresh_from_db()
    assert unit.status == UnitStatus.OCUPADA

    assert c.patch(url, {"status": "CANCELED"}, format="json", **headers).status_code == 200
    unit.refresh_from_db()
    assert unit.status == UnitStatus.LIVRE

    resp = c.patch(url, {"notes": "after the fact"}, format="json", **headers)
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "terminal_state"


@pytest.mark.django_db
def test_unit_taken_by_another_contract_conflicts(client_for, headers, tenant, unit, contract):
    resp = client_for(Role.GERENTE).post(BASE, _create_body(tenant, unit), format="json", **headers)
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "conflict"


@pytest.mark.django_db
def test_missing_terms_report_every_field(api_client, headers, tenant, unit):
    resp = api_client.post(BASE, {"tenant": str(tenant.id), "unit": str(unit.id)}, format="json", **headers)

    assert resp.status_code == 400
    assert {"move_in", "monthly_rate", "terms"} <= set(resp.data["error"]["details"])


@pytest.mark.django_db
def test_delete_draft(api_client, headers, contract, unit):
    resp = api_client.delete(f"{BASE}{contract.id}/", **headers)
    assert resp.status_code == 204

    assert api_client.get(f"{BASE}{contract.id}/", **headers).status_code == 404
    unit.refresh_from_db()
    assert unit.status == UnitStatus.LIVRE


@pytest.mark.django_db
def test_contracts_are_scoped(api_client, contract, organization_id):
    other = scope_headers(organization_id, "00000000-0000-0000-0000-000000000999")
    assert api_client.get(f"{BASE}{contract.id}/", **other).status_code == 404
    assert api_client.get(BASE, **other).data["count"] == 0
