# ss_core/leads/tests/test_conversion.py
import uuid
from datetime import date, timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from ss_core.common.permissions import Role
from ss_core.contracts.models import Contract
from ss_core.inventory.constants import UnitStatus
from ss_core.inventory.models import Unit
from ss_core.leads.constants import LeadStage
from ss_core.leads.models import Lead
from ss_core.tenants.models import Tenant


def _url(lead):
    return f"/api/v1/leads/{lead.id}/convert/"


def _body(target_unit, **contract_overrides):
    contract = {
        "unit": str(target_unit.id),
        "move_in": (date.today() + timedelta(days=2)).isoformat(),
        "monthly_rate": "420.00",
        "terms": "Standard monthly lease.",
    }
    contract.update(contract_overrides)
    return {
        "tenant": {
            "first_name": "Bruno",
            "last_name": "Lima",
            "email": "bruno@example.com",
            "document": "987.654.321-00",
            "category": "PF",
        },
        "contract": contract,
    }


@pytest.mark.django_db
def test_conversion_creates_tenant_contract_and_links_lead(client_for, headers, won_lead, unit):
    resp = client_for(Role.GERENTE).post(_url(won_lead), _body(unit), format="json", **headers)

    assert resp.status_code == 201
    tenant_id = resp.data["tenant"]["id"]
    assert str(resp.data["contract"]["tenant"]) == tenant_id
    assert resp.data["contract"]["status"] == "DRAFT"
    assert str(resp.data["lead"]["converted_tenant"]) == tenant_id

    won_lead.refresh_from_db()
    unit.refresh_from_db()
    assert str(won_lead.converted_tenant_id) == tenant_id
    assert won_lead.converted_at is not None
    assert unit.status == UnitStatus.RESERVADA


@pytest.mark.django_db
def test_second_conversion_is_rejected(api_client, headers, won_lead, unit, other_unit):
    assert api_client.post(_url(won_lead), _body(unit), format="json", **headers).status_code == 201

    resp = api_client.post(_url(won_lead), _body(other_unit), format="json", **headers)

    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "terminal_state"
    assert Tenant.objects.count() == 1
    assert Contract.objects.count() == 1


@pytest.mark.django_db
def test_unit_taken_rolls_everything_back(api_client, headers, won_lead, unit):
    unit.status = UnitStatus.OCUPADA
    unit.save()

    resp = api_client.post(_url(won_lead), _body(unit), format="json", **headers)

    assert resp.status_code == 409
    assert Tenant.objects.count() == 0
    assert Contract.objects.count() == 0
    won_lead.refresh_from_db()
    assert won_lead.converted_tenant_id is None


@pytest.mark.django_db
def test_missing_fields_are_reported_together(api_client, headers, won_lead, unit):
    body = _body(unit, monthly_rate="", terms="")
    body["tenant"]["document"] = ""

    resp = api_client.post(_url(won_lead), body, format="json", **headers)

    assert resp.status_code == 400
    assert {"document", "monthly_rate", "terms"} <= set(resp.data["error"]["details"])
    assert Tenant.objects.count() == 0


@pytest.mark.django_db
def test_bad_unit_id_is_a_validation_error(api_client, headers, won_lead, unit):
    resp = api_client.post(_url(won_lead), _body(unit, unit="not-a-uuid"), format="json", **headers)

    assert resp.status_code == 400
    assert "unit" in resp.data["error"]["details"]


@pytest.mark.django_db
def test_only_won_leads_convert(api_client, headers, organization_id, facility_id, unit):
    lead = Lead.objects.create(
        organization_id=organization_id,
        facility_id=facility_id,
        first_name="Carla",
        stage=LeadStage.QUALIFIED,
    )
    resp = api_client.post(_url(lead), _body(unit), format="json", **headers)

    assert resp.status_code == 400
    assert "stage" in resp.data["error"]["details"]


@pytest.mark.django_db
def test_conversion_needs_contract_writer(client_for, headers, won_lead, unit):
    for role in (Role.FINANCEIRO, Role.OPS, Role.VIEWER):
        resp = client_for(role).post(_url(won_lead), _body(unit), format="json", **headers)
        assert resp.status_code == 403
    assert Tenant.objects.count() == 0


@pytest.mark.django_db
@override_settings(SS_CONVERSION_CONTRACT_STATUS="ACTIVE")
def test_conversion_can_activate_immediately(api_client, headers, won_lead, unit):
    resp = api_client.post(_url(won_lead), _body(unit), format="json", **headers)

    assert resp.status_code == 201
    assert resp.data["contract"]["status"] == "ACTIVE"
    unit.refresh_from_db()
    assert unit.status == UnitStatus.OCUPADA


@pytest.mark.django_db
def test_idempotent_replay_returns_first_result(api_client, headers, won_lead, unit):
    key = uuid.uuid4().hex
    first = api_client.post(_url(won_lead), _body(unit), format="json", HTTP_IDEMPOTENCY_KEY=key, **headers)
    second = api_client.post(_url(won_lead), _body(unit), format="json", HTTP_IDEMPOTENCY_KEY=key, **headers)

    assert first.status_code == second.status_code == 201
    assert second.data["tenant"]["id"] == first.data["tenant"]["id"]
    assert Tenant.objects.count() == 1


@pytest.mark.django_db
def test_converted_lead_is_frozen(api_client, headers, won_lead, unit):
    api_client.post(_url(won_lead), _body(unit), format="json", **headers)

    resp = api_client.patch(f"/api/v1/leads/{won_lead.id}/", {"notes": "x"}, format="json", **headers)
    assert resp.status_code == 409
    assert api_client.delete(f"/api/v1/leads/{won_lead.id}/", **headers).status_code == 409


@pytest.mark.django_db
@pytest.mark.parametrize("rate,deposit", [("NaN", "Infinity"), ("sNaN", "-Infinity")])
def test_non_finite_amounts_are_validation_errors(api_client, headers, won_lead, unit, rate, deposit):
    resp = api_client.post(
        _url(won_lead), _body(unit, monthly_rate=rate, deposit_amount=deposit), format="json", **headers
    )

    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"
    assert resp.data["error"]["details"]["monthly_rate"] == ["Enter a valid number."]
    assert resp.data["error"]["details"]["deposit_amount"] == ["Enter a valid number."]
    assert not Tenant.objects.exists()
    unit.refresh_from_db()
    assert unit.status == UnitStatus.LIVRE


@pytest.mark.django_db
def test_lapsed_reservation_unit_can_be_converted_onto(
    api_client, headers, won_lead, unit, contract
):
    Unit.objects.filter(id=unit.id).update(reservation_expires_at=timezone.now() - timedelta(days=1))

    resp = api_client.post(_url(won_lead), _body(unit), format="json", **headers)

    assert resp.status_code == 201
    unit.refresh_from_db()
    assert unit.status == UnitStatus.RESERVADA
    assert unit.reservation_expires_at > timezone.now()
