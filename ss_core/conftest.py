# ss_core/conftest.py
import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from ss_core.common.permissions import Role
from ss_core.inventory.constants import UnitStatus
from ss_core.inventory.models import Unit
from ss_core.leads.constants import LeadStage
from ss_core.leads.models import Lead
from ss_core.tenants.constants import TenantCategory
from ss_core.tenants.models import Tenant


def scope_headers(organization_id, facility_id):
    """
    Scope headers as the DRF test client expects them (HTTP_ prefix).
    """
    return {
        "HTTP_X_ORGANIZATION_ID": str(organization_id),
        "HTTP_X_FACILITY_ID": str(facility_id),
    }


@pytest.fixture
def organization_id():
    return uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def facility_id():
    return uuid.UUID("00000000-0000-0000-0000-000000000101")


@pytest.fixture
def headers(organization_id, facility_id):
    return scope_headers(organization_id, facility_id)


@pytest.fixture
def make_user(db):
    User = get_user_model()

    def _make(username, *roles):
        user = User.objects.create_user(username=username, password="testpass", is_active=True)
        for role in roles:
            group, _ = Group.objects.get_or_create(name=str(role))
            user.groups.add(group)
        return user

    return _make


@pytest.fixture
def client_for(make_user):
    """
    client_for(Role.GERENTE) -> APIClient authenticated as a user in that role.
    """
    def _client(*roles):
        user = make_user(f"user-{uuid.uuid4().hex[:8]}", *roles)
        c = APIClient()
        c.force_authenticate(user=user)
        return c

    return _client


@pytest.fixture
def user(make_user):
    return make_user("testuser", Role.ADMIN)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def unit(db, organization_id, facility_id):
    return Unit.objects.create(
        organization_id=organization_id,
        facility_id=facility_id,
        unit_number="A-101",
        unit_type="5x5",
        status=UnitStatus.LIVRE,
    )


@pytest.fixture
def other_unit(db, organization_id, facility_id):
    return Unit.objects.create(
        organization_id=organization_id,
        facility_id=facility_id,
        unit_number="A-102",
        unit_type="5x10",
        status=UnitStatus.LIVRE,
    )


@pytest.fixture
def tenant(db, organization_id, facility_id):
    return Tenant.objects.create(
        organization_id=organization_id,
        facility_id=facility_id,
        first_name="Ana",
        last_name="Souza",
        email="ana@example.com",
        document="123.456.789-00",
        category=TenantCategory.PF,
    )


@pytest.fixture
def contract_terms():
    return {
        "move_in": date.today() + timedelta(days=1),
        "monthly_rate": Decimal("350.00"),
        "deposit_amount": Decimal("350.00"),
        "terms": "Standard monthly lease.",
    }


@pytest.fixture
def contract(db, organization_id, facility_id, tenant, unit, contract_terms):
    from ss_core.contracts.services import ContractService

    return ContractService.create_contract(
        organization_id=organization_id,
        facility_id=facility_id,
        tenant_id=tenant.id,
        unit_id=unit.id,
        **contract_terms,
    )


@pytest.fixture
def invoice(db, organization_id, facility_id, tenant):
    from ss_core.billing.services import InvoiceService

    return InvoiceService.create_draft(
        organization_id=organization_id,
        facility_id=facility_id,
        tenant_id=tenant.id,
        items=[
            {"description": "Rent", "quantity": 2, "unit_price": Decimal("10.00")},
            {"description": "Lock", "quantity": 1, "unit_price": Decimal("5.00")},
        ],
    )


@pytest.fixture
def won_lead(db, organization_id, facility_id):
    return Lead.objects.create(
        organization_id=organization_id,
        facility_id=facility_id,
        first_name="Bruno",
        last_name="Lima",
        email="bruno@example.com",
        phone="+55 11 99999-0000",
        stage=LeadStage.WON,
    )
