# ss_core/leads/tests/test_wizard.py
from datetime import date, timedelta

import pytest

from ss_core.common.errors import InvalidTransitionError, TerminalStateError, ValidationError
from ss_core.leads.wizard import ConversionWizard, TenantInfo, WizardStep, ensure_convertible

TODAY = date(2026, 3, 10)

LEAD = {
    "id": "lead-1",
    "first_name": "Bruno",
    "last_name": "Lima",
    "email": "bruno@example.com",
    "phone": "+55 11 99999-0000",
    "stage": "WON",
    "converted_tenant": None,
}

UNITS = [
    {"id": "u-1", "unit_number": "A-101", "status": "LIVRE"},
    {"id": "u-2", "unit_number": "A-102", "status": "OCUPADA"},
]


def _wizard():
    return ConversionWizard.start(LEAD, UNITS, today=TODAY)


def _fill_to_confirmation(wizard):
    wizard.update_tenant(document="123.456.789-00", category="PF")
    wizard.advance()
    wizard.select_unit("u-1")
    wizard.advance()
    wizard.update_terms(move_in=TODAY, monthly_rate="350.00", terms="Standard lease")
    wizard.advance()
    return wizard


def test_entry_guard_requires_won_and_unconverted():
    ensure_convertible(LEAD)

    with pytest.raises(ValidationError):
        ensure_convertible({**LEAD, "stage": "QUALIFIED"})

    converted = {**LEAD, "converted_tenant": "t-1"}
    for _ in range(2):
        with pytest.raises(TerminalStateError):
            ConversionWizard.start(converted, UNITS, today=TODAY)


def test_tenant_info_is_seeded_from_lead():
    info = TenantInfo.from_lead(LEAD)
    assert (info.first_name, info.last_name, info.email, info.phone_primary) == (
        "Bruno",
        "Lima",
        "bruno@example.com",
        "+55 11 99999-0000",
    )


def test_only_livre_units_are_offered():
    wizard = _wizard()
    assert set(wizard.available_units) == {"u-1"}


def test_tenant_step_reports_all_missing_fields():
    wizard = ConversionWizard.start({**LEAD, "first_name": "", "last_name": ""}, UNITS, today=TODAY)

    with pytest.raises(ValidationError) as exc:
        wizard.advance()

    assert set(exc.value.errors) == {"first_name", "last_name", "document", "category"}
    assert wizard.step == WizardStep.TENANT_INFO


def test_unit_step_requires_an_available_selection():
    wizard = _wizard()
    wizard.update_tenant(document="1", category="PJ")
    wizard.advance()

    with pytest.raises(ValidationError):
        wizard.advance()
    with pytest.raises(ValidationError):
        wizard.select_unit("u-2")

    wizard.select_unit("u-1")
    assert wizard.advance() == WizardStep.CONTRACT_TERMS


def test_terms_step_validation():
    wizard = _wizard()
    wizard.update_tenant(document="1", category="PF")
    wizard.advance()
    wizard.select_unit("u-1")
    wizard.advance()

    wizard.update_terms(move_in=TODAY - timedelta(days=1), move_out=TODAY - timedelta(days=2))
    with pytest.raises(ValidationError) as exc:
        wizard.advance()

    assert set(exc.value.errors) == {"move_in", "move_out", "monthly_rate", "terms"}


def test_back_preserves_entered_data():
    wizard = _fill_to_confirmation(_wizard())

    assert wizard.back() == WizardStep.CONTRACT_TERMS
    assert wizard.back() == WizardStep.UNIT_SELECTION
    assert wizard.unit_id == "u-1"
    assert wizard.back() == WizardStep.TENANT_INFO
    assert wizard.back() == WizardStep.TENANT_INFO
    assert wizard.tenant.document == "123.456.789-00"


def test_editing_outside_current_step_is_rejected():
    wizard = _wizard()
    with pytest.raises(InvalidTransitionError):
        wizard.select_unit("u-1")


def test_summary_and_submit_payload():
    wizard = _fill_to_confirmation(_wizard())
    assert wizard.step == WizardStep.CONFIRMATION

    summary = wizard.summary()
    assert summary["unit"] == {"id": "u-1", "unit_number": "A-101"}
    assert summary["tenant"]["first_name"] == "Bruno"

    payload = wizard.submit_payload()
    assert payload["tenant"]["document"] == "123.456.789-00"
    assert payload["contract"] == {
        "unit": "u-1",
        "move_in": "2026-03-10",
        "move_out": None,
        "monthly_rate": "350.00",
        "deposit_amount": None,
        "terms": "Standard lease",
        "notes": "",
    }

    with pytest.raises(InvalidTransitionError):
        wizard.advance()


def test_submit_payload_only_from_confirmation():
    with pytest.raises(InvalidTransitionError):
        _wizard().submit_payload()
