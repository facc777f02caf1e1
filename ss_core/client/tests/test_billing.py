# ss_core/client/tests/test_billing.py
import asyncio
from decimal import Decimal

import httpx
import pytest

from ss_core.client.backend import BackendClient
from ss_core.client.billing import BillingLedger
from ss_core.client.records import InvoiceRecord
from ss_core.common.errors import (
    DuplicateSubmissionError,
    PermissionDeniedError,
    TerminalStateError,
    ValidationError,
)
from ss_core.common.permissions import Role

INV = "11111111-1111-1111-1111-111111111111"


def _invoice(status="DRAFT", total="25.00", items=None):
    return InvoiceRecord.from_api(
        {
            "id": INV,
            "status": status,
            "total_amount": total,
            "items": items
            if items is not None
            else [
                {"id": "i-1", "description": "Rent", "quantity": 2, "unit_price": "10.00", "total_amount": "20.00"},
                {"id": "i-2", "description": "Lock", "quantity": 1, "unit_price": "5.00", "total_amount": "5.00"},
            ],
        }
    )


@pytest.mark.asyncio
async def test_gerente_cannot_remove_item_and_nothing_is_sent(backend, server, as_role):
    ledger = BillingLedger(backend)

    with pytest.raises(PermissionDeniedError):
        await ledger.remove_item(as_role(Role.GERENTE), _invoice(), "i-1")

    assert server.requests == []


@pytest.mark.asyncio
async def test_void_invoice_rejects_payment_before_request(backend, server, admin):
    ledger = BillingLedger(backend)

    with pytest.raises(TerminalStateError) as exc:
        await ledger.record_payment(admin, _invoice(status="VOID"), amount="10")

    assert exc.value.status == "VOID"
    assert server.requests == []


@pytest.mark.asyncio
async def test_capability_is_checked_before_terminal_state(backend, server, as_role):
    ledger = BillingLedger(backend)

    with pytest.raises(PermissionDeniedError):
        await ledger.add_item(as_role(Role.OPS), _invoice(status="PAID"), description="x", quantity=1, unit_price=1)
    assert server.requests == []


@pytest.mark.asyncio
async def test_local_item_rules_report_every_field(backend, server, admin):
    ledger = BillingLedger(backend)

    with pytest.raises(ValidationError) as exc:
        await ledger.add_item(admin, _invoice(), description="", quantity=0, unit_price="-1")

    assert set(exc.value.errors) == {"description", "quantity", "unit_price"}
    assert server.requests == []


@pytest.mark.asyncio
async def test_add_item_posts_normalized_body(backend, server, admin):
    server.add(
        "POST",
        f"/api/v1/invoices/{INV}/items/",
        status=201,
        body={"id": "i-3", "description": "Insurance", "quantity": 3, "unit_price": "0.10", "total_amount": "0.30"},
    )
    ledger = BillingLedger(backend)

    item = await ledger.add_item(admin, _invoice(), description=" Insurance ", quantity=3, unit_price=0.1)

    assert item.total_amount == Decimal("0.30")
    assert server.body_of(0) == {"description": "Insurance", "quantity": 3, "unit_price": "0.1"}
    assert server.requests[0].headers["X-Organization-Id"] == "00000000-0000-0000-0000-000000000001"
    assert server.requests[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_payment_sends_idempotency_key(backend, server, as_role):
    server.add(
        "POST",
        "/api/v1/invoices/record-payment/",
        status=201,
        body={"id": "p-1", "invoice": INV, "amount": "25.00", "method": "CARD", "status": "RECORDED"},
    )
    ledger = BillingLedger(backend)

    pay = await ledger.record_payment(
        as_role(Role.FINANCEIRO), _invoice(status="ISSUED"), amount="25", method="CARD", idempotency_key="k-1"
    )

    assert pay.amount == Decimal("25.00")
    assert server.requests[0].headers["Idempotency-Key"] == "k-1"
    assert server.body_of(0) == {"invoice": INV, "amount": "25.00", "method": "CARD"}


@pytest.mark.asyncio
async def test_void_requires_reason_locally(backend, server, admin):
    ledger = BillingLedger(backend)

    with pytest.raises(ValidationError):
        await ledger.void_invoice(admin, _invoice(), "   ")
    assert server.requests == []


@pytest.mark.asyncio
async def test_removing_missing_item_is_silent(backend, server, admin):
    ledger = BillingLedger(backend)

    await ledger.remove_item(admin, _invoice(), "gone")

    assert len(server.requests) == 1
    assert server.requests[0].method == "DELETE"


@pytest.mark.asyncio
async def test_server_terminal_state_is_mapped(backend, server, admin):
    server.add(
        "PATCH",
        f"/api/v1/invoices/{INV}/void/",
        status=409,
        body={
            "error": {
                "code": "terminal_state",
                "message": "Invoice is PAID and can no longer be changed.",
                "details": {"entity": "invoice", "status": "PAID"},
            }
        },
    )
    ledger = BillingLedger(backend)

    with pytest.raises(TerminalStateError) as exc:
        await ledger.void_invoice(admin, _invoice(status="ISSUED"), "Stale screen")

    assert exc.value.status == "PAID"


@pytest.mark.asyncio
async def test_duplicate_in_flight_payment_is_refused(config, as_role):
    release = asyncio.Event()
    calls = []

    async def handler(request):
        calls.append(request)
        await release.wait()
        return httpx.Response(
            201, json={"id": "p-1", "invoice": INV, "amount": "5.00", "method": "CASH", "status": "RECORDED"}
        )

    async with BackendClient(config, transport=httpx.MockTransport(handler)) as backend:
        ledger = BillingLedger(backend)
        actor = as_role(Role.FINANCEIRO)
        invoice = _invoice(status="ISSUED")

        first = asyncio.create_task(ledger.record_payment(actor, invoice, amount="5"))
        await asyncio.sleep(0)
        while not calls:
            await asyncio.sleep(0)

        with pytest.raises(DuplicateSubmissionError):
            await ledger.record_payment(actor, invoice, amount="5")

        release.set()
        await first

    assert len(calls) == 1
    assert not ledger.guard.is_busy("invoice.record_payment", INV, "5.00", "CASH")


@pytest.mark.asyncio
async def test_fetch_flags_total_mismatch(backend, server, admin, caplog):
    server.add(
        "GET",
        f"/api/v1/invoices/{INV}/",
        body={
            "id": INV,
            "status": "ISSUED",
            "total_amount": "30.00",
            "items": [{"id": "i-1", "description": "Rent", "quantity": 2, "unit_price": "10.00", "total_amount": "20.00"}],
        },
    )
    ledger = BillingLedger(backend)

    invoice = await ledger.fetch(admin, INV)

    assert invoice.total_amount == Decimal("30.00")
    check = ledger.verify_total(invoice)
    assert not check.ok
    assert check.computed == Decimal("20.00")
    assert "Invoice total mismatch" in caplog.text


@pytest.mark.asyncio
async def test_document_download_allowed_on_paid(backend, server, as_role):
    server.add(
        "GET",
        f"/api/v1/invoices/{INV}/pdf/",
        content=b"%PDF-1.4 test",
        headers={"Content-Type": "application/pdf"},
    )
    ledger = BillingLedger(backend)

    data = await ledger.download_document(as_role(Role.OPS), _invoice(status="PAID"))

    assert data.startswith(b"%PDF")


TERMINAL_WRITES = {
    "add_item": lambda ledger, actor, inv: ledger.add_item(actor, inv, description="Late fee", quantity=1, unit_price="5"),
    "update_item": lambda ledger, actor, inv: ledger.update_item(actor, inv, "i-1", quantity=3),
    "remove_item": lambda ledger, actor, inv: ledger.remove_item(actor, inv, "i-1"),
    "void_invoice": lambda ledger, actor, inv: ledger.void_invoice(actor, inv, "Duplicate"),
    "record_payment": lambda ledger, actor, inv: ledger.record_payment(actor, inv, amount="5"),
    "delete_invoice": lambda ledger, actor, inv: ledger.delete_invoice(actor, inv),
}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["PAID", "VOID"])
@pytest.mark.parametrize("write", sorted(TERMINAL_WRITES))
async def test_terminal_invoice_rejects_every_write_locally(backend, server, admin, status, write):
    ledger = BillingLedger(backend)

    with pytest.raises(TerminalStateError) as exc:
        await TERMINAL_WRITES[write](ledger, admin, _invoice(status=status))

    assert exc.value.status == status
    assert server.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
async def test_non_finite_payment_is_rejected_locally(backend, server, as_role, amount):
    ledger = BillingLedger(backend)

    with pytest.raises(ValidationError) as exc:
        await ledger.record_payment(as_role(Role.FINANCEIRO), _invoice(status="ISSUED"), amount=amount)

    assert exc.value.errors == {"amount": ["Enter a valid number."]}
    assert server.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [("unit_price", "NaN"), ("unit_price", "Infinity"), ("quantity", "Infinity")])
async def test_non_finite_item_values_are_rejected_locally(backend, server, admin, field, value):
    ledger = BillingLedger(backend)
    item = {"description": "Rent", "quantity": 1, "unit_price": "10.00", field: value}

    with pytest.raises(ValidationError) as exc:
        await ledger.add_item(admin, _invoice(), **item)

    assert set(exc.value.errors) == {field}
    assert server.requests == []


@pytest.mark.asyncio
async def test_only_identical_item_add_is_refused_while_in_flight(config, admin):
    release = asyncio.Event()
    calls = []

    async def handler(request):
        calls.append(request)
        await release.wait()
        return httpx.Response(
            201, json={"id": f"i-{len(calls)}", "description": "x", "quantity": 1, "unit_price": "1.00", "total_amount": "1.00"}
        )

    async with BackendClient(config, transport=httpx.MockTransport(handler)) as backend:
        ledger = BillingLedger(backend)
        invoice = _invoice()

        first = asyncio.create_task(ledger.add_item(admin, invoice, description="Lock", quantity=1, unit_price="5"))
        while not calls:
            await asyncio.sleep(0)

        with pytest.raises(DuplicateSubmissionError):
            await ledger.add_item(admin, invoice, description="Lock", quantity=1, unit_price="5")

        second = asyncio.create_task(ledger.add_item(admin, invoice, description="Insurance", quantity=1, unit_price="3"))
        while len(calls) < 2:
            await asyncio.sleep(0)

        release.set()
        await asyncio.gather(first, second)

    assert len(calls) == 2
