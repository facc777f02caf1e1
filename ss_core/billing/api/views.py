# ss_core/billing/api/views.py
from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ss_core.billing.api.serializers import (
    InvoiceCreateSerializer,
    InvoiceItemSerializer,
    InvoiceItemWriteSerializer,
    InvoiceSerializer,
    InvoiceUpdateSerializer,
    InvoiceVoidSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
)
from ss_core.billing.documents import invoice_filename, render_invoice_pdf
from ss_core.billing.models import Invoice
from ss_core.billing.selectors import get_invoice, invoice_items, invoice_payments, invoices_filtered
from ss_core.billing.services import InvoiceService, PaymentService
from ss_core.common.api.pagination import paginate
from ss_core.common.api.params import IDEMPOTENCY_HEADER, SCOPE_HEADERS, path_uuid, uuid_or_none
from ss_core.common.idempotency import remember, replay
from ss_core.common.permissions import Capability, CapabilityPermission
from ss_core.common.scope import require_scope


class InvoiceViewSet(viewsets.GenericViewSet):
    """
    Invoices, items and payments. Every action is gated by a billing
    capability; PAID/VOID invoices reject all writes in services.
    """
    permission_classes = [CapabilityPermission]
    required_capability_per_action = {
        "list": Capability.VIEW_INVOICE,
        "retrieve": Capability.VIEW_INVOICE,
        "create": Capability.ADD_INVOICE,
        "partial_update": Capability.CHANGE_INVOICE,
        "destroy": Capability.DELETE_INVOICE,
        "void": Capability.CHANGE_INVOICE,
        "pdf": Capability.VIEW_INVOICE,
        "payments": Capability.VIEW_INVOICE,
        "record_payment": Capability.RECORD_PAYMENT,
        "items": Capability.VIEW_INVOICEITEM,
        "add_item": Capability.ADD_INVOICEITEM,
        "item_detail": Capability.CHANGE_INVOICEITEM,
        "remove_item": Capability.DELETE_INVOICEITEM,
    }

    serializer_class = InvoiceSerializer
    queryset = Invoice.objects.none()

    def _invoice_out(self, scope, invoice_id):
        inv = get_invoice(organization_id=scope.organization_id, facility_id=scope.facility_id, invoice_id=invoice_id)
        return InvoiceSerializer(inv).data

    @extend_schema(
        tags=["Billing"],
        responses={200: InvoiceSerializer(many=True)},
        parameters=[
            *SCOPE_HEADERS,
            OpenApiParameter(name="tenant", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="contract", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = invoices_filtered(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=uuid_or_none(request.query_params.get("tenant"), "tenant"),
            contract_id=uuid_or_none(request.query_params.get("contract"), "contract"),
            status=request.query_params.get("status"),
        )
        return paginate(request, qs, InvoiceSerializer)

    @extend_schema(tags=["Billing"], responses={200: InvoiceSerializer}, parameters=SCOPE_HEADERS)
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        return Response(self._invoice_out(scope, path_uuid(pk, "Invoice")), status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Billing"],
        request=InvoiceCreateSerializer,
        responses={201: InvoiceSerializer},
        parameters=SCOPE_HEADERS,
    )
    def create(self, request):
        scope = require_scope(request)

        ser = InvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        inv = InvoiceService.create_draft(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=data["tenant"],
            contract_id=data.get("contract"),
            issue_date=data.get("issue_date"),
            due_date=data.get("due_date"),
            notes=data.get("notes", ""),
            items=data.get("items") or (),
        )
        return Response(self._invoice_out(scope, inv.id), status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Billing"],
        request=InvoiceUpdateSerializer,
        responses={200: InvoiceSerializer},
        parameters=SCOPE_HEADERS,
    )
    def partial_update(self, request, pk=None):
        scope = require_scope(request)

        ser = InvoiceUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.update_invoice(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
            **ser.validated_data,
        )
        return Response(self._invoice_out(scope, inv.id), status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={204: None}, parameters=SCOPE_HEADERS)
    def destroy(self, request, pk=None):
        scope = require_scope(request)
        InvoiceService.delete_invoice(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Billing"],
        request=InvoiceVoidSerializer,
        responses={200: InvoiceSerializer},
        parameters=SCOPE_HEADERS,
    )
    @action(detail=True, methods=["patch"], url_path="void")
    def void(self, request, pk=None):
        scope = require_scope(request)

        ser = InvoiceVoidSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.void(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
            reason=ser.validated_data.get("void_reason") or "",
        )
        return Response(self._invoice_out(scope, inv.id), status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Billing"],
        responses={(200, "application/pdf"): OpenApiTypes.BINARY},
        parameters=SCOPE_HEADERS,
    )
    @action(detail=True, methods=["get"], url_path="pdf")
    def pdf(self, request, pk=None):
        scope = require_scope(request)

        inv = get_invoice(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
        )
        resp = HttpResponse(render_invoice_pdf(inv), content_type="application/pdf")
        resp["Content-Disposition"] = f'attachment; filename="{invoice_filename(inv)}"'
        return resp

    @extend_schema(tags=["Billing"], responses={200: PaymentSerializer(many=True)}, parameters=SCOPE_HEADERS)
    @action(detail=True, methods=["get"], url_path="payments")
    def payments(self, request, pk=None):
        scope = require_scope(request)

        inv = get_invoice(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
        )
        qs = invoice_payments(organization_id=scope.organization_id, facility_id=scope.facility_id, invoice_id=inv.id)
        return Response(PaymentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Billing"],
        request=PaymentCreateSerializer,
        responses={201: PaymentSerializer},
        parameters=[*SCOPE_HEADERS, IDEMPOTENCY_HEADER],
    )
    @action(detail=False, methods=["post"], url_path="record-payment")
    def record_payment(self, request):
        scope = require_scope(request)

        cached = replay(request, scope)
        if cached is not None:
            code, data = cached
            return Response(data, status=code)

        ser = PaymentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        pay = PaymentService.record_payment(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=data["invoice"],
            amount=data["amount"],
            method=data.get("method"),
            transaction_id=data.get("transaction_id") or "",
            recorded_by_user_id=getattr(request.user, "id", None),
        )
        out = PaymentSerializer(pay).data

        remember(request, scope, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Billing"],
        request=InvoiceItemWriteSerializer,
        responses={200: InvoiceItemSerializer(many=True), 201: InvoiceItemSerializer},
        parameters=SCOPE_HEADERS,
    )
    @action(detail=True, methods=["get"], url_path="items")
    def items(self, request, pk=None):
        """
        /invoices/<invoice_id>/items/
        - GET: list items
        - POST: add an item (non-terminal invoices only)
        """
        scope = require_scope(request)

        inv = get_invoice(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
        )
        qs = invoice_items(organization_id=scope.organization_id, facility_id=scope.facility_id, invoice_id=inv.id)
        return Response(InvoiceItemSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @items.mapping.post
    def add_item(self, request, pk=None):
        scope = require_scope(request)

        ser = InvoiceItemWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = InvoiceService.add_item(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
            **ser.validated_data,
        )
        return Response(InvoiceItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Billing"],
        request=InvoiceItemWriteSerializer,
        responses={200: InvoiceItemSerializer, 204: None},
        parameters=SCOPE_HEADERS,
    )
    @action(detail=True, methods=["patch"], url_path=r"items/(?P<item_id>[^/.]+)")
    def item_detail(self, request, pk=None, item_id=None):
        scope = require_scope(request)

        ser = InvoiceItemWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        item = InvoiceService.update_item(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
            item_id=path_uuid(item_id, "Invoice item"),
            **ser.validated_data,
        )
        return Response(InvoiceItemSerializer(item).data, status=status.HTTP_200_OK)

    @item_detail.mapping.delete
    def remove_item(self, request, pk=None, item_id=None):
        scope = require_scope(request)

        InvoiceService.remove_item(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            invoice_id=path_uuid(pk, "Invoice"),
            item_id=path_uuid(item_id, "Invoice item"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
