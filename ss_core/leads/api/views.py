# ss_core/leads/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ss_core.common.api.pagination import paginate
from ss_core.common.api.params import IDEMPOTENCY_HEADER, SCOPE_HEADERS, path_uuid
from ss_core.common.idempotency import remember, replay
from ss_core.common.permissions import CONTRACT_WRITER_ROLES, RoleSetPermission
from ss_core.common.scope import require_scope
from ss_core.leads.api.serializers import (
    LeadConversionResultSerializer,
    LeadConvertSerializer,
    LeadSerializer,
    LeadWriteSerializer,
)
from ss_core.leads.models import Lead
from ss_core.leads.selectors import get_lead, leads_filtered
from ss_core.leads.services import LeadConversionService, LeadService


class LeadViewSet(viewsets.GenericViewSet):
    """
    Leads pipeline + the transactional conversion endpoint.
    Conversion creates a contract, so it needs a contract-writer role.
    """
    permission_classes = [RoleSetPermission]
    allowed_roles_per_action = {
        "list": None,
        "retrieve": None,
        "create": None,
        "partial_update": None,
        "destroy": None,
        "convert": CONTRACT_WRITER_ROLES,
    }

    serializer_class = LeadSerializer
    queryset = Lead.objects.none()

    @extend_schema(
        tags=["Leads"],
        responses={200: LeadSerializer(many=True)},
        parameters=[
            *SCOPE_HEADERS,
            OpenApiParameter(name="stage", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="converted", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        converted_q = request.query_params.get("converted")
        converted = None
        if converted_q is not None:
            converted = converted_q.lower() in {"1", "true", "yes"}

        qs = leads_filtered(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            stage=request.query_params.get("stage"),
            converted=converted,
        )
        return paginate(request, qs, LeadSerializer)

    @extend_schema(tags=["Leads"], responses={200: LeadSerializer}, parameters=SCOPE_HEADERS)
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        lead = get_lead(organization_id=scope.organization_id, facility_id=scope.facility_id, lead_id=path_uuid(pk, "Lead"))
        return Response(LeadSerializer(lead).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Leads"], request=LeadWriteSerializer, responses={201: LeadSerializer}, parameters=SCOPE_HEADERS)
    def create(self, request):
        scope = require_scope(request)
        ser = LeadWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        lead = LeadService.create_lead(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            **ser.validated_data,
        )
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Leads"], request=LeadWriteSerializer, responses={200: LeadSerializer}, parameters=SCOPE_HEADERS)
    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = LeadWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        lead = LeadService.update_lead(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            lead_id=path_uuid(pk, "Lead"),
            **ser.validated_data,
        )
        return Response(LeadSerializer(lead).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Leads"], responses={204: None}, parameters=SCOPE_HEADERS)
    def destroy(self, request, pk=None):
        scope = require_scope(request)
        LeadService.delete_lead(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            lead_id=path_uuid(pk, "Lead"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Leads"],
        request=LeadConvertSerializer,
        responses={201: LeadConversionResultSerializer},
        parameters=[*SCOPE_HEADERS, IDEMPOTENCY_HEADER],
    )
    @action(detail=True, methods=["post"], url_path="convert")
    def convert(self, request, pk=None):
        scope = require_scope(request)

        cached = replay(request, scope)
        if cached is not None:
            code, data = cached
            return Response(data, status=code)

        ser = LeadConvertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = LeadConversionService.convert(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            lead_id=path_uuid(pk, "Lead"),
            tenant=ser.validated_data["tenant"],
            contract=ser.validated_data["contract"],
        )
        out = LeadConversionResultSerializer(result).data

        remember(request, scope, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)
