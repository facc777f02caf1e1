# ss_core/contracts/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from ss_core.common.api.pagination import paginate
from ss_core.common.api.params import path_uuid, uuid_or_none
from ss_core.common.permissions import CONTRACT_WRITER_ROLES, RoleSetPermission
from ss_core.common.scope import require_scope
from ss_core.contracts.api.serializers import (
    ContractCreateSerializer,
    ContractSerializer,
    ContractUpdateSerializer,
)
from ss_core.contracts.models import Contract
from ss_core.contracts.selectors import contracts_filtered, get_contract
from ss_core.contracts.services import ContractService


class ContractViewSet(viewsets.GenericViewSet):
    """
    Contracts:
    - list/retrieve: any scoped user
    - create/partial_update/destroy: contract writers only
    """
    permission_classes = [RoleSetPermission]
    allowed_roles_per_action = {
        "list": None,
        "retrieve": None,
        "create": CONTRACT_WRITER_ROLES,
        "partial_update": CONTRACT_WRITER_ROLES,
        "destroy": CONTRACT_WRITER_ROLES,
    }

    serializer_class = ContractSerializer
    queryset = Contract.objects.none()

    @extend_schema(
        tags=["Contracts"],
        responses={200: ContractSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="tenant", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="unit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)
        qs = contracts_filtered(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=uuid_or_none(request.query_params.get("tenant"), "tenant"),
            unit_id=uuid_or_none(request.query_params.get("unit"), "unit"),
            status=request.query_params.get("status"),
        )
        return paginate(request, qs, ContractSerializer)

    @extend_schema(tags=["Contracts"], responses={200: ContractSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        contract = get_contract(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            contract_id=path_uuid(pk, "Contract"),
        )
        return Response(ContractSerializer(contract).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Contracts"], request=ContractCreateSerializer, responses={201: ContractSerializer})
    def create(self, request):
        scope = require_scope(request)
        ser = ContractCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        contract = ContractService.create_contract(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=data.pop("tenant"),
            unit_id=data.pop("unit"),
            **data,
        )
        return Response(ContractSerializer(contract).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Contracts"], request=ContractUpdateSerializer, responses={200: ContractSerializer})
    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = ContractUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        contract = ContractService.update_contract(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            contract_id=path_uuid(pk, "Contract"),
            unit_id=data.pop("unit", None),
            **data,
        )
        return Response(ContractSerializer(contract).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Contracts"], responses={204: None})
    def destroy(self, request, pk=None):
        scope = require_scope(request)
        ContractService.delete_contract(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            contract_id=path_uuid(pk, "Contract"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
