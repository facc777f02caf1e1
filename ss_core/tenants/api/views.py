# ss_core/tenants/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from ss_core.common.api.pagination import paginate
from ss_core.common.api.params import path_uuid
from ss_core.common.permissions import RoleSetPermission
from ss_core.common.scope import require_scope
from ss_core.tenants.api.serializers import TenantSerializer, TenantWriteSerializer
from ss_core.tenants.models import Tenant
from ss_core.tenants.selectors import get_tenant, tenants_filtered
from ss_core.tenants.services import TenantService


class TenantViewSet(viewsets.GenericViewSet):
    """
    Renters. Any scoped, authenticated user may read and write.
    """
    permission_classes = [RoleSetPermission]
    allowed_roles_per_action = {
        "list": None,
        "retrieve": None,
        "create": None,
        "partial_update": None,
    }

    serializer_class = TenantSerializer
    queryset = Tenant.objects.none()

    @extend_schema(
        tags=["Tenants"],
        responses={200: TenantSerializer(many=True)},
        parameters=[OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False)],
    )
    def list(self, request):
        scope = require_scope(request)
        qs = tenants_filtered(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            q=request.query_params.get("q"),
        )
        return paginate(request, qs, TenantSerializer)

    @extend_schema(tags=["Tenants"], responses={200: TenantSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        tenant = get_tenant(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=path_uuid(pk, "Tenant"),
        )
        return Response(TenantSerializer(tenant).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Tenants"], request=TenantWriteSerializer, responses={201: TenantSerializer})
    def create(self, request):
        scope = require_scope(request)
        ser = TenantWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        tenant = TenantService.create_tenant(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            **ser.validated_data,
        )
        return Response(TenantSerializer(tenant).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Tenants"], request=TenantWriteSerializer, responses={200: TenantSerializer})
    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = TenantWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        tenant = TenantService.update_tenant(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            tenant_id=path_uuid(pk, "Tenant"),
            **ser.validated_data,
        )
        return Response(TenantSerializer(tenant).data, status=status.HTTP_200_OK)
