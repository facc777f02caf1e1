# ss_core/inventory/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from ss_core.common.api.pagination import paginate
from ss_core.common.api.params import path_uuid
from ss_core.common.errors import ValidationError
from ss_core.common.permissions import RoleSetPermission
from ss_core.common.scope import require_scope
from ss_core.inventory.api.serializers import UnitSerializer
from ss_core.inventory.constants import UnitStatus
from ss_core.inventory.models import Unit
from ss_core.inventory.selectors import get_unit, units_filtered


class UnitViewSet(viewsets.GenericViewSet):
    """
    Read-only unit inventory (conversion lists ?status=LIVRE).
    """
    permission_classes = [RoleSetPermission]
    allowed_roles_per_action = {"list": None, "retrieve": None}

    serializer_class = UnitSerializer
    queryset = Unit.objects.none()

    @extend_schema(
        tags=["Inventory"],
        responses={200: UnitSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        status_q = (request.query_params.get("status") or "").upper() or None
        if status_q and status_q not in UnitStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {', '.join(UnitStatus.values)}"})

        qs = units_filtered(organization_id=scope.organization_id, facility_id=scope.facility_id, status=status_q)
        return paginate(request, qs, UnitSerializer)

    @extend_schema(tags=["Inventory"], responses={200: UnitSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        unit = get_unit(
            organization_id=scope.organization_id,
            facility_id=scope.facility_id,
            unit_id=path_uuid(pk, "Unit"),
        )
        return Response(UnitSerializer(unit).data, status=status.HTTP_200_OK)
