# ss_core/common/api/me.py

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ss_core.common.permissions import actor_from_user
from ss_core.common.scope import resolve_scope


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        """
        Returns the user with the role tags and capability tokens the
        client builds its Actor from. Scope headers are optional here.
        """
        actor = actor_from_user(request.user)
        scope = resolve_scope(request)

        return Response(
            {
                "user": {
                    "id": request.user.id,
                    "username": getattr(request.user, "username", None),
                    "email": getattr(request.user, "email", None),
                },
                "roles": sorted(actor.roles),
                "capabilities": sorted(c.value for c in actor.capabilities),
                "active_scope": None
                if scope is None
                else {
                    "organization_id": str(scope.organization_id),
                    "facility_id": str(scope.facility_id),
                },
            },
            status=status.HTTP_200_OK,
        )
