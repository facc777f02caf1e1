# ss_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from ss_core.billing.api.views import InvoiceViewSet
from ss_core.common.api.me import MeView
from ss_core.contracts.api.views import ContractViewSet
from ss_core.inventory.api.views import UnitViewSet
from ss_core.leads.api.views import LeadViewSet
from ss_core.tenants.api.views import TenantViewSet

router = DefaultRouter()

router.register(r"tenants", TenantViewSet, basename="tenants")
router.register(r"inventory/units", UnitViewSet, basename="units")
router.register(r"contracts", ContractViewSet, basename="contracts")
router.register(r"invoices", InvoiceViewSet, basename="invoices")
router.register(r"leads", LeadViewSet, basename="leads")

urlpatterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),
    *router.urls,
]
