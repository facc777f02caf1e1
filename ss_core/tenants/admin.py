# ss_core/tenants/admin.py
from django.contrib import admin

from ss_core.tenants.models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = (
        "first_name",
        "last_name",
        "document",
        "category",
        "email",
        "organization_id",
        "facility_id",
        "created_at",
    )
    list_filter = ("category", "organization_id", "facility_id")
    search_fields = ("first_name", "last_name", "document", "email")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)
