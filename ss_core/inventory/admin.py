# ss_core/inventory/admin.py
from django.contrib import admin

from ss_core.inventory.models import Unit


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("unit_number", "unit_type", "status", "reservation_expires_at", "facility_id")
    list_filter = ("status", "organization_id", "facility_id")
    search_fields = ("unit_number",)
    readonly_fields = ("created_at", "updated_at")
    ordering = ("unit_number",)
