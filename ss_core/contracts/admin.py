# ss_core/contracts/admin.py
from django.contrib import admin

from ss_core.contracts.models import Contract


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "unit", "status", "move_in", "move_out", "monthly_rate", "created_at")
    list_filter = ("status", "organization_id", "facility_id")
    search_fields = ("tenant__first_name", "tenant__last_name", "unit__unit_number")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)
