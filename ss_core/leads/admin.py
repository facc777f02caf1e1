# ss_core/leads/admin.py
from django.contrib import admin

from ss_core.leads.models import Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "stage", "source", "converted_tenant", "created_at")
    list_filter = ("stage", "organization_id", "facility_id")
    search_fields = ("first_name", "last_name", "email", "phone")
    readonly_fields = ("converted_tenant", "converted_at", "created_at", "updated_at")
    ordering = ("-created_at",)
