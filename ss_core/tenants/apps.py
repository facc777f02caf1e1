# ss_core/tenants/apps.py
from __future__ import annotations

from django.apps import AppConfig


class TenantsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ss_core.tenants"
