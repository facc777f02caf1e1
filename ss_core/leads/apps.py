# ss_core/leads/apps.py
from __future__ import annotations

from django.apps import AppConfig


class LeadsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ss_core.leads"
