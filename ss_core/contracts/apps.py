# ss_core/contracts/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ContractsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ss_core.contracts"
