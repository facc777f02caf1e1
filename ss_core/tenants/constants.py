# ss_core/tenants/constants.py
from django.db import models


class TenantCategory(models.TextChoices):
    PF = "PF", "Individual"
    PJ = "PJ", "Business"
