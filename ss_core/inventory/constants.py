# ss_core/inventory/constants.py
from django.db import models


class UnitStatus(models.TextChoices):
    LIVRE = "LIVRE", "Free"
    RESERVADA = "RESERVADA", "Reserved"
    OCUPADA = "OCUPADA", "Occupied"
    BLOQUEADA = "BLOQUEADA", "Blocked"
    EM_VISTORIA = "EM_VISTORIA", "Under Inspection"
