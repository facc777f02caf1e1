# ss_core/contracts/constants.py
from django.db import models


class ContractStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    ACTIVE = "ACTIVE", "Active"
    CLOSED = "CLOSED", "Closed"
    CANCELED = "CANCELED", "Canceled"


TERMINAL_CONTRACT_STATUSES = frozenset({ContractStatus.CLOSED, ContractStatus.CANCELED})
