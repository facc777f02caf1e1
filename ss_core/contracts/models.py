# ss_core/contracts/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from ss_core.common.models import ScopedModel
from ss_core.contracts.constants import TERMINAL_CONTRACT_STATUSES, ContractStatus
from ss_core.inventory.models import Unit
from ss_core.tenants.models import Tenant


class Contract(ScopedModel):
    """
    Lease of one unit to one tenant.
    Status changes only through the contract transition table (services);
    CLOSED and CANCELED are terminal and freeze every field.
    """
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="contracts")
    unit = models.ForeignKey(Unit, on_delete=models.PROTECT, related_name="contracts")
    # when this contract last claimed its unit; the latest live claim holds it
    unit_claimed_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=16, choices=ContractStatus.choices, default=ContractStatus.DRAFT, db_index=True
    )

    move_in = models.DateField()
    move_out = models.DateField(null=True, blank=True)

    monthly_rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    terms = models.TextField()
    notes = models.TextField(blank=True)

    signed_at = models.DateTimeField(null=True, blank=True)
    signed_metadata = models.JSONField(default=dict, blank=True)

    # external references (audit trail / billing system)
    audit_reference_id = models.CharField(max_length=64, blank=True)
    billing_reference_id = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = "contracts_contract"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "status", "created_at"]),
            models.Index(fields=["organization_id", "facility_id", "tenant"]),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CONTRACT_STATUSES

    def __str__(self) -> str:
        return f"Contract {self.id} ({self.status})"
