# ss_core/leads/models.py
from django.db import models

from ss_core.common.models import ScopedModel
from ss_core.leads.constants import LeadStage
from ss_core.tenants.models import Tenant


class Lead(ScopedModel):
    """
    Sales prospect. converted_tenant is set once, by conversion, and the
    lead is read-only from then on.
    """
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    source = models.CharField(max_length=64, blank=True)
    notes = models.TextField(blank=True)

    stage = models.CharField(max_length=16, choices=LeadStage.choices, default=LeadStage.NEW, db_index=True)

    converted_tenant = models.ForeignKey(
        Tenant,
        on_delete=models.PROTECT,
        related_name="source_leads",
        null=True,
        blank=True,
    )
    converted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "leads_lead"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "stage", "created_at"]),
        ]

    @property
    def is_converted(self) -> bool:
        return self.converted_tenant_id is not None

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
