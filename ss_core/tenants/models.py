# ss_core/tenants/models.py
from django.db import models

from ss_core.common.models import ScopedModel
from ss_core.tenants.constants import TenantCategory


class Tenant(ScopedModel):
    """
    Self-storage customer (the renter), scoped to organization+facility.
    Created directly or as a side effect of lead conversion.
    """
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    phone_primary = models.CharField(max_length=32, blank=True)
    phone_secondary = models.CharField(max_length=32, blank=True)

    # tax/identity document (CPF/CNPJ, SSN/EIN)
    document = models.CharField(max_length=32)
    category = models.CharField(max_length=2, choices=TenantCategory.choices)

    address = models.CharField(max_length=255, blank=True)
    address_city = models.CharField(max_length=120, blank=True)
    address_state = models.CharField(max_length=64, blank=True)
    address_zip = models.CharField(max_length=16, blank=True)

    class Meta:
        db_table = "tenants_tenant"
        indexes = [
            models.Index(fields=["organization_id", "facility_id", "last_name"]),
            models.Index(fields=["organization_id", "facility_id", "document"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name
