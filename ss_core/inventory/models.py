# ss_core/inventory/models.py
from django.db import models
from django.utils import timezone

from ss_core.common.models import ScopedModel
from ss_core.inventory.constants import UnitStatus


class Unit(ScopedModel):
    """
    A rentable storage unit. Contracts reference units; lead conversion
    selects one but never owns it.
    """
    unit_number = models.CharField(max_length=32)
    unit_type = models.CharField(max_length=64, blank=True)
    size_sqm = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    status = models.CharField(max_length=16, choices=UnitStatus.choices, default=UnitStatus.LIVRE, db_index=True)
    reservation_expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "inventory_unit"
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "facility_id", "unit_number"],
                name="uq_unit_scope_number",
            )
        ]

    def __str__(self) -> str:
        return f"{self.unit_number} ({self.status})"

    @property
    def reservation_lapsed(self) -> bool:
        return (
            self.status == UnitStatus.RESERVADA
            and self.reservation_expires_at is not None
            and self.reservation_expires_at <= timezone.now()
        )

    @property
    def effective_status(self) -> str:
        """
        A RESERVADA unit whose reservation expired is offered as LIVRE.
        """
        return UnitStatus.LIVRE if self.reservation_lapsed else self.status
