# ss_core/inventory/services.py
from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ss_core.common.errors import ConflictError
from ss_core.inventory.constants import UnitStatus
from ss_core.inventory.models import Unit
from ss_core.inventory.selectors import lapsed_reservations

logger = logging.getLogger(__name__)


def reservation_hours() -> int:
    return int(getattr(settings, "SS_UNIT_RESERVATION_HOURS", 48))


class UnitService:
    """
    Unit status side effects of contract writes. Callers hold the unit row
    lock (select_for_update) inside their own transaction.
    """

    @staticmethod
    def claim(unit: Unit, *, occupy: bool) -> Unit:
        """
        Check-and-set: the unit must still be LIVRE, or RESERVADA with an
        expired reservation. occupy=False reserves it until the configured expiry.
        """
        if unit.status != UnitStatus.LIVRE and not unit.reservation_lapsed:
            raise ConflictError(
                f"Unit {unit.unit_number} is no longer available ({unit.status}).",
                details={"unit": str(unit.id), "status": unit.status},
            )
        if unit.reservation_lapsed:
            logger.info("Unit %s reservation expired at %s; reclaiming", unit.id, unit.reservation_expires_at)

        if occupy:
            unit.status = UnitStatus.OCUPADA
            unit.reservation_expires_at = None
        else:
            unit.status = UnitStatus.RESERVADA
            unit.reservation_expires_at = timezone.now() + timedelta(hours=reservation_hours())

        unit.save(update_fields=["status", "reservation_expires_at", "updated_at"])
        logger.info("Unit %s claimed as %s", unit.id, unit.status)
        return unit

    @staticmethod
    def occupy(unit: Unit) -> Unit:
        if unit.status == UnitStatus.OCUPADA:
            return unit
        if unit.status not in (UnitStatus.LIVRE, UnitStatus.RESERVADA):
            raise ConflictError(
                f"Unit {unit.unit_number} cannot be occupied ({unit.status}).",
                details={"unit": str(unit.id), "status": unit.status},
            )
        unit.status = UnitStatus.OCUPADA
        unit.reservation_expires_at = None
        unit.save(update_fields=["status", "reservation_expires_at", "updated_at"])
        return unit

    @staticmethod
    def release(unit: Unit) -> Unit:
        if unit.status in (UnitStatus.RESERVADA, UnitStatus.OCUPADA):
            unit.status = UnitStatus.LIVRE
            unit.reservation_expires_at = None
            unit.save(update_fields=["status", "reservation_expires_at", "updated_at"])
            logger.info("Unit %s released", unit.id)
        return unit

    @staticmethod
    @transaction.atomic
    def release_lapsed_reservations(*, now=None) -> int:
        """
        Returns RESERVADA units whose reservation expired to LIVRE.
        The DRAFT contract keeps its unit reference and may reclaim it on activation.
        """
        count = 0
        for unit in lapsed_reservations(now=now).select_for_update():
            UnitService.release(unit)
            count += 1
        if count:
            logger.info("Released %s lapsed unit reservations", count)
        return count
