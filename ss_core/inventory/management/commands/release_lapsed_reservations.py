# ss_core/inventory/management/commands/release_lapsed_reservations.py

from django.core.management.base import BaseCommand

from ss_core.inventory.services import UnitService


class Command(BaseCommand):
    help = "Return units whose reservation expired to LIVRE."

    def handle(self, *args, **options):
        count = UnitService.release_lapsed_reservations()
        self.stdout.write(self.style.SUCCESS(f"Unit reservations released: {count}"))
