# ss_core/billing/management/commands/mark_overdue_invoices.py

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from ss_core.billing.services import InvoiceService


class Command(BaseCommand):
    help = "Move ISSUED invoices past their due date to OVERDUE."

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="as_of", help="Reference date (YYYY-MM-DD). Defaults to today.")

    def handle(self, *args, **options):
        as_of = None
        if options.get("as_of"):
            try:
                as_of = date.fromisoformat(options["as_of"])
            except ValueError:
                raise CommandError("--date must be YYYY-MM-DD")

        count = InvoiceService.mark_overdue(today=as_of)
        self.stdout.write(self.style.SUCCESS(f"Invoices marked overdue: {count}"))
