from designs.cleanup import sweep_expired_design_assets
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Delete design blobs and payment screenshots of orders past their retention window"

    def add_arguments(self, parser):
        parser.add_argument("--budget", type=float, default=None, help="Wall-clock budget in seconds")

    def handle(self, *args, **options):
        report = sweep_expired_design_assets(budget_seconds=options.get("budget"))
        self.stdout.write(
            self.style.SUCCESS(
                f"Processed {report.delivered_orders_processed} delivered and "
                f"{report.cancelled_orders_processed} cancelled orders; deleted {report.files_deleted} files."
            )
        )
        for error in report.errors:
            self.stdout.write(self.style.WARNING(error))
        if report.timed_out:
            self.stdout.write(self.style.WARNING("Stopped at time budget; remaining orders are left for the next run."))
