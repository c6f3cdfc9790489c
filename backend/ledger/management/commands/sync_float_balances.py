# ledger/management/commands/sync_float_balances.py
"""
Reconcile float account balances into GL control accounts.

Usage:
    python manage.py sync_float_balances
    python manage.py sync_float_balances --async   # queue the Celery task
"""

from django.core.management.base import BaseCommand, CommandError

from ledger.authz import ActorContext
from ledger.exceptions import LedgerError
from ledger.float_sync import sync_float_account_balances


class Command(BaseCommand):
    help = "Post balancing entries so GL control accounts match float balances"

    def add_arguments(self, parser):
        parser.add_argument("--database", default="default", help="Database alias")
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the Celery task instead of running inline",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            from ledger.tasks import sync_float_balances_task

            result = sync_float_balances_task.delay(using=options["database"])
            self.stdout.write(f"Queued float sync task {result.id}")
            return

        try:
            result = sync_float_account_balances(ActorContext.system(using=options["database"]))
        except LedgerError as e:
            raise CommandError(e.reason)

        self.stdout.write(self.style.SUCCESS(
            f"Float sync complete: {result['accounts_updated']} account(s) updated."
        ))
