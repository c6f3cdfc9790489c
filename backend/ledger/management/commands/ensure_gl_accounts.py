# ledger/management/commands/ensure_gl_accounts.py
"""
Create missing GL accounts.

Usage:
    # Provision the full default chart
    python manage.py ensure_gl_accounts

    # Provision specific codes (unknown codes get a generic name)
    python manage.py ensure_gl_accounts 1001 4001 6100
"""

from django.core.management.base import BaseCommand

from ledger.authz import ActorContext
from ledger.chart import DEFAULT_CHART, ensure_required_accounts


class Command(BaseCommand):
    help = "Create missing GL accounts (default chart when no codes are given)"

    def add_arguments(self, parser):
        parser.add_argument("codes", nargs="*", help="Account codes to ensure")
        parser.add_argument("--database", default="default", help="Database alias")

    def handle(self, *args, **options):
        actor = ActorContext.system(using=options["database"])
        codes = options["codes"] or sorted(DEFAULT_CHART)

        created = ensure_required_accounts(actor, codes)

        for account in created:
            self.stdout.write(f"  created {account.code} {account.name} ({account.account_type})")
        self.stdout.write(self.style.SUCCESS(
            f"{len(created)} account(s) created, {len(codes) - len(created)} already present."
        ))
