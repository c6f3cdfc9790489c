# ledger/management/commands/verify_ledger.py
"""
Check ledger integrity.

Verifies that the trial balance balances and that every stored account
balance matches the sum of its posted lines. Exits non-zero on failure,
so it can run in CI or cron.

Usage:
    python manage.py verify_ledger
    python manage.py verify_ledger --as-of 2024-12-31
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from ledger.authz import ActorContext
from ledger.trial_balance import get_trial_balance, verify_account_balances


class Command(BaseCommand):
    help = "Verify trial balance and stored account balances"

    def add_arguments(self, parser):
        parser.add_argument("--database", default="default", help="Database alias")
        parser.add_argument("--as-of", type=date.fromisoformat, help="Trial balance cutoff (YYYY-MM-DD)")

    def handle(self, *args, **options):
        actor = ActorContext.system(using=options["database"])

        report = get_trial_balance(actor, options.get("as_of"))
        self.stdout.write(
            f"Trial balance: debits={report['total_debits']} credits={report['total_credits']} "
            f"({len(report['accounts'])} accounts)"
        )

        mismatches = verify_account_balances(actor)
        for m in mismatches:
            self.stdout.write(self.style.WARNING(
                f"  {m['code']}: stored={m['stored_balance']} computed={m['computed_balance']}"
            ))

        if not report["is_balanced"] or mismatches:
            raise CommandError("Ledger verification failed.")

        self.stdout.write(self.style.SUCCESS("Ledger is consistent."))
