# tests/test_float_sync.py
"""
Tests for float-to-GL reconciliation.

Tests cover:
- Balancing entries posted against the reconciliation reserve
- Idempotence (second run updates nothing)
- Grouping of several floats under one control account
- Credit-normal control accounts and negative deltas
- Celery task and management command entry points
"""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.exceptions import PermissionDenied
from django.core.management import call_command
from django.db import DatabaseError

from ledger.exceptions import InvalidStateError
from ledger.float_sync import sync_float_account_balances
from ledger.models import FloatAccount, GLAccount, JournalEntry
from ledger.posting_rules import TransactionType
from ledger.tasks import sync_float_balances_task
from ledger.trial_balance import get_trial_balance, verify_account_balances


def balance_of(code):
    return GLAccount.objects.get(code=code).balance


@pytest.mark.django_db
class TestSyncFloatAccountBalances:

    def test_posts_balancing_entry(self, actor, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("1500.00"))

        result = sync_float_account_balances(actor)

        assert result["accounts_updated"] == 1
        assert balance_of("1003") == Decimal("1500.00")
        assert balance_of("3001") == Decimal("1500.00")

        (entry,) = JournalEntry.objects.filter(pk__in=result["entry_ids"])
        assert entry.status == JournalEntry.Status.POSTED
        assert entry.transaction_type == TransactionType.FLOAT_SYNC

    def test_second_run_is_noop(self, actor, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("1500.00"))
        sync_float_account_balances(actor)
        entries = JournalEntry.objects.count()

        result = sync_float_account_balances(actor)

        assert result == {"accounts_updated": 0, "entry_ids": []}
        assert JournalEntry.objects.count() == entries

    def test_nothing_to_do_when_in_sync(self, actor, momo_float):
        assert sync_float_account_balances(actor)["accounts_updated"] == 0

    def test_float_decrease_posts_credit(self, actor, momo_float, make_posted_entry):
        make_posted_entry(TransactionType.FLOAT_RECHARGE, "1000.00")
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("800.00"))

        sync_float_account_balances(actor)

        assert balance_of("1003") == Decimal("800.00")
        # Reserve absorbs the 200 shortfall on its debit side
        assert balance_of("3001") == Decimal("-200.00")

    def test_floats_grouped_by_control_account(self, actor, chart, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("300.00"))
        FloatAccount.objects.create(
            provider="Telecel",
            account_type=FloatAccount.AccountType.MOMO,
            branch_code="ACC02",
            current_balance=Decimal("200.00"),
            gl_account=chart["1003"],
        )
        FloatAccount.objects.create(
            provider="ECG",
            account_type=FloatAccount.AccountType.POWER,
            current_balance=Decimal("90.00"),
            gl_account=chart["1004"],
        )

        result = sync_float_account_balances(actor)

        assert result["accounts_updated"] == 2
        assert balance_of("1003") == Decimal("500.00")
        assert balance_of("1004") == Decimal("90.00")

    def test_inactive_floats_ignored(self, actor, chart, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(
            current_balance=Decimal("300.00"),
            is_active=False,
        )
        assert sync_float_account_balances(actor)["accounts_updated"] == 0

    def test_credit_normal_control_account(self, actor, chart):
        FloatAccount.objects.create(
            provider="Partner Bank",
            account_type=FloatAccount.AccountType.AGENCY_BANKING,
            current_balance=Decimal("700.00"),
            gl_account=chart["2003"],
        )

        sync_float_account_balances(actor)

        assert balance_of("2003") == Decimal("700.00")
        assert balance_of("3001") == Decimal("-700.00")

    def test_ledger_stays_consistent(self, actor, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("1234.56"))

        sync_float_account_balances(actor)

        assert get_trial_balance(actor)["is_balanced"] is True
        assert verify_account_balances(actor) == []

    def test_provisions_reserve_account(self, actor):
        control = GLAccount.objects.create(code="1003", name="Float", account_type="asset")
        FloatAccount.objects.create(
            provider="MTN",
            account_type=FloatAccount.AccountType.MOMO,
            current_balance=Decimal("10.00"),
            gl_account=control,
        )

        sync_float_account_balances(actor)

        assert GLAccount.objects.get(code="3001").name == "Float Reconciliation Reserve"

    def test_rejected_posting_leaves_no_draft(self, actor, chart, momo_float):
        GLAccount.objects.filter(code="3001").update(is_active=False)
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("50.00"))

        with pytest.raises(InvalidStateError):
            sync_float_account_balances(actor)

        assert JournalEntry.objects.count() == 0
        assert balance_of("1003") == Decimal("0.00")

    def test_requires_permission(self, clerk_actor, momo_float):
        with pytest.raises(PermissionDenied):
            sync_float_account_balances(clerk_actor)


@pytest.mark.django_db
class TestFloatSyncEntryPoints:

    def test_celery_task_runs_as_system(self, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("50.00"))

        result = sync_float_balances_task.apply().get()

        assert result["accounts_updated"] == 1
        assert balance_of("1003") == Decimal("50.00")

    def test_task_retries_database_errors_only(self):
        assert sync_float_balances_task.autoretry_for == (DatabaseError,)

    def test_management_command(self, momo_float):
        FloatAccount.objects.filter(pk=momo_float.pk).update(current_balance=Decimal("75.00"))

        out = StringIO()
        call_command("sync_float_balances", stdout=out)

        assert "1 account(s) updated" in out.getvalue()
        assert balance_of("1003") == Decimal("75.00")
