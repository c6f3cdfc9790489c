# ledger/trial_balance.py
"""
Trial balance and ledger integrity reports.

Without a cutoff the trial balance reads stored account balances; with
``as_of_date`` it recomputes each account from posted lines dated on or
before the cutoff. Entries later reversed still count: their reversal
entries cancel them.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Q, Sum

from ledger.authz import ActorContext
from ledger.models import MONEY_Q, FloatAccount, GLAccount, JournalEntry, JournalLine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Entries whose lines affect balances
BALANCE_STATUSES = (JournalEntry.Status.POSTED, JournalEntry.Status.REVERSED)


def _money(value) -> Decimal:
    """Aggregate sum at currency precision (SQLite returns float-derived scale)."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def _posted_totals(actor: ActorContext, as_of_date: date | None = None) -> dict[int, tuple[Decimal, Decimal]]:
    """account_id -> (sum debit, sum credit) over posted lines."""
    lines = JournalLine.objects.using(actor.using).filter(entry__status__in=BALANCE_STATUSES)
    if as_of_date is not None:
        lines = lines.filter(entry__date__lte=as_of_date)
    rows = lines.values("account_id").annotate(debit=Sum("debit"), credit=Sum("credit"))
    return {
        row["account_id"]: (_money(row["debit"]), _money(row["credit"]))
        for row in rows
    }


def _columns(account: GLAccount, balance: Decimal) -> tuple[Decimal, Decimal]:
    """Place a signed normal-balance amount in the debit or credit column."""
    if account.is_debit_normal:
        return (balance, ZERO) if balance > 0 else (ZERO, -balance)
    return (ZERO, balance) if balance > 0 else (-balance, ZERO)


def get_trial_balance(actor: ActorContext, as_of_date: date | None = None) -> dict:
    """
    Build the trial balance.

    Only accounts with a nonzero balance at the cutoff are listed.

    Returns:
        {
            "as_of_date": date | None,
            "accounts": [{account_id, code, name, account_type, balance, debit, credit}],
            "total_debits": Decimal,
            "total_credits": Decimal,
            "is_balanced": bool,
        }
    """
    accounts = list(GLAccount.objects.using(actor.using).order_by("code"))

    if as_of_date is None:
        balances = {account.pk: account.balance for account in accounts}
    else:
        totals = _posted_totals(actor, as_of_date)
        balances = {}
        for account in accounts:
            debit, credit = totals.get(account.pk, (ZERO, ZERO))
            balances[account.pk] = account.signed_delta(debit, credit)

    rows = []
    total_debits = ZERO
    total_credits = ZERO
    for account in accounts:
        balance = balances[account.pk]
        if balance == 0:
            continue
        debit, credit = _columns(account, balance)
        total_debits += debit
        total_credits += credit
        rows.append({
            "account_id": account.pk,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "balance": balance,
            "debit": debit,
            "credit": credit,
        })

    is_balanced = total_debits == total_credits
    if not is_balanced:
        logger.error(
            "Trial balance out of balance",
            extra={
                "total_debits": str(total_debits),
                "total_credits": str(total_credits),
                "as_of_date": str(as_of_date) if as_of_date else None,
            },
        )

    return {
        "as_of_date": as_of_date,
        "accounts": rows,
        "total_debits": total_debits,
        "total_credits": total_credits,
        "is_balanced": is_balanced,
    }


def verify_account_balances(actor: ActorContext) -> list[dict]:
    """
    Recompute every stored balance from posted lines.

    Returns one dict per mismatching account; an empty list means the
    stored balances agree with the journal.
    """
    totals = _posted_totals(actor)
    mismatches = []
    for account in GLAccount.objects.using(actor.using).order_by("code"):
        debit, credit = totals.get(account.pk, (ZERO, ZERO))
        expected = account.signed_delta(debit, credit)
        if expected != account.balance:
            mismatches.append({
                "account_id": account.pk,
                "code": account.code,
                "stored_balance": account.balance,
                "computed_balance": expected,
                "difference": account.balance - expected,
            })

    if mismatches:
        logger.warning(
            "GL balance mismatches found",
            extra={"count": len(mismatches), "codes": [m["code"] for m in mismatches]},
        )
    return mismatches


def get_ledger_statistics(actor: ActorContext) -> dict:
    """Counts and totals for the GL dashboard."""
    accounts = GLAccount.objects.using(actor.using).aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(is_active=True)),
    )
    by_type = {
        row["account_type"]: row["count"]
        for row in GLAccount.objects.using(actor.using)
        .values("account_type").annotate(count=Count("id"))
    }
    by_status = {
        row["status"]: row["count"]
        for row in JournalEntry.objects.using(actor.using)
        .values("status").annotate(count=Count("id"))
    }
    posted = JournalLine.objects.using(actor.using).filter(
        entry__status__in=BALANCE_STATUSES
    ).aggregate(debit=Sum("debit"), credit=Sum("credit"))

    return {
        "accounts": {
            "total": accounts["total"],
            "active": accounts["active"],
            "by_type": {t: by_type.get(t, 0) for t in GLAccount.AccountType.values},
        },
        "journal_entries": {
            "total": sum(by_status.values()),
            "by_status": {s: by_status.get(s, 0) for s in JournalEntry.Status.values},
        },
        "posted_debits": _money(posted["debit"]),
        "posted_credits": _money(posted["credit"]),
        "float_accounts": FloatAccount.objects.using(actor.using).filter(is_active=True).count(),
    }
