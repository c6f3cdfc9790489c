# ledger/float_sync.py
"""
Float-to-GL reconciliation.

Active float accounts are grouped by their GL control account. When the
sum of float balances differs from the control account balance, a
balancing entry for the difference is built and posted against the float
reconciliation reserve (settings.LEDGER_FLOAT_SYNC_OFFSET_ACCOUNT).
Balances are never overwritten directly, so the journal stays the only
source of every balance change and a second run with unchanged floats
posts nothing.
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ledger.authz import ActorContext, require
from ledger.builder import DraftLine, build_entry, to_money
from ledger.chart import ensure_required_accounts
from ledger.commands import post_gl_transaction
from ledger.models import FloatAccount, GLAccount
from ledger.posting_rules import TransactionType
from ops.metrics import float_sync_accounts_updated

logger = logging.getLogger(__name__)


def _balancing_lines(control: GLAccount, offset_code: str, delta: Decimal) -> list[DraftLine]:
    """
    Lines moving ``control`` by ``delta`` in normal-balance terms.

    A positive delta on a debit-normal control account is a debit; the
    offset account takes the other side.
    """
    amount = abs(delta)
    control_is_debit = (delta > 0) == control.is_debit_normal
    description = f"Float reconciliation for {control.code}"
    if control_is_debit:
        return [
            DraftLine(control.code, debit=amount, description=description),
            DraftLine(offset_code, credit=amount, description=description),
        ]
    return [
        DraftLine(control.code, credit=amount, description=description),
        DraftLine(offset_code, debit=amount, description=description),
    ]


def sync_float_account_balances(actor: ActorContext) -> dict:
    """
    Reconcile float balances into their GL control accounts.

    Returns:
        {"accounts_updated": int, "entry_ids": [int]}
    """
    require(actor, "ledger.sync_floataccount")

    offset_code = settings.LEDGER_FLOAT_SYNC_OFFSET_ACCOUNT
    ensure_required_accounts(actor, [offset_code])

    groups = (
        FloatAccount.objects.using(actor.using)
        .filter(is_active=True, gl_account__isnull=False, gl_account__is_active=True)
        .exclude(gl_account__code=offset_code)
        .values("gl_account")
        .annotate(total=Sum("current_balance"))
        .order_by("gl_account__code")
    )

    run_stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")
    entry_ids = []
    for group in groups:
        control = GLAccount.objects.using(actor.using).get(pk=group["gl_account"])
        float_total = to_money(group["total"])
        delta = float_total - control.balance
        if delta == 0:
            continue

        # A rejected posting rolls back its draft
        with transaction.atomic(using=actor.using):
            entry = build_entry(
                actor,
                TransactionType.FLOAT_SYNC,
                transaction_id=f"float-sync-{control.code}-{run_stamp}",
                lines=_balancing_lines(control, offset_code, delta),
                memo=f"Float balance sync for {control.code} {control.name}",
            )
            post_gl_transaction(actor, entry.pk)
        entry_ids.append(entry.pk)

        logger.info(
            "Float balance synced to GL",
            extra={
                "account_code": control.code,
                "float_total": str(float_total),
                "gl_balance": str(control.balance),
                "delta": str(delta),
                "entry_id": entry.pk,
            },
        )

    float_sync_accounts_updated.inc(len(entry_ids))
    logger.info(
        "Float sync completed",
        extra={"accounts_updated": len(entry_ids), "user_id": actor.user_id},
    )
    return {"accounts_updated": len(entry_ids), "entry_ids": entry_ids}
