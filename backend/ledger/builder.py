# ledger/builder.py
"""
Journal Entry Builder.

Turns a business transaction into a balanced DRAFT journal entry, either
from the posting rule table for its type or from explicit lines (manual
entries and float reconciliation). Nothing is persisted unless the lines
are balanced; there is no padding of unbalanced input.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import DatabaseError, transaction
from django.utils import timezone

from ledger.authz import ActorContext, require
from ledger.chart import resolve_accounts
from ledger.exceptions import PostingError, UnbalancedEntryError
from ledger.models import MONEY_Q, JournalEntry, JournalLine, default_currency
from ledger.policies import check_lines_balanced
from ledger.posting_rules import (
    AMOUNT,
    DEBIT,
    EXPLICIT_LINE_TYPES,
    TransactionType,
    get_rule,
)
from ops.metrics import entries_built

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Quantize to the currency minor unit (0.01, half-up)."""
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise UnbalancedEntryError(f"Invalid amount: {value!r}.")
    if not amount.is_finite():
        raise UnbalancedEntryError(f"Invalid amount: {value!r}.")
    return amount.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DraftLine:
    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""

    @classmethod
    def from_value(cls, value) -> "DraftLine":
        if isinstance(value, DraftLine):
            return cls(value.account_code, to_money(value.debit), to_money(value.credit), value.description)
        return cls(
            account_code=str(value["account_code"]),
            debit=to_money(value.get("debit")),
            credit=to_money(value.get("credit")),
            description=value.get("description", ""),
        )


def lines_from_rule(transaction_type: str, amount, fee=ZERO, account_mappings=None) -> list[DraftLine]:
    """
    Expand the rule table for ``transaction_type`` into draft lines.

    Raises UnbalancedEntryError for an unknown type or a non-positive
    amount.
    """
    rule = get_rule(transaction_type)
    if rule is None:
        raise UnbalancedEntryError(f"No posting rule for transaction type '{transaction_type}'.")

    amount = to_money(amount)
    fee = to_money(fee)
    if amount <= 0:
        raise UnbalancedEntryError("Transaction amount must be positive.")
    if fee < 0:
        raise UnbalancedEntryError("Fee cannot be negative.")

    mappings = account_mappings or {}
    label = TransactionType(transaction_type).label

    lines = []
    for leg in rule:
        value = amount if leg.source == AMOUNT else fee
        if value == 0:
            continue
        code = str(mappings.get(leg.role, leg.default_code))
        description = label if leg.source == AMOUNT else f"{label} fee"
        if leg.side == DEBIT:
            lines.append(DraftLine(code, debit=value, description=description))
        else:
            lines.append(DraftLine(code, credit=value, description=description))
    return lines


def build_entry(
    actor: ActorContext,
    transaction_type: str,
    amount=None,
    account_mappings: dict | None = None,
    *,
    transaction_id: str,
    fee=ZERO,
    lines=None,
    entry_date=None,
    memo: str = "",
) -> JournalEntry:
    """
    Build and persist a DRAFT journal entry.

    Args:
        actor: The actor context
        transaction_type: Posting rule key (TransactionType)
        amount: Transaction amount for rule-based types
        account_mappings: Role -> GL code overrides for the rule's legs
        transaction_id: Originating business transaction
        fee: Fee amount; fee legs are skipped when zero
        lines: Explicit lines (dicts or DraftLine) for manual/float_sync
        entry_date: Entry date (default: today)
        memo: Free-text memo

    Returns:
        The DRAFT JournalEntry with its lines

    Raises:
        UnbalancedEntryError: lines invalid or unbalanced (nothing persisted)
        NotFoundError: an overridden or explicit code is not in the chart
    """
    require(actor, "ledger.add_journalentry")

    if not transaction_id:
        raise UnbalancedEntryError("transaction_id is required.")

    if lines is not None:
        if transaction_type not in EXPLICIT_LINE_TYPES:
            raise UnbalancedEntryError(
                f"Explicit lines are only accepted for {', '.join(sorted(EXPLICIT_LINE_TYPES))} entries."
            )
        draft_lines = [DraftLine.from_value(line) for line in lines]
    else:
        draft_lines = lines_from_rule(transaction_type, amount, fee, account_mappings)

    allowed, reason = check_lines_balanced(draft_lines)
    if not allowed:
        raise UnbalancedEntryError(reason)

    try:
        with transaction.atomic(using=actor.using):
            accounts = resolve_accounts(actor, [line.account_code for line in draft_lines])
            entry = JournalEntry.objects.using(actor.using).create(
                transaction_id=transaction_id,
                transaction_type=transaction_type,
                date=entry_date or timezone.localdate(),
                memo=memo or "",
                currency=default_currency(),
                status=JournalEntry.Status.DRAFT,
                created_by=actor.user,
            )
            JournalLine.objects.using(actor.using).bulk_create([
                JournalLine(
                    entry=entry,
                    line_no=line_no,
                    account=accounts[line.account_code],
                    description=line.description,
                    debit=line.debit,
                    credit=line.credit,
                )
                for line_no, line in enumerate(draft_lines, start=1)
            ])
    except DatabaseError as e:
        logger.exception(
            "Failed to persist draft journal entry",
            extra={"transaction_id": transaction_id, "transaction_type": transaction_type},
        )
        raise PostingError(f"Could not save journal entry: {e}") from e

    entries_built.labels(transaction_type=transaction_type).inc()
    logger.info(
        "Draft journal entry built",
        extra={
            "entry_id": entry.pk,
            "transaction_id": transaction_id,
            "transaction_type": transaction_type,
            "line_count": len(draft_lines),
        },
    )
    return entry
