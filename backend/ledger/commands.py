# ledger/commands.py
"""
Posting engine.

Commands are the single point where ledger state changes. Views, tasks and
management commands call them; they never write models directly.

Pattern:
1. Validate permissions (require)
2. Apply business policies (can_*)
3. Perform the operation inside one atomic block
4. Return the affected entry, or raise a LedgerError

Status transitions (draft -> posted, posted -> reversed) are
compare-and-swap updates on (status, version). A zero rowcount means
another writer got there first and raises InvalidStateError. Account
balances are adjusted with F() expressions in the same transaction, so a
failed posting leaves no partial mutation.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from ledger.authz import ActorContext, require
from ledger.exceptions import (
    InvalidStateError,
    NotFoundError,
    PostingError,
    UnbalancedEntryError,
)
from ledger.models import GLAccount, JournalEntry, JournalLine, LedgerSequence
from ledger.policies import (
    can_discard_entry,
    can_post_entry,
    can_post_to_account,
    can_reverse_entry,
    check_lines_balanced,
)
from ops.metrics import entries_posted, entries_reversed, posting_failures

logger = logging.getLogger(__name__)

ENTRY_NUMBER_SEQUENCE = "journal_entry_number"


def _next_sequence(actor: ActorContext, name: str) -> int:
    """
    Allocate the next value of a named sequence.
    Uses select_for_update to avoid concurrent duplicates.
    """
    qs = LedgerSequence.objects.using(actor.using)
    try:
        seq = qs.select_for_update().get(name=name)
    except LedgerSequence.DoesNotExist:
        try:
            with transaction.atomic(using=actor.using):
                seq = qs.create(name=name, next_value=1)
        except IntegrityError:
            seq = qs.select_for_update().get(name=name)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(using=actor.using, update_fields=["next_value", "updated_at"])
    return value


def _get_entry(actor: ActorContext, entry_id: int) -> JournalEntry:
    try:
        return JournalEntry.objects.using(actor.using).get(pk=entry_id)
    except JournalEntry.DoesNotExist:
        raise NotFoundError(f"Journal entry {entry_id} not found.")


def _apply_balances(actor: ActorContext, lines: list[JournalLine]) -> None:
    """Adjust each touched account once by its net signed delta."""
    deltas = defaultdict(lambda: Decimal("0.00"))
    for line in lines:
        deltas[line.account_id] += line.account.signed_delta(line.debit, line.credit)

    now = timezone.now()
    for account_id, delta in deltas.items():
        if delta == 0:
            continue
        GLAccount.objects.using(actor.using).filter(pk=account_id).update(
            balance=F("balance") + delta,
            updated_at=now,
        )


def _post_entry(actor: ActorContext, entry_id: int) -> JournalEntry:
    """Post a draft. Must run inside transaction.atomic(using=actor.using)."""
    entry = _get_entry(actor, entry_id)

    allowed, reason = can_post_entry(entry)
    if not allowed:
        raise InvalidStateError(reason)

    lines = list(entry.lines.using(actor.using).select_related("account"))

    allowed, reason = check_lines_balanced(lines)
    if not allowed:
        raise UnbalancedEntryError(reason)

    for line in lines:
        allowed, reason = can_post_to_account(line.account)
        if not allowed:
            raise InvalidStateError(reason)

    entry_number = f"JE-{_next_sequence(actor, ENTRY_NUMBER_SEQUENCE):06d}"
    posted_at = timezone.now()

    updated = JournalEntry.objects.using(actor.using).filter(
        pk=entry.pk,
        status=JournalEntry.Status.DRAFT,
        version=entry.version,
    ).update(
        status=JournalEntry.Status.POSTED,
        version=F("version") + 1,
        entry_number=entry_number,
        posted_at=posted_at,
        posted_by=actor.user,
        updated_at=posted_at,
    )
    if updated == 0:
        raise InvalidStateError(
            f"Journal entry {entry.pk} was modified concurrently; only DRAFT entries can be posted."
        )

    _apply_balances(actor, lines)

    entry.refresh_from_db(using=actor.using)
    return entry


def _run(actor: ActorContext, operation: str, fn, *args):
    """
    Run ``fn`` in one transaction.

    Ledger errors propagate unchanged; database errors are logged and
    re-raised as PostingError.
    """
    try:
        with transaction.atomic(using=actor.using):
            return fn(*args)
    except PostingError as e:
        posting_failures.labels(error=type(e).__name__).inc()
        logger.warning(
            f"{operation} rejected: {e.reason}",
            extra={"operation": operation, "error": type(e).__name__, "user_id": actor.user_id},
        )
        raise
    except DatabaseError as e:
        posting_failures.labels(error="DatabaseError").inc()
        logger.exception(
            f"{operation} failed",
            extra={"operation": operation, "user_id": actor.user_id},
        )
        raise PostingError(f"{operation} failed: {e}") from e


# =============================================================================
# Posting
# =============================================================================

def post_gl_transaction(actor: ActorContext, entry_id: int) -> JournalEntry:
    """
    Post a draft journal entry, updating account balances.

    Args:
        actor: The actor context
        entry_id: ID of entry to post

    Returns:
        The POSTED JournalEntry

    Raises:
        NotFoundError: entry does not exist
        InvalidStateError: entry is not a draft, or an account is inactive
        UnbalancedEntryError: lines do not balance
        PostingError: commit failed
    """
    require(actor, "ledger.post_journalentry")

    entry = _run(actor, "Post journal entry", _post_entry, actor, entry_id)

    entries_posted.labels(transaction_type=entry.transaction_type).inc()
    logger.info(
        "Journal entry posted",
        extra={
            "entry_id": entry.pk,
            "entry_number": entry.entry_number,
            "transaction_id": entry.transaction_id,
            "user_id": actor.user_id,
        },
    )
    return entry


def _reverse_entry(actor: ActorContext, entry_id: int, reason: str) -> JournalEntry:
    original = _get_entry(actor, entry_id)

    allowed, policy_reason = can_reverse_entry(original)
    if not allowed:
        raise InvalidStateError(policy_reason)

    reversed_at = timezone.now()
    updated = JournalEntry.objects.using(actor.using).filter(
        pk=original.pk,
        status=JournalEntry.Status.POSTED,
        version=original.version,
    ).update(
        status=JournalEntry.Status.REVERSED,
        version=F("version") + 1,
        reversed_at=reversed_at,
        reversed_by=actor.user,
        reversal_reason=reason,
        updated_at=reversed_at,
    )
    if updated == 0:
        raise InvalidStateError(
            f"Journal entry {original.pk} was modified concurrently; only POSTED entries can be reversed."
        )

    reversal = JournalEntry.objects.using(actor.using).create(
        transaction_id=original.transaction_id,
        transaction_type=original.transaction_type,
        kind=JournalEntry.Kind.REVERSAL,
        date=timezone.localdate(),
        memo=f"Reversal of {original.entry_number or f'JE#{original.pk}'}: {reason}"[:255],
        currency=original.currency,
        status=JournalEntry.Status.DRAFT,
        created_by=actor.user,
        reverses_entry=original,
    )
    JournalLine.objects.using(actor.using).bulk_create([
        JournalLine(
            entry=reversal,
            line_no=line.line_no,
            account_id=line.account_id,
            description=f"Reversal: {line.description}".strip()[:255],
            debit=line.credit,
            credit=line.debit,
        )
        for line in original.lines.using(actor.using).all()
    ])

    _post_entry(actor, reversal.pk)

    original.refresh_from_db(using=actor.using)
    return original


def reverse_journal_entry(actor: ActorContext, entry_id: int, reason: str) -> JournalEntry:
    """
    Reverse a posted journal entry.

    Creates a new REVERSAL entry with every line's debit and credit swapped,
    posts it immediately, and marks the original REVERSED with the reason.
    The reversal is reachable as ``original.reversal_entry``.

    Args:
        actor: The actor context
        entry_id: ID of entry to reverse
        reason: Why the entry is reversed (required)

    Returns:
        The original JournalEntry, now REVERSED

    Raises:
        NotFoundError: entry does not exist
        InvalidStateError: entry is not posted, already reversed, or no reason
    """
    require(actor, "ledger.reverse_journalentry")

    reason = (reason or "").strip()
    if not reason:
        raise InvalidStateError("A reason is required to reverse a journal entry.")

    original = _run(actor, "Reverse journal entry", _reverse_entry, actor, entry_id, reason)

    entries_reversed.inc()
    logger.info(
        "Journal entry reversed",
        extra={
            "entry_id": original.pk,
            "reversal_entry_id": original.reversal_entry.pk,
            "transaction_id": original.transaction_id,
            "user_id": actor.user_id,
        },
    )
    return original


def _discard_entry(actor: ActorContext, entry_id: int) -> None:
    entry = _get_entry(actor, entry_id)

    allowed, reason = can_discard_entry(entry)
    if not allowed:
        raise InvalidStateError(reason)

    # Lines go with the entry (on_delete=CASCADE)
    deleted, _ = JournalEntry.objects.using(actor.using).filter(
        pk=entry.pk,
        status=JournalEntry.Status.DRAFT,
        version=entry.version,
    ).delete()
    if deleted == 0:
        raise InvalidStateError(
            f"Journal entry {entry.pk} was modified concurrently; only DRAFT entries can be discarded."
        )


def discard_journal_entry(actor: ActorContext, entry_id: int) -> None:
    """Delete a DRAFT entry and its lines. Posted history is never deleted."""
    require(actor, "ledger.delete_journalentry")

    _run(actor, "Discard journal entry", _discard_entry, actor, entry_id)

    logger.info(
        "Draft journal entry discarded",
        extra={"entry_id": entry_id, "user_id": actor.user_id},
    )


# =============================================================================
# Queries
# =============================================================================

def get_journal_entry(actor: ActorContext, entry_id: int) -> JournalEntry:
    return _get_entry(actor, entry_id)


def get_journal_entries_by_transaction_id(actor: ActorContext, transaction_id: str) -> list[JournalEntry]:
    """All entries (originals and reversals) for a business transaction, oldest first."""
    return list(
        JournalEntry.objects.using(actor.using)
        .filter(transaction_id=transaction_id)
        .select_related("reverses_entry")
        .prefetch_related("lines__account")
        .order_by("created_at", "id")
    )
