# ledger/policies.py
"""
Business policy functions for ledger operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Policies are pure functions returning (bool, str) tuples. Commands
compose them and raise the matching ledger error when one fails.
"""

from decimal import Decimal

from ledger.models import GLAccount, JournalEntry

ZERO = Decimal("0.00")


# =============================================================================
# Line Policies
# =============================================================================

def check_lines_balanced(lines) -> tuple[bool, str]:
    """
    Validate a set of journal lines.

    ``lines`` are any objects with ``debit`` and ``credit`` attributes.
    Requires at least two lines, non-negative amounts, exactly one nonzero
    side per line, and equal totals.
    """
    lines = list(lines)
    if len(lines) < 2:
        return False, "Journal entry must have at least 2 lines."

    total_debit = ZERO
    total_credit = ZERO
    for index, line in enumerate(lines, start=1):
        if line.debit < 0 or line.credit < 0:
            return False, f"Line {index}: debit/credit cannot be negative."
        if line.debit == 0 and line.credit == 0:
            return False, f"Line {index}: a line cannot have both debit and credit = 0."
        if line.debit > 0 and line.credit > 0:
            return False, f"Line {index}: a line cannot have both debit and credit."
        total_debit += line.debit
        total_credit += line.credit

    if total_debit != total_credit:
        return False, f"Entry is not balanced. Debit={total_debit} Credit={total_credit}"

    return True, ""


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(account: GLAccount) -> tuple[bool, str]:
    if not account.is_active:
        return False, f"Account {account.code} is inactive and cannot receive postings."
    return True, ""


# =============================================================================
# Entry Workflow Policies
# =============================================================================

def can_post_entry(entry: JournalEntry) -> tuple[bool, str]:
    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only DRAFT entries can be posted (entry is {entry.status})."
    return True, ""


def can_reverse_entry(entry: JournalEntry) -> tuple[bool, str]:
    if entry.status == JournalEntry.Status.REVERSED:
        return False, "This entry was already reversed."
    if entry.status != JournalEntry.Status.POSTED:
        return False, f"Only POSTED entries can be reversed (entry is {entry.status})."
    if entry.kind == JournalEntry.Kind.REVERSAL:
        return False, "Reversal entries cannot be reversed."
    return True, ""


def can_discard_entry(entry: JournalEntry) -> tuple[bool, str]:
    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only DRAFT entries can be discarded (entry is {entry.status})."
    return True, ""
