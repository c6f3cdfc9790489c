# tests/test_builder.py
"""
Tests for the journal entry builder.

Tests cover:
- Rule table expansion per transaction type
- Fee legs and account_mappings overrides
- Manual entries with explicit lines
- Rejection of unbalanced or invalid input before anything is persisted
"""

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from ledger.builder import DraftLine, build_entry, lines_from_rule, to_money
from ledger.exceptions import NotFoundError, PostingError, UnbalancedEntryError
from ledger.models import GLAccount, JournalEntry, JournalLine
from ledger.posting_rules import POSTING_RULES, TransactionType


def _legs(entry):
    return [
        (line.account.code, line.debit, line.credit)
        for line in entry.lines.select_related("account").order_by("line_no")
    ]


# =============================================================================
# Rule expansion (no database)
# =============================================================================

class TestLinesFromRule:

    @pytest.mark.parametrize("transaction_type", sorted(POSTING_RULES))
    def test_every_rule_balances(self, transaction_type):
        lines = lines_from_rule(transaction_type, Decimal("250.00"), Decimal("2.50"))
        assert sum(line.debit for line in lines) == sum(line.credit for line in lines)
        assert len(lines) >= 2

    def test_fee_legs_skipped_when_fee_zero(self):
        lines = lines_from_rule(TransactionType.MOMO_CASH_IN, Decimal("100"), Decimal("0"))
        assert [(l.account_code, l.debit, l.credit) for l in lines] == [
            ("1001", Decimal("100.00"), Decimal("0.00")),
            ("1003", Decimal("0.00"), Decimal("100.00")),
        ]

    def test_fee_legs_added(self):
        lines = lines_from_rule(TransactionType.POWER_SALE, Decimal("50"), Decimal("1.50"))
        assert [(l.account_code, l.debit, l.credit) for l in lines] == [
            ("1001", Decimal("50.00"), Decimal("0.00")),
            ("1004", Decimal("0.00"), Decimal("50.00")),
            ("1001", Decimal("1.50"), Decimal("0.00")),
            ("4004", Decimal("0.00"), Decimal("1.50")),
        ]

    def test_account_mappings_override_role(self):
        lines = lines_from_rule(
            TransactionType.MOMO_CASH_OUT,
            Decimal("80"),
            account_mappings={"momo_float": "1010"},
        )
        assert lines[0].account_code == "1010"
        assert lines[1].account_code == "1001"

    def test_unknown_type(self):
        with pytest.raises(UnbalancedEntryError):
            lines_from_rule("lottery_payout", Decimal("10"))

    @pytest.mark.parametrize("amount", ["0", "-5", "0.004"])
    def test_non_positive_amount(self, amount):
        with pytest.raises(UnbalancedEntryError):
            lines_from_rule(TransactionType.COMMISSION, Decimal(amount))

    def test_negative_fee(self):
        with pytest.raises(UnbalancedEntryError):
            lines_from_rule(TransactionType.MOMO_CASH_IN, Decimal("10"), Decimal("-1"))


class TestToMoney:

    @pytest.mark.parametrize("value,expected", [
        ("10", Decimal("10.00")),
        ("10.005", Decimal("10.01")),
        ("10.004", Decimal("10.00")),
        (12.5, Decimal("12.50")),
        (None, Decimal("0.00")),
    ])
    def test_quantizes_half_up(self, value, expected):
        assert to_money(value) == expected

    def test_invalid_amount(self):
        with pytest.raises(UnbalancedEntryError):
            to_money("ten cedis")

    @pytest.mark.parametrize("value", ["NaN", "sNaN", "Infinity", "-Infinity"])
    def test_non_finite_amount(self, value):
        with pytest.raises(UnbalancedEntryError):
            to_money(value)

    def test_nan_rule_amount_is_rejected(self):
        with pytest.raises(UnbalancedEntryError):
            lines_from_rule(TransactionType.COMMISSION, "NaN")


# =============================================================================
# build_entry
# =============================================================================

@pytest.mark.django_db
class TestBuildEntry:

    def test_builds_draft_from_rule(self, actor, chart):
        entry = build_entry(
            actor,
            TransactionType.MOMO_CASH_IN,
            Decimal("100.00"),
            transaction_id="momo-1",
            fee=Decimal("1.00"),
        )

        assert entry.status == JournalEntry.Status.DRAFT
        assert entry.kind == JournalEntry.Kind.NORMAL
        assert entry.transaction_type == "momo_cash_in"
        assert entry.created_by == actor.user
        assert entry.currency == "GHS"
        assert entry.entry_number == ""
        assert _legs(entry) == [
            ("1001", Decimal("100.00"), Decimal("0.00")),
            ("1003", Decimal("0.00"), Decimal("100.00")),
            ("1001", Decimal("1.00"), Decimal("0.00")),
            ("4001", Decimal("0.00"), Decimal("1.00")),
        ]
        assert entry.is_balanced

    def test_draft_does_not_touch_balances(self, actor, chart):
        build_entry(actor, TransactionType.COMMISSION, Decimal("100"), transaction_id="c-1")
        assert GLAccount.objects.get(code="1001").balance == Decimal("0.00")

    def test_auto_provisions_default_accounts(self, actor):
        assert GLAccount.objects.count() == 0

        build_entry(actor, TransactionType.JUMIA_POD_COLLECTION, Decimal("75"), transaction_id="j-1")

        assert set(GLAccount.objects.values_list("code", flat=True)) == {"1001", "2002"}

    def test_mapping_to_unknown_code_is_not_found(self, actor, chart):
        with pytest.raises(NotFoundError):
            build_entry(
                actor,
                TransactionType.COMMISSION,
                Decimal("10"),
                {"commission_revenue": "4999"},
                transaction_id="c-2",
            )
        assert JournalEntry.objects.count() == 0

    def test_mapping_to_existing_account(self, actor, chart):
        GLAccount.objects.create(code="1010", name="MTN Float", account_type="asset")

        entry = build_entry(
            actor,
            TransactionType.FLOAT_RECHARGE,
            Decimal("500"),
            {"momo_float": "1010"},
            transaction_id="fr-1",
        )

        assert _legs(entry)[0] == ("1010", Decimal("500.00"), Decimal("0.00"))

    def test_entry_date_and_memo(self, actor, chart):
        entry = build_entry(
            actor,
            TransactionType.EXPENSE,
            Decimal("20"),
            transaction_id="exp-1",
            entry_date=date(2024, 3, 31),
            memo="Printer paper",
        )
        assert entry.date == date(2024, 3, 31)
        assert entry.memo == "Printer paper"

    def test_transaction_id_required(self, actor, chart):
        with pytest.raises(UnbalancedEntryError):
            build_entry(actor, TransactionType.COMMISSION, Decimal("10"), transaction_id="")

    def test_requires_permission(self, clerk_actor, chart):
        with pytest.raises(PermissionDenied):
            build_entry(clerk_actor, TransactionType.COMMISSION, Decimal("10"), transaction_id="c-3")


@pytest.mark.django_db
class TestManualEntries:

    def test_manual_lines(self, actor, chart):
        entry = build_entry(
            actor,
            TransactionType.MANUAL,
            transaction_id="adj-1",
            lines=[
                {"account_code": "5001", "debit": "40.00", "description": "Fuel"},
                {"account_code": "1001", "credit": "40.00"},
            ],
        )
        assert _legs(entry) == [
            ("5001", Decimal("40.00"), Decimal("0.00")),
            ("1001", Decimal("0.00"), Decimal("40.00")),
        ]
        assert entry.lines.get(line_no=1).description == "Fuel"

    def test_draft_line_objects(self, actor, chart):
        entry = build_entry(
            actor,
            TransactionType.MANUAL,
            transaction_id="adj-2",
            lines=[DraftLine("1001", debit=Decimal("5")), DraftLine("3001", credit=Decimal("5"))],
        )
        assert entry.lines.count() == 2

    def test_unbalanced_lines_rejected_and_nothing_persisted(self, actor, chart):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            build_entry(
                actor,
                TransactionType.MANUAL,
                transaction_id="adj-3",
                lines=[
                    {"account_code": "5001", "debit": "40.00"},
                    {"account_code": "1001", "credit": "39.99"},
                ],
            )

        assert "not balanced" in exc_info.value.reason
        assert isinstance(exc_info.value, PostingError)
        assert JournalEntry.objects.count() == 0
        assert JournalLine.objects.count() == 0

    def test_single_line_rejected(self, actor, chart):
        with pytest.raises(UnbalancedEntryError):
            build_entry(
                actor,
                TransactionType.MANUAL,
                transaction_id="adj-4",
                lines=[{"account_code": "1001", "debit": "0"}],
            )

    @pytest.mark.parametrize("line", [
        {"account_code": "1001", "debit": "10", "credit": "10"},
        {"account_code": "1001", "debit": "0", "credit": "0"},
        {"account_code": "1001", "debit": "-10"},
    ])
    def test_invalid_line_rejected(self, actor, chart, line):
        with pytest.raises(UnbalancedEntryError):
            build_entry(
                actor,
                TransactionType.MANUAL,
                transaction_id="adj-5",
                lines=[line, {"account_code": "3001", "credit": "10"}],
            )
        assert JournalEntry.objects.count() == 0

    def test_lines_not_accepted_for_rule_types(self, actor, chart):
        with pytest.raises(UnbalancedEntryError):
            build_entry(
                actor,
                TransactionType.COMMISSION,
                transaction_id="c-4",
                lines=[
                    {"account_code": "1001", "debit": "10"},
                    {"account_code": "4001", "credit": "10"},
                ],
            )

    def test_manual_without_lines_rejected(self, actor, chart):
        with pytest.raises(UnbalancedEntryError):
            build_entry(actor, TransactionType.MANUAL, Decimal("10"), transaction_id="adj-6")
