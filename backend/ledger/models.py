# ledger/models.py
"""
General ledger models.

All mutations MUST go through the command layer (ledger/commands.py,
ledger/builder.py, ledger/float_sync.py). In particular GLAccount.balance
is only ever changed by the posting engine.

Models:
- LedgerSequence: Counters for sequential identifiers (entry numbers)
- GLAccount: Chart of accounts with current balances
- JournalEntry: Journal entry headers
- JournalLine: Journal entry lines
- FloatAccount: Operational cash/e-money pools mirrored by GL control accounts
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum

MONEY_Q = Decimal("0.01")


def default_currency() -> str:
    return getattr(settings, "LEDGER_CURRENCY", "GHS")


class LedgerSequence(models.Model):
    """
    Named counters for sequential identifiers.

    Allocated by commands under select_for_update to avoid concurrent
    duplicates.
    """

    name = models.CharField(max_length=100, unique=True)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}={self.next_value}"


class GLAccount(models.Model):
    """
    Chart of Accounts entry.

    ``balance`` is signed in normal-balance terms: a debit-normal account
    grows with debits, a credit-normal account grows with credits.
    """

    class AccountType(models.TextChoices):
        ASSET = "asset", "Asset"
        LIABILITY = "liability", "Liability"
        EQUITY = "equity", "Equity"
        REVENUE = "revenue", "Revenue"
        EXPENSE = "expense", "Expense"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    NORMAL_BALANCE_MAP = {
        AccountType.ASSET: NormalBalance.DEBIT,
        AccountType.EXPENSE: NormalBalance.DEBIT,
        AccountType.LIABILITY: NormalBalance.CREDIT,
        AccountType.EQUITY: NormalBalance.CREDIT,
        AccountType.REVENUE: NormalBalance.CREDIT,
    }

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        db_column="type",
    )

    normal_balance = models.CharField(
        max_length=10,
        choices=NormalBalance.choices,
        editable=False,
    )

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )

    is_active = models.BooleanField(default=True)
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type"], name="ledger_glac_type_4c1f0e_idx"),
            models.Index(fields=["parent"], name="ledger_glac_parent__9b2d31_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        if self.parent_id and self.parent_id == self.pk:
            raise ValidationError("An account cannot be its own parent.")

    def save(self, *args, **kwargs):
        self.normal_balance = self.NORMAL_BALANCE_MAP[self.account_type]
        super().save(*args, **kwargs)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.NormalBalance.DEBIT

    def signed_delta(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Balance change caused by posting ``debit``/``credit`` to this account."""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit


class JournalEntry(models.Model):
    """
    Journal Entry header.

    Workflow: DRAFT -> POSTED -> REVERSED
    - DRAFT: Built and balanced, not yet affecting balances (may be discarded)
    - POSTED: Finalized, account balances updated
    - REVERSED: Cancelled by a posted REVERSAL entry (reversal_entry)

    Status transitions are compare-and-swap updates on (status, version).
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        POSTED = "posted", "Posted"
        REVERSED = "reversed", "Reversed"

    class Kind(models.TextChoices):
        NORMAL = "normal", "Normal"
        REVERSAL = "reversal", "Reversal"

    transaction_id = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Originating business transaction",
    )
    transaction_type = models.CharField(
        max_length=50,
        help_text="Posting rule that built this entry",
    )

    entry_number = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Assigned at posting",
    )

    date = models.DateField()
    memo = models.CharField(max_length=255, blank=True, default="")
    currency = models.CharField(max_length=3, default=default_currency)

    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.NORMAL,
    )
    status = models.CharField(
        max_length=12,
        choices=Status.choices,
        default=Status.DRAFT,
    )
    version = models.PositiveIntegerField(default=1)

    # Posting metadata
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posted_journal_entries",
    )

    # Reversal metadata
    reversed_at = models.DateTimeField(null=True, blank=True)
    reversed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reversed_journal_entries",
    )
    reversal_reason = models.CharField(max_length=255, blank=True, default="")
    reverses_entry = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal_entry",
    )

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journal_entries",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["date", "id"], name="ledger_jour_date_7e3a52_idx"),
            models.Index(fields=["status"], name="ledger_jour_status_1d8c40_idx"),
            models.Index(fields=["entry_number"], name="ledger_jour_entry_n_5f2b96_idx"),
        ]
        ordering = ["-date", "-id"]
        permissions = [
            ("post_journalentry", "Can post journal entries"),
            ("reverse_journalentry", "Can reverse journal entries"),
        ]

    def __str__(self):
        num = self.entry_number or f"#{self.id}"
        return f"JE {num} ({self.date}) {self.status}"

    def clean(self):
        if self.reverses_entry_id and self.kind != self.Kind.REVERSAL:
            raise ValidationError("If reverses_entry is set, kind must be REVERSAL.")

    @property
    def total_debit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("debit"))["total"] or Decimal("0.00")

    @property
    def total_credit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("credit"))["total"] or Decimal("0.00")

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalLine(models.Model):
    """
    Individual line within a journal entry.
    Each line affects one account with either a debit or credit amount.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        GLAccount,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    class Meta:
        unique_together = ("entry", "line_no")
        ordering = ["entry", "line_no"]
        constraints = [
            models.CheckConstraint(
                condition=~(Q(debit__gt=0) & Q(credit__gt=0)),
                name="chk_gl_line_not_both_debit_credit",
            ),
            models.CheckConstraint(
                condition=~(Q(debit__exact=0) & Q(credit__exact=0)),
                name="chk_gl_line_not_both_zero",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_gl_line_non_negative",
            ),
        ]

    def __str__(self):
        return f"JE#{self.entry_id} L{self.line_no}"

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit > 0 else self.credit

    @property
    def is_debit(self) -> bool:
        return self.debit > 0


class FloatAccount(models.Model):
    """
    Operational cash or e-money pool at a branch.

    ``current_balance`` is maintained by the transaction-processing side;
    the ledger only reads it when reconciling the linked GL control
    account. Several float accounts may share one control account.
    """

    class AccountType(models.TextChoices):
        MOMO = "momo", "Mobile Money"
        AGENCY_BANKING = "agency_banking", "Agency Banking"
        E_ZWICH = "e_zwich", "E-Zwich"
        POWER = "power", "Power"
        JUMIA = "jumia", "Jumia"
        CASH_TILL = "cash_till", "Cash in Till"

    provider = models.CharField(max_length=100)
    account_type = models.CharField(max_length=20, choices=AccountType.choices)
    branch_code = models.CharField(max_length=20, blank=True, default="")
    current_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField(default=True)

    gl_account = models.ForeignKey(
        GLAccount,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="float_accounts",
        help_text="GL control account mirroring this float",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["account_type", "provider", "branch_code"]
        permissions = [
            ("sync_floataccount", "Can reconcile float balances into the GL"),
        ]

    def __str__(self):
        branch = f" @{self.branch_code}" if self.branch_code else ""
        return f"{self.get_account_type_display()} {self.provider}{branch}"
