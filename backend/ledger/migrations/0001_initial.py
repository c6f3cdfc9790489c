from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import ledger.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="GLAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("account_type", models.CharField(
                    choices=[
                        ("asset", "Asset"),
                        ("liability", "Liability"),
                        ("equity", "Equity"),
                        ("revenue", "Revenue"),
                        ("expense", "Expense"),
                    ],
                    db_column="type",
                    max_length=20,
                )),
                ("normal_balance", models.CharField(
                    choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")],
                    editable=False,
                    max_length=10,
                )),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=18)),
                ("is_active", models.BooleanField(default=True)),
                ("description", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="children",
                    to="ledger.glaccount",
                )),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="ledger_glac_type_4c1f0e_idx"),
                    models.Index(fields=["parent"], name="ledger_glac_parent__9b2d31_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transaction_id", models.CharField(db_index=True, help_text="Originating business transaction", max_length=100)),
                ("transaction_type", models.CharField(help_text="Posting rule that built this entry", max_length=50)),
                ("entry_number", models.CharField(blank=True, default="", help_text="Assigned at posting", max_length=50)),
                ("date", models.DateField()),
                ("memo", models.CharField(blank=True, default="", max_length=255)),
                ("currency", models.CharField(default=ledger.models.default_currency, max_length=3)),
                ("kind", models.CharField(
                    choices=[("normal", "Normal"), ("reversal", "Reversal")],
                    default="normal",
                    max_length=20,
                )),
                ("status", models.CharField(
                    choices=[("draft", "Draft"), ("posted", "Posted"), ("reversed", "Reversed")],
                    default="draft",
                    max_length=12,
                )),
                ("version", models.PositiveIntegerField(default=1)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("reversed_at", models.DateTimeField(blank=True, null=True)),
                ("reversal_reason", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="created_journal_entries",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("posted_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="posted_journal_entries",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("reversed_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="reversed_journal_entries",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("reverses_entry", models.OneToOneField(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="reversal_entry",
                    to="ledger.journalentry",
                )),
            ],
            options={
                "ordering": ["-date", "-id"],
                "permissions": [
                    ("post_journalentry", "Can post journal entries"),
                    ("reverse_journalentry", "Can reverse journal entries"),
                ],
                "indexes": [
                    models.Index(fields=["date", "id"], name="ledger_jour_date_7e3a52_idx"),
                    models.Index(fields=["status"], name="ledger_jour_status_1d8c40_idx"),
                    models.Index(fields=["entry_number"], name="ledger_jour_entry_n_5f2b96_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("debit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("account", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="journal_lines",
                    to="ledger.glaccount",
                )),
                ("entry", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="lines",
                    to="ledger.journalentry",
                )),
            ],
            options={
                "ordering": ["entry", "line_no"],
                "unique_together": {("entry", "line_no")},
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gt", 0), ("credit__gt", 0), _negated=True),
                        name="chk_gl_line_not_both_debit_credit",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("debit__exact", 0), ("credit__exact", 0), _negated=True),
                        name="chk_gl_line_not_both_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_gl_line_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FloatAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("provider", models.CharField(max_length=100)),
                ("account_type", models.CharField(
                    choices=[
                        ("momo", "Mobile Money"),
                        ("agency_banking", "Agency Banking"),
                        ("e_zwich", "E-Zwich"),
                        ("power", "Power"),
                        ("jumia", "Jumia"),
                        ("cash_till", "Cash in Till"),
                    ],
                    max_length=20,
                )),
                ("branch_code", models.CharField(blank=True, default="", max_length=20)),
                ("current_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("gl_account", models.ForeignKey(
                    blank=True,
                    help_text="GL control account mirroring this float",
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="float_accounts",
                    to="ledger.glaccount",
                )),
            ],
            options={
                "ordering": ["account_type", "provider", "branch_code"],
                "permissions": [
                    ("sync_floataccount", "Can reconcile float balances into the GL"),
                ],
            },
        ),
    ]
