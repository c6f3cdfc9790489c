# ledger/posting_rules.py
"""
Posting rule tables.

Each business transaction type maps to a fixed list of legs. A leg names
an account role, the side it lands on, whether it carries the transaction
amount or the fee, and the default GL code for the role. Callers may
override the code of any role through ``account_mappings`` (for example a
provider-specific float control account).

Fee legs are skipped when the fee is zero.
"""

from dataclasses import dataclass

from django.db import models


class TransactionType(models.TextChoices):
    MOMO_CASH_IN = "momo_cash_in", "MoMo cash-in"
    MOMO_CASH_OUT = "momo_cash_out", "MoMo cash-out"
    AGENCY_BANKING_DEPOSIT = "agency_banking_deposit", "Agency banking deposit"
    AGENCY_BANKING_WITHDRAWAL = "agency_banking_withdrawal", "Agency banking withdrawal"
    E_ZWICH_WITHDRAWAL = "e_zwich_withdrawal", "E-Zwich withdrawal"
    POWER_SALE = "power_sale", "Power sale"
    POWER_PURCHASE = "power_purchase", "Power float purchase"
    JUMIA_POD_COLLECTION = "jumia_pod_collection", "Jumia POD collection"
    JUMIA_SETTLEMENT = "jumia_settlement", "Jumia settlement"
    COMMISSION = "commission", "Commission"
    EXPENSE = "expense", "Expense"
    FLOAT_RECHARGE = "float_recharge", "Float recharge"
    # Explicit lines, no rule table
    MANUAL = "manual", "Manual journal entry"
    FLOAT_SYNC = "float_sync", "Float reconciliation"


# Types built from caller-supplied lines
EXPLICIT_LINE_TYPES = frozenset({TransactionType.MANUAL, TransactionType.FLOAT_SYNC})

DEBIT = "debit"
CREDIT = "credit"

AMOUNT = "amount"
FEE = "fee"


@dataclass(frozen=True)
class Leg:
    role: str
    side: str
    source: str
    default_code: str


def _pair(debit_role, debit_code, credit_role, credit_code, source=AMOUNT):
    return (
        Leg(debit_role, DEBIT, source, debit_code),
        Leg(credit_role, CREDIT, source, credit_code),
    )


POSTING_RULES: dict[str, tuple[Leg, ...]] = {
    TransactionType.MOMO_CASH_IN: (
        *_pair("cash", "1001", "momo_float", "1003"),
        *_pair("cash", "1001", "fee_revenue", "4001", FEE),
    ),
    TransactionType.MOMO_CASH_OUT: (
        *_pair("momo_float", "1003", "cash", "1001"),
        *_pair("cash", "1001", "fee_revenue", "4001", FEE),
    ),
    TransactionType.AGENCY_BANKING_DEPOSIT: (
        *_pair("cash", "1001", "bank_partner", "2003"),
        *_pair("cash", "1001", "fee_revenue", "4003", FEE),
    ),
    TransactionType.AGENCY_BANKING_WITHDRAWAL: (
        *_pair("bank_partner", "2003", "cash", "1001"),
        *_pair("bank_partner", "2003", "fee_revenue", "4003", FEE),
    ),
    TransactionType.E_ZWICH_WITHDRAWAL: (
        *_pair("settlement", "1002", "cash", "1001"),
        *_pair("settlement", "1002", "fee_revenue", "4003", FEE),
    ),
    TransactionType.POWER_SALE: (
        *_pair("cash", "1001", "power_float", "1004"),
        *_pair("cash", "1001", "fee_revenue", "4004", FEE),
    ),
    TransactionType.POWER_PURCHASE: _pair("power_float", "1004", "cash", "1001"),
    TransactionType.JUMIA_POD_COLLECTION: (
        *_pair("cash", "1001", "jumia_payable", "2002"),
        *_pair("cash", "1001", "fee_revenue", "4005", FEE),
    ),
    TransactionType.JUMIA_SETTLEMENT: _pair("jumia_payable", "2002", "cash", "1001"),
    TransactionType.COMMISSION: _pair("cash", "1001", "commission_revenue", "4001"),
    TransactionType.EXPENSE: _pair("expense", "5001", "cash", "1001"),
    TransactionType.FLOAT_RECHARGE: _pair("momo_float", "1003", "cash", "1001"),
}


def get_rule(transaction_type: str) -> tuple[Leg, ...] | None:
    return POSTING_RULES.get(transaction_type)


def rule_roles(transaction_type: str) -> dict[str, str]:
    """Role -> default code for a rule; empty for unknown types."""
    return {leg.role: leg.default_code for leg in POSTING_RULES.get(transaction_type, ())}
