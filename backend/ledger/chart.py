# ledger/chart.py
"""
Chart of Accounts store.

Lookups by code or id, the default chart used to auto-provision missing
accounts, the account tree, and balance queries.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from django.db import IntegrityError, transaction

from ledger.authz import ActorContext, require
from ledger.exceptions import NotFoundError
from ledger.models import GLAccount

logger = logging.getLogger(__name__)

AccountType = GLAccount.AccountType

# code -> (name, type, description)
DEFAULT_CHART = {
    "1001": ("Cash", AccountType.ASSET, "Cash on hand at branches"),
    "1002": ("E-Zwich Settlement Account", AccountType.ASSET, "E-Zwich settlements receivable"),
    "1003": ("Petty Cash / Float Account", AccountType.ASSET, "Mobile money and agency float"),
    "1004": ("Power Float Account", AccountType.ASSET, "Prepaid power float"),
    "2001": ("Customer Liability", AccountType.LIABILITY, "Amounts owed to customers"),
    "2002": ("Jumia Payable", AccountType.LIABILITY, "Pay-on-delivery collections owed to Jumia"),
    "2003": ("Bank Partner Liability", AccountType.LIABILITY, "Agency banking amounts owed to partner banks"),
    "3001": ("Float Reconciliation Reserve", AccountType.EQUITY, "Offset for float-to-GL reconciliation"),
    "4001": ("MoMo Commission Revenue", AccountType.REVENUE, "Mobile money commissions"),
    "4002": ("E-Zwich Revenue", AccountType.REVENUE, "E-Zwich card and service revenue"),
    "4003": ("Transaction Fee Income", AccountType.REVENUE, "Fees charged on transactions"),
    "4004": ("Power Commission Revenue", AccountType.REVENUE, "Commissions on power sales"),
    "4005": ("Jumia Commission Revenue", AccountType.REVENUE, "Commissions on Jumia collections"),
    "5001": ("General Expenses", AccountType.EXPENSE, "Operating expenses"),
}

# Leading digit of an account code -> account type
_TYPE_BY_PREFIX = {
    "1": AccountType.ASSET,
    "2": AccountType.LIABILITY,
    "3": AccountType.EQUITY,
    "4": AccountType.REVENUE,
}


@dataclass(frozen=True)
class Balance:
    account_id: int
    code: str
    name: str
    account_type: str
    normal_balance: str
    balance: Decimal

    @classmethod
    def of(cls, account: GLAccount) -> "Balance":
        return cls(
            account_id=account.pk,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            normal_balance=account.normal_balance,
            balance=account.balance,
        )


def infer_account_type(code: str) -> str:
    """1 asset, 2 liability, 3 equity, 4 revenue, anything else expense."""
    return _TYPE_BY_PREFIX.get(code[:1], AccountType.EXPENSE)


def get_account_by_code(actor: ActorContext, code: str) -> GLAccount:
    try:
        return GLAccount.objects.using(actor.using).get(code=code)
    except GLAccount.DoesNotExist:
        raise NotFoundError(f"GL account with code {code} not found.")


def get_account_by_id(actor: ActorContext, account_id: int) -> GLAccount:
    try:
        return GLAccount.objects.using(actor.using).get(pk=account_id)
    except GLAccount.DoesNotExist:
        raise NotFoundError(f"GL account {account_id} not found.")


def ensure_required_accounts(actor: ActorContext, codes: Iterable[str]) -> list[GLAccount]:
    """
    Create any missing accounts among ``codes``.

    Known codes get their default-chart name and type; unknown codes get a
    generic name and a type inferred from the leading digit. Existing
    accounts are left untouched. Returns the accounts created.
    """
    wanted = list(dict.fromkeys(str(c).strip() for c in codes if str(c).strip()))
    if not wanted:
        return []

    qs = GLAccount.objects.using(actor.using)
    existing = set(qs.filter(code__in=wanted).values_list("code", flat=True))

    created = []
    for code in wanted:
        if code in existing:
            continue
        name, account_type, description = DEFAULT_CHART.get(
            code, (f"GL Account {code}", infer_account_type(code), "")
        )
        try:
            with transaction.atomic(using=actor.using):
                account = qs.create(
                    code=code,
                    name=name,
                    account_type=account_type,
                    description=description,
                )
        except IntegrityError:
            # Created concurrently
            continue
        created.append(account)
        logger.info(
            "GL account provisioned",
            extra={"account_code": code, "account_type": account_type},
        )

    return created


def ensure_gl_accounts_exist(actor: ActorContext, required_codes: Iterable[str]) -> None:
    require(actor, "ledger.add_glaccount")
    ensure_required_accounts(actor, required_codes)


def resolve_accounts(actor: ActorContext, codes: Iterable[str]) -> dict[str, GLAccount]:
    """
    Map codes to accounts, provisioning missing default-chart accounts.

    Raises NotFoundError for a missing code outside the default chart.
    """
    codes = set(codes)
    accounts = {
        a.code: a for a in GLAccount.objects.using(actor.using).filter(code__in=codes)
    }
    missing = codes - accounts.keys()
    unknown = sorted(c for c in missing if c not in DEFAULT_CHART)
    if unknown:
        raise NotFoundError(f"GL account with code {', '.join(unknown)} not found.")
    if missing:
        ensure_required_accounts(actor, sorted(missing))
        for account in GLAccount.objects.using(actor.using).filter(code__in=missing):
            accounts[account.code] = account
    return accounts


def get_account_tree(actor: ActorContext) -> list[dict]:
    """Roots first, each node carrying its ``children``, ordered by code."""
    accounts = list(GLAccount.objects.using(actor.using).order_by("code"))

    nodes = {}
    for account in accounts:
        nodes[account.pk] = {
            "id": account.pk,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "balance": account.balance,
            "is_active": account.is_active,
            "children": [],
        }

    roots = []
    for account in accounts:
        node = nodes[account.pk]
        if account.parent_id and account.parent_id in nodes:
            nodes[account.parent_id]["children"].append(node)
        else:
            roots.append(node)
    return roots


def get_account_balance(actor: ActorContext, account_id: int) -> Balance:
    return Balance.of(get_account_by_id(actor, account_id))


def get_account_balance_by_code(actor: ActorContext, code: str) -> Balance:
    return Balance.of(get_account_by_code(actor, code))
