# tests/test_chart.py
"""
Tests for the chart of accounts store.

Tests cover:
- Lookups by code and id
- ensure_required_accounts idempotence and type inference
- Normal balance derivation
- Account tree shape
- Balance queries
"""

from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from ledger.chart import (
    DEFAULT_CHART,
    ensure_gl_accounts_exist,
    ensure_required_accounts,
    get_account_balance,
    get_account_balance_by_code,
    get_account_by_code,
    get_account_by_id,
    get_account_tree,
    infer_account_type,
    resolve_accounts,
)
from ledger.exceptions import NotFoundError
from ledger.models import GLAccount


# =============================================================================
# Lookups
# =============================================================================

@pytest.mark.django_db
class TestLookups:

    def test_get_by_code(self, actor, chart):
        account = get_account_by_code(actor, "1001")
        assert account.name == "Cash"
        assert account.account_type == GLAccount.AccountType.ASSET

    def test_get_by_code_missing(self, actor, chart):
        with pytest.raises(NotFoundError):
            get_account_by_code(actor, "9999")

    def test_get_by_id(self, actor, chart):
        assert get_account_by_id(actor, chart["4001"].pk).code == "4001"

    def test_get_by_id_missing(self, actor, chart):
        with pytest.raises(NotFoundError):
            get_account_by_id(actor, 999999)

    def test_not_found_maps_to_404(self, actor, chart):
        with pytest.raises(NotFoundError) as exc_info:
            get_account_by_code(actor, "9999")
        assert exc_info.value.http_status == 404


# =============================================================================
# Provisioning
# =============================================================================

@pytest.mark.django_db
class TestEnsureRequiredAccounts:

    def test_creates_default_chart(self, actor):
        created = ensure_required_accounts(actor, DEFAULT_CHART)
        assert len(created) == len(DEFAULT_CHART)
        assert GLAccount.objects.get(code="2002").name == "Jumia Payable"

    def test_is_idempotent(self, actor):
        ensure_required_accounts(actor, ["1001", "4001"])
        created = ensure_required_accounts(actor, ["1001", "4001"])
        assert created == []
        assert GLAccount.objects.filter(code__in=["1001", "4001"]).count() == 2

    def test_existing_accounts_untouched(self, actor):
        ensure_required_accounts(actor, ["1001"])
        GLAccount.objects.filter(code="1001").update(name="Main Till")

        ensure_required_accounts(actor, ["1001", "1002"])

        assert GLAccount.objects.get(code="1001").name == "Main Till"

    def test_unknown_code_gets_generic_name_and_inferred_type(self, actor):
        (account,) = ensure_required_accounts(actor, ["2999"])
        assert account.name == "GL Account 2999"
        assert account.account_type == GLAccount.AccountType.LIABILITY

    @pytest.mark.parametrize("code,expected", [
        ("1500", "asset"),
        ("2500", "liability"),
        ("3500", "equity"),
        ("4500", "revenue"),
        ("5500", "expense"),
        ("6100", "expense"),
        ("9000", "expense"),
    ])
    def test_infer_account_type(self, code, expected):
        assert infer_account_type(code) == expected

    def test_ensure_gl_accounts_exist_requires_permission(self, clerk_actor):
        with pytest.raises(PermissionDenied):
            ensure_gl_accounts_exist(clerk_actor, ["1001"])

    def test_ensure_gl_accounts_exist_returns_none(self, actor):
        assert ensure_gl_accounts_exist(actor, ["1001"]) is None
        assert GLAccount.objects.filter(code="1001").exists()


@pytest.mark.django_db
class TestResolveAccounts:

    def test_provisions_missing_default_accounts(self, actor):
        accounts = resolve_accounts(actor, ["1001", "4001"])
        assert set(accounts) == {"1001", "4001"}
        assert GLAccount.objects.count() == 2

    def test_unknown_code_is_not_found(self, actor):
        with pytest.raises(NotFoundError):
            resolve_accounts(actor, ["1001", "7777"])
        assert not GLAccount.objects.filter(code="7777").exists()


# =============================================================================
# Model behaviour
# =============================================================================

@pytest.mark.django_db
class TestNormalBalance:

    @pytest.mark.parametrize("account_type,normal", [
        ("asset", "DEBIT"),
        ("expense", "DEBIT"),
        ("liability", "CREDIT"),
        ("equity", "CREDIT"),
        ("revenue", "CREDIT"),
    ])
    def test_normal_balance_set_on_save(self, account_type, normal):
        account = GLAccount.objects.create(code="8000", name="X", account_type=account_type)
        assert account.normal_balance == normal

    def test_signed_delta(self, chart):
        assert chart["1001"].signed_delta(Decimal("10"), Decimal("0")) == Decimal("10")
        assert chart["4001"].signed_delta(Decimal("10"), Decimal("0")) == Decimal("-10")
        assert chart["4001"].signed_delta(Decimal("0"), Decimal("10")) == Decimal("10")


# =============================================================================
# Tree and balances
# =============================================================================

@pytest.mark.django_db
class TestAccountTree:

    def test_children_nested_under_parent(self, actor, chart):
        GLAccount.objects.create(code="1101", name="Branch Till A", account_type="asset", parent=chart["1001"])
        GLAccount.objects.create(code="1100", name="Branch Till B", account_type="asset", parent=chart["1001"])

        tree = get_account_tree(actor)

        codes = [node["code"] for node in tree]
        assert codes == sorted(DEFAULT_CHART)
        cash = next(node for node in tree if node["code"] == "1001")
        assert [child["code"] for child in cash["children"]] == ["1100", "1101"]

    def test_empty_chart(self, actor):
        assert get_account_tree(actor) == []


@pytest.mark.django_db
class TestBalances:

    def test_new_account_balance_is_zero(self, actor, chart):
        balance = get_account_balance(actor, chart["1001"].pk)
        assert balance.code == "1001"
        assert balance.balance == Decimal("0.00")

    def test_balance_by_code_after_posting(self, actor, make_posted_entry):
        make_posted_entry("commission", "100.00")

        assert get_account_balance_by_code(actor, "1001").balance == Decimal("100.00")
        assert get_account_balance_by_code(actor, "4001").balance == Decimal("100.00")

    def test_balance_by_code_missing(self, actor, chart):
        with pytest.raises(NotFoundError):
            get_account_balance_by_code(actor, "9999")
