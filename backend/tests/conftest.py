# tests/conftest.py
"""
Pytest fixtures for ledger tests.

- ActorContext wraps a Django user plus the database alias
- Superuser actors hold every ledger permission
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from rest_framework.test import APIClient

from ledger.authz import ActorContext
from ledger.builder import build_entry
from ledger.chart import DEFAULT_CHART, ensure_required_accounts
from ledger.commands import post_gl_transaction
from ledger.models import FloatAccount, GLAccount

User = get_user_model()


# =============================================================================
# User & Actor Fixtures
# =============================================================================

@pytest.fixture
def superuser(db):
    return User.objects.create_superuser(
        username="accountant",
        email="accountant@mimhaad.test",
        password="testpass123",
    )


@pytest.fixture
def clerk(db):
    """Active user with view permissions only."""
    user = User.objects.create_user(
        username="clerk",
        email="clerk@mimhaad.test",
        password="testpass123",
    )
    user.user_permissions.add(
        *Permission.objects.filter(
            content_type__app_label="ledger",
            codename__in=["view_glaccount", "view_journalentry", "view_floataccount"],
        )
    )
    # Fresh instance so the permission cache is empty
    return User.objects.get(pk=user.pk)


@pytest.fixture
def actor(superuser):
    return ActorContext(user=superuser)


@pytest.fixture
def clerk_actor(clerk):
    return ActorContext(user=clerk)


@pytest.fixture
def system_actor(db):
    return ActorContext.system()


# =============================================================================
# Chart Fixtures
# =============================================================================

@pytest.fixture
def chart(actor):
    """The default chart of accounts, keyed by code."""
    ensure_required_accounts(actor, DEFAULT_CHART)
    return {a.code: a for a in GLAccount.objects.all()}


@pytest.fixture
def momo_float(chart):
    return FloatAccount.objects.create(
        provider="MTN",
        account_type=FloatAccount.AccountType.MOMO,
        branch_code="ACC01",
        current_balance=Decimal("0.00"),
        gl_account=chart["1003"],
    )


# =============================================================================
# Entry Helpers
# =============================================================================

@pytest.fixture
def make_posted_entry(actor, chart):
    """Build and post an entry through the public command path."""
    counter = {"n": 0}

    def _make(transaction_type="commission", amount="100.00", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("transaction_id", f"txn-{counter['n']}")
        entry = build_entry(actor, transaction_type, Decimal(amount), **kwargs)
        return post_gl_transaction(actor, entry.pk)

    return _make


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def api_client(superuser):
    client = APIClient()
    client.force_authenticate(user=superuser)
    return client


@pytest.fixture
def clerk_client(clerk):
    client = APIClient()
    client.force_authenticate(user=clerk)
    return client


@pytest.fixture
def anon_client(db):
    return APIClient()
