# ledger/urls.py
"""
URL configuration for the GL API (mounted at /api/gl/).

Endpoints:
- /accounts/ - Chart of accounts, create missing accounts
- /journal-entries/ - Build, post, reverse, discard entries
- /trial-balance/, /verify-balances/, /statistics/ - Reports
- /float-accounts/ - Float accounts and float-to-GL sync
"""

from django.urls import path

from .views import (
    BalanceVerificationView,
    FloatAccountListView,
    FloatSyncView,
    GLAccountBalanceByCodeView,
    GLAccountBalanceView,
    GLAccountByCodeView,
    GLAccountDetailView,
    GLAccountListView,
    GLAccountTreeView,
    JournalEntriesByTransactionView,
    JournalEntryDetailView,
    JournalEntryListCreateView,
    JournalEntryPostView,
    JournalEntryReverseView,
    LedgerStatisticsView,
    TrialBalanceView,
)

app_name = "ledger"

urlpatterns = [
    # ==========================================================================
    # Accounts
    # ==========================================================================
    path("accounts/", GLAccountListView.as_view(), name="account-list"),
    path("accounts/tree/", GLAccountTreeView.as_view(), name="account-tree"),
    path("accounts/<int:pk>/", GLAccountDetailView.as_view(), name="account-detail"),
    path("accounts/<int:pk>/balance/", GLAccountBalanceView.as_view(), name="account-balance"),
    path("accounts/code/<str:code>/", GLAccountByCodeView.as_view(), name="account-by-code"),
    path(
        "accounts/code/<str:code>/balance/",
        GLAccountBalanceByCodeView.as_view(),
        name="account-balance-by-code",
    ),

    # ==========================================================================
    # Journal Entries
    # ==========================================================================
    path("journal-entries/", JournalEntryListCreateView.as_view(), name="entry-list"),
    path("journal-entries/<int:pk>/", JournalEntryDetailView.as_view(), name="entry-detail"),
    path("journal-entries/<int:pk>/post/", JournalEntryPostView.as_view(), name="entry-post"),
    path("journal-entries/<int:pk>/reverse/", JournalEntryReverseView.as_view(), name="entry-reverse"),
    path(
        "journal-entries/by-transaction/<str:transaction_id>/",
        JournalEntriesByTransactionView.as_view(),
        name="entries-by-transaction",
    ),

    # ==========================================================================
    # Reports
    # ==========================================================================
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("verify-balances/", BalanceVerificationView.as_view(), name="verify-balances"),
    path("statistics/", LedgerStatisticsView.as_view(), name="statistics"),

    # ==========================================================================
    # Float Accounts
    # ==========================================================================
    path("float-accounts/", FloatAccountListView.as_view(), name="float-account-list"),
    path("float-accounts/sync/", FloatSyncView.as_view(), name="float-sync"),
]
