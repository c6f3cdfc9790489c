# ledger/views.py
"""
Thin views that delegate to the command layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business rules, validation, balance updates.

Ledger errors are rendered as {"detail": reason, "error": class name}
with the status code the error class declares.
"""

from django.db import transaction
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .authz import require, resolve_actor
from .builder import build_entry
from .chart import (
    ensure_gl_accounts_exist,
    get_account_balance,
    get_account_balance_by_code,
    get_account_by_code,
    get_account_by_id,
    get_account_tree,
)
from .commands import (
    discard_journal_entry,
    get_journal_entries_by_transaction_id,
    get_journal_entry,
    post_gl_transaction,
    reverse_journal_entry,
)
from .exceptions import LedgerError
from .float_sync import sync_float_account_balances
from .models import FloatAccount, GLAccount, JournalEntry
from .serializers import (
    BalanceMismatchSerializer,
    BalanceSerializer,
    BuildEntrySerializer,
    EnsureAccountsSerializer,
    FloatAccountSerializer,
    GLAccountSerializer,
    JournalEntryQuerySerializer,
    JournalEntrySerializer,
    ReverseEntrySerializer,
    TrialBalanceQuerySerializer,
    TrialBalanceSerializer,
)
from .trial_balance import get_ledger_statistics, get_trial_balance, verify_account_balances


def error_response(exc: LedgerError) -> Response:
    return Response(
        {"detail": exc.reason, "error": type(exc).__name__},
        status=exc.http_status,
    )


class LedgerAPIView(APIView):
    """APIView that renders ledger errors with their own status codes."""

    def handle_exception(self, exc):
        if isinstance(exc, LedgerError):
            return error_response(exc)
        return super().handle_exception(exc)


# =============================================================================
# Accounts
# =============================================================================

class GLAccountListView(LedgerAPIView):
    """
    GET  /api/gl/accounts/  - chart of accounts (?type=asset&active=true)
    POST /api/gl/accounts/  - create missing accounts {"codes": [...]}
    """

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")

        qs = GLAccount.objects.using(actor.using).select_related("parent").order_by("code")
        account_type = request.query_params.get("type")
        if account_type:
            qs = qs.filter(account_type=account_type)
        active = request.query_params.get("active")
        if active is not None:
            qs = qs.filter(is_active=active.lower() in ("1", "true", "yes"))

        return Response(GLAccountSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = EnsureAccountsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ensure_gl_accounts_exist(actor, serializer.validated_data["codes"])

        accounts = GLAccount.objects.using(actor.using).filter(
            code__in=serializer.validated_data["codes"]
        ).order_by("code")
        return Response(GLAccountSerializer(accounts, many=True).data)


class GLAccountDetailView(LedgerAPIView):
    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")
        return Response(GLAccountSerializer(get_account_by_id(actor, pk)).data)


class GLAccountByCodeView(LedgerAPIView):
    def get(self, request, code):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")
        return Response(GLAccountSerializer(get_account_by_code(actor, code)).data)


class GLAccountBalanceView(LedgerAPIView):
    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")
        return Response(BalanceSerializer(get_account_balance(actor, pk)).data)


class GLAccountBalanceByCodeView(LedgerAPIView):
    def get(self, request, code):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")
        return Response(BalanceSerializer(get_account_balance_by_code(actor, code)).data)


class GLAccountTreeView(LedgerAPIView):
    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")
        return Response(get_account_tree(actor))


# =============================================================================
# Journal Entries
# =============================================================================

class JournalEntryListCreateView(LedgerAPIView):
    """
    GET  /api/gl/journal-entries/  - list (?status=posted&transaction_type=...)
    POST /api/gl/journal-entries/  - build a draft, optionally post it ("post": true)
    """

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_journalentry")

        query = JournalEntryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        qs = JournalEntry.objects.using(actor.using).prefetch_related("lines__account")
        if "status" in params:
            qs = qs.filter(status=params["status"])
        if "transaction_type" in params:
            qs = qs.filter(transaction_type=params["transaction_type"])
        if "date_from" in params:
            qs = qs.filter(date__gte=params["date_from"])
        if "date_to" in params:
            qs = qs.filter(date__lte=params["date_to"])

        return Response(JournalEntrySerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = BuildEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # A rejected post rolls back the draft as well
        with transaction.atomic(using=actor.using):
            entry = build_entry(
                actor,
                data["transaction_type"],
                data.get("amount"),
                data.get("account_mappings") or None,
                transaction_id=data["transaction_id"],
                fee=data.get("fee", 0),
                lines=data.get("lines"),
                entry_date=data.get("date"),
                memo=data.get("memo", ""),
            )
            if data.get("post"):
                entry = post_gl_transaction(actor, entry.pk)

        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class JournalEntryDetailView(LedgerAPIView):
    """
    GET    /api/gl/journal-entries/<pk>/  - entry with lines
    DELETE /api/gl/journal-entries/<pk>/  - discard a draft
    """

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "ledger.view_journalentry")
        return Response(JournalEntrySerializer(get_journal_entry(actor, pk)).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        discard_journal_entry(actor, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class JournalEntryPostView(LedgerAPIView):
    def post(self, request, pk):
        actor = resolve_actor(request)
        entry = post_gl_transaction(actor, pk)
        return Response(JournalEntrySerializer(entry).data)


class JournalEntryReverseView(LedgerAPIView):
    def post(self, request, pk):
        actor = resolve_actor(request)
        serializer = ReverseEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        original = reverse_journal_entry(actor, pk, serializer.validated_data["reason"])

        return Response({
            "original": JournalEntrySerializer(original).data,
            "reversal": JournalEntrySerializer(original.reversal_entry).data,
        })


class JournalEntriesByTransactionView(LedgerAPIView):
    def get(self, request, transaction_id):
        actor = resolve_actor(request)
        require(actor, "ledger.view_journalentry")
        entries = get_journal_entries_by_transaction_id(actor, transaction_id)
        return Response(JournalEntrySerializer(entries, many=True).data)


# =============================================================================
# Reports
# =============================================================================

class TrialBalanceView(LedgerAPIView):
    """GET /api/gl/trial-balance/?as_of_date=YYYY-MM-DD"""

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")

        query = TrialBalanceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        report = get_trial_balance(actor, query.validated_data.get("as_of_date"))
        return Response(TrialBalanceSerializer(report).data)


class BalanceVerificationView(LedgerAPIView):
    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_glaccount")

        mismatches = verify_account_balances(actor)
        return Response({
            "is_consistent": not mismatches,
            "mismatches": BalanceMismatchSerializer(mismatches, many=True).data,
        })


class LedgerStatisticsView(LedgerAPIView):
    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_journalentry")

        stats = get_ledger_statistics(actor)
        stats["posted_debits"] = str(stats["posted_debits"])
        stats["posted_credits"] = str(stats["posted_credits"])
        return Response(stats)


# =============================================================================
# Float Accounts
# =============================================================================

class FloatAccountListView(LedgerAPIView):
    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view_floataccount")

        qs = FloatAccount.objects.using(actor.using).select_related("gl_account")
        account_type = request.query_params.get("account_type")
        if account_type:
            qs = qs.filter(account_type=account_type)
        branch_code = request.query_params.get("branch_code")
        if branch_code:
            qs = qs.filter(branch_code=branch_code)

        return Response(FloatAccountSerializer(qs, many=True).data)


class FloatSyncView(LedgerAPIView):
    def post(self, request):
        actor = resolve_actor(request)
        result = sync_float_account_balances(actor)
        return Response(result)
