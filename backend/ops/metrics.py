"""
Prometheus metrics.

Counters are incremented by the ledger command layer; gauges are refreshed
from the database on each scrape.

Metrics exposed:
- ledger_entries_built_total: Draft entries built, by transaction type
- ledger_entries_posted_total: Entries posted, by transaction type
- ledger_entries_reversed_total: Entries reversed
- ledger_posting_failures_total: Rejected postings, by error class
- ledger_float_sync_accounts_updated_total: Control accounts corrected by float sync
- ledger_entries: Current entry count by status
- ledger_request_duration_seconds: HTTP request duration histogram
"""
import logging
import re
import time

from django.db import DatabaseError
from django.db.models import Count
from django.http import HttpResponse
from django.views import View
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

entries_built = Counter(
    "ledger_entries_built_total",
    "Draft journal entries built",
    ["transaction_type"],
)
entries_posted = Counter(
    "ledger_entries_posted_total",
    "Journal entries posted",
    ["transaction_type"],
)
entries_reversed = Counter(
    "ledger_entries_reversed_total",
    "Journal entries reversed",
)
posting_failures = Counter(
    "ledger_posting_failures_total",
    "Posting attempts rejected",
    ["error"],
)
float_sync_accounts_updated = Counter(
    "ledger_float_sync_accounts_updated_total",
    "GL control accounts corrected by float reconciliation",
)
entries_by_status = Gauge(
    "ledger_entries",
    "Journal entries by status",
    ["status"],
)
request_duration = Histogram(
    "ledger_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


def collect_metrics():
    """Refresh database-derived gauges."""
    from ledger.models import JournalEntry

    try:
        counts = {
            row["status"]: row["count"]
            for row in JournalEntry.objects.values("status").annotate(count=Count("id"))
        }
    except DatabaseError as e:
        logger.error("Error collecting metrics", extra={"error": str(e)})
        return

    for status in JournalEntry.Status.values:
        entries_by_status.labels(status=status).set(counts.get(status, 0))


class MetricsView(View):
    """
    Prometheus metrics endpoint at /_metrics/.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        collect_metrics()
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


def track_request_metrics(get_response):
    """
    Middleware recording request duration.

    Add to MIDDLEWARE after SecurityMiddleware:
        "ops.metrics.track_request_metrics",
    """

    def middleware(request):
        start = time.time()
        status = 500
        try:
            response = get_response(request)
            status = response.status_code
            return response
        finally:
            # Collapse ids to keep label cardinality bounded
            endpoint = re.sub(r"/\d+/", "/{id}/", request.path)
            request_duration.labels(
                method=request.method,
                endpoint=endpoint[:50],
                status=f"{status // 100}xx",
            ).observe(time.time() - start)

    return middleware
