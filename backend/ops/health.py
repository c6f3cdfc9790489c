"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - liveness probe (is the process running?)
- /_health/ready   - readiness probe (can we serve traffic?)
- /_health/full    - full report, including ledger integrity
"""
import logging
import time
from typing import Dict, Any

from django.conf import settings
from django.db import connections, DatabaseError
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


class HealthCheck:
    """Health check implementation."""

    @staticmethod
    def check_database(alias: str = "default") -> Dict[str, Any]:
        """Check database connectivity."""
        start = time.time()
        try:
            conn = connections[alias]
            conn.ensure_connection()
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except DatabaseError as e:
            logger.warning(
                "Database health check failed",
                extra={"alias": alias, "error": str(e)},
            )
            return {
                "status": "unhealthy",
                "alias": alias,
                "error": str(e),
                "duration_ms": round((time.time() - start) * 1000, 2),
            }
        return {
            "status": "healthy",
            "alias": alias,
            "duration_ms": round((time.time() - start) * 1000, 2),
        }

    @staticmethod
    def check_ledger(alias: str = "default") -> Dict[str, Any]:
        """Trial balance totals and stored-vs-derived account balances."""
        from ledger.authz import ActorContext
        from ledger.trial_balance import get_trial_balance, verify_account_balances

        actor = ActorContext.system(using=alias)
        try:
            trial = get_trial_balance(actor)
            mismatches = verify_account_balances(actor)
        except DatabaseError as e:
            return {"status": "error", "error": str(e)}

        healthy = trial["is_balanced"] and not mismatches
        return {
            "status": "healthy" if healthy else "unhealthy",
            "total_debits": str(trial["total_debits"]),
            "total_credits": str(trial["total_credits"]),
            "balance_mismatches": len(mismatches),
        }

    @staticmethod
    def get_full_health() -> Dict[str, Any]:
        checks = {
            "database": HealthCheck.check_database("default"),
            "ledger": HealthCheck.check_ledger("default"),
        }

        statuses = [c.get("status", "unknown") for c in checks.values()]
        if all(s == "healthy" for s in statuses):
            overall = "healthy"
        elif any(s == "unhealthy" for s in statuses):
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "version": getattr(settings, "VERSION", "unknown"),
            "environment": "development" if settings.DEBUG else "production",
        }


class LivenessView(View):
    """
    Liveness probe.

    Returns 200 if the process is running. Checks nothing external.
    """

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """
    Readiness probe.

    Returns 200 if the database answers, 503 otherwise.
    """

    def get(self, request):
        db_check = HealthCheck.check_database("default")

        if db_check["status"] == "healthy":
            return JsonResponse({"status": "ready", "database": db_check})
        return JsonResponse(
            {"status": "not_ready", "database": db_check},
            status=503,
        )


class FullHealthView(View):
    """
    Full health report for dashboards.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        health = HealthCheck.get_full_health()
        status_code = 200 if health["status"] == "healthy" else 503
        return JsonResponse(health, status=status_code)
