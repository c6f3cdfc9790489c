"""
Celery tasks for the ledger.

Tasks:
- sync_float_balances_task: Reconcile float balances into GL control
  accounts (scheduled by CELERY_BEAT_SCHEDULE["sync-float-balances"])

Usage:
    from ledger.tasks import sync_float_balances_task
    sync_float_balances_task.delay()
"""
import logging

from celery import shared_task
from django.db import DatabaseError

from ledger.authz import ActorContext
from ledger.float_sync import sync_float_account_balances

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
)
def sync_float_balances_task(self, using: str = "default") -> dict:
    """
    Run float-to-GL reconciliation as the system actor.

    Only DatabaseError is retried; ledger errors fail the task.

    Returns:
        {"accounts_updated": int, "entry_ids": [int]}
    """
    logger.info("Starting float balance sync", extra={"using": using})
    result = sync_float_account_balances(ActorContext.system(using=using))
    logger.info(
        "Float balance sync finished",
        extra={"using": using, "accounts_updated": result["accounts_updated"]},
    )
    return result
