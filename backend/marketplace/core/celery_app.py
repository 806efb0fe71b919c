from __future__ import annotations
from celery import Celery
from celery.signals import worker_ready
import logging
from marketplace.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "marketplace_hub",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["marketplace.tasks.reconcile"],
)

celery_app.conf.timezone = "UTC"

reconcile_every = max(60, min(86400, int(settings.RECONCILE_SYNC_SECONDS or 3600)))

celery_app.conf.beat_schedule = {
    "reconcile_wallets_every_interval": {
        "task": "marketplace.tasks.reconcile.reconcile_wallets",
        "schedule": float(reconcile_every),
    },
}


@worker_ready.connect
def _kickoff_reconcile(sender=None, **kwargs):
    app = getattr(sender, "app", celery_app)
    try:
        app.send_task("marketplace.tasks.reconcile.reconcile_wallets")
    except Exception as e:
        logger.warning("celery startup task dispatch failed task=reconcile_wallets err=%s", str(e)[:220])
