from __future__ import annotations
import asyncio
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.core.celery_app import celery_app
from marketplace.core.config import settings
from marketplace.core.db import AsyncSessionLocal
from marketplace.models.wallet import Wallet
from marketplace.services.ledger import reconcile_wallet
from marketplace.services.locks import redis_lock
from marketplace.services.task_metrics import ReconcileStats

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


@celery_app.task(name="marketplace.tasks.reconcile.reconcile_wallets")
def reconcile_wallets():
    lock_ttl = max(120, int(settings.RECONCILE_SYNC_SECONDS or 3600))
    with redis_lock("marketplace:lock:reconcile_wallets", ttl_seconds=lock_ttl) as ok:
        if not ok:
            logger.info("reconcile_wallets skipped: lock not acquired")
            return
        stats = asyncio.run(reconcile_wallets_async())
        logger.info("reconcile_wallets stats: %s", stats)


async def reconcile_wallets_async(session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal) -> ReconcileStats:
    """Check every wallet's cached totals against its transaction log. Read-only."""
    stats = ReconcileStats()
    last_id = 0
    async with session_factory() as db:
        while True:
            q = await db.execute(
                select(Wallet).where(Wallet.id > last_id).order_by(Wallet.id.asc()).limit(BATCH_SIZE)
            )
            wallets = q.scalars().all()
            if not wallets:
                break

            for w in wallets:
                stats.scanned_wallets += 1
                mismatches = await reconcile_wallet(db, w)
                if mismatches:
                    stats.mismatched_wallets += 1
                    logger.warning("wallet mismatch wallet_id=%s vendor_id=%s diff=%s", w.id, w.vendor_id, mismatches)
                else:
                    stats.consistent_wallets += 1

            last_id = wallets[-1].id
            if len(wallets) < BATCH_SIZE:
                break
    return stats
