"""Vendor wallet ledger.

Each wallet keeps cached totals next to an append-only log of
``WalletTransaction`` rows. Totals are only ever changed by a single
``UPDATE ... SET col = col + :amount`` so concurrent order credits and payout
debits against one vendor never lose an update.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Iterable

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import InsufficientBalanceError, ValidationError
from marketplace.models.common import utcnow
from marketplace.models.ledger import TransactionType, WalletTransaction
from marketplace.models.wallet import Wallet

logger = logging.getLogger(__name__)


@dataclass
class WalletTotals:
    balance: int = 0
    total_earnings: int = 0
    total_commission_paid: int = 0
    total_refunds: int = 0


def fold_transactions(entries: Iterable[WalletTransaction]) -> WalletTotals:
    totals = WalletTotals()
    for t in entries:
        amount = int(t.amount)
        if t.type == TransactionType.credit:
            totals.balance += amount
            totals.total_earnings += amount
        elif t.type == TransactionType.refund:
            totals.balance += amount
            totals.total_refunds += amount
        elif t.type == TransactionType.debit:
            totals.balance -= amount
        elif t.type == TransactionType.commission:
            totals.total_commission_paid += amount
    return totals


async def get_wallet(db: AsyncSession, vendor_id: int) -> Wallet | None:
    q = await db.execute(
        select(Wallet).where(Wallet.vendor_id == vendor_id).execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()


async def get_or_create_wallet(db: AsyncSession, vendor_id: int) -> Wallet:
    wallet = await get_wallet(db, vendor_id)
    if wallet:
        return wallet
    wallet = Wallet(vendor_id=vendor_id, balance=0, total_earnings=0, total_commission_paid=0, total_refunds=0)
    db.add(wallet)
    await db.flush()
    return wallet


async def _append(
    db: AsyncSession,
    vendor_id: int,
    tx_type: TransactionType,
    amount: int,
    description: str,
    order_id: int | None = None,
    payout_id: int | None = None,
    dedup_key: str | None = None,
) -> WalletTransaction:
    amount = int(amount)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    if dedup_key:
        q = await db.execute(select(WalletTransaction).where(WalletTransaction.dedup_key == dedup_key))
        existing = q.scalar_one_or_none()
        if existing:
            logger.info("ledger entry already applied dedup_key=%s", dedup_key)
            return existing

    if tx_type == TransactionType.debit:
        wallet = await get_wallet(db, vendor_id)
        if not wallet:
            raise InsufficientBalanceError()
    else:
        wallet = await get_or_create_wallet(db, vendor_id)

    stmt = update(Wallet).where(Wallet.id == wallet.id)
    if tx_type == TransactionType.credit:
        stmt = stmt.values(balance=Wallet.balance + amount, total_earnings=Wallet.total_earnings + amount)
    elif tx_type == TransactionType.refund:
        stmt = stmt.values(balance=Wallet.balance + amount, total_refunds=Wallet.total_refunds + amount)
    elif tx_type == TransactionType.debit:
        stmt = stmt.where(Wallet.balance >= amount).values(balance=Wallet.balance - amount)
    else:
        stmt = stmt.values(total_commission_paid=Wallet.total_commission_paid + amount)

    res = await db.execute(
        stmt.values(updated_at=utcnow())
        .returning(Wallet.balance)
        .execution_options(synchronize_session=False)
    )
    balance_after = res.scalar_one_or_none()
    if balance_after is None:
        raise InsufficientBalanceError()

    tx = WalletTransaction(
        wallet_id=wallet.id,
        vendor_id=vendor_id,
        order_id=order_id,
        payout_id=payout_id,
        type=tx_type,
        amount=amount,
        description=description,
        balance_after=int(balance_after),
        dedup_key=dedup_key,
        occurred_at=utcnow(),
    )
    db.add(tx)
    await db.flush()
    logger.info(
        "ledger %s vendor_id=%s amount=%s balance_after=%s order_id=%s payout_id=%s",
        tx_type.value, vendor_id, amount, balance_after, order_id, payout_id,
    )
    return tx


async def credit(db: AsyncSession, vendor_id: int, amount: int, description: str, order_id: int | None = None, dedup_key: str | None = None) -> WalletTransaction:
    return await _append(db, vendor_id, TransactionType.credit, amount, description, order_id=order_id, dedup_key=dedup_key)


async def record_commission(db: AsyncSession, vendor_id: int, amount: int, description: str, order_id: int | None = None, dedup_key: str | None = None) -> WalletTransaction:
    return await _append(db, vendor_id, TransactionType.commission, amount, description, order_id=order_id, dedup_key=dedup_key)


async def debit(db: AsyncSession, vendor_id: int, amount: int, description: str, payout_id: int | None = None, dedup_key: str | None = None) -> WalletTransaction:
    return await _append(db, vendor_id, TransactionType.debit, amount, description, payout_id=payout_id, dedup_key=dedup_key)


async def refund(db: AsyncSession, vendor_id: int, amount: int, description: str, payout_id: int | None = None, dedup_key: str | None = None) -> WalletTransaction:
    return await _append(db, vendor_id, TransactionType.refund, amount, description, payout_id=payout_id, dedup_key=dedup_key)


async def list_transactions(db: AsyncSession, vendor_id: int, offset: int = 0, limit: int = 50) -> tuple[list[WalletTransaction], int]:
    base = select(WalletTransaction).where(WalletTransaction.vendor_id == vendor_id)
    total_q = await db.execute(select(func.count()).select_from(base.subquery()))
    total = int(total_q.scalar_one())
    q = await db.execute(base.order_by(desc(WalletTransaction.id)).limit(limit).offset(offset))
    return list(q.scalars().all()), total


async def reconcile_wallet(db: AsyncSession, wallet: Wallet) -> dict[str, tuple[int, int]]:
    """Compare cached totals with a fold over the log. Returns {field: (cached, folded)} for mismatches."""
    q = await db.execute(
        select(WalletTransaction).where(WalletTransaction.wallet_id == wallet.id).order_by(WalletTransaction.id.asc())
    )
    folded = fold_transactions(q.scalars().all())
    mismatches: dict[str, tuple[int, int]] = {}
    for f in fields(WalletTotals):
        cached = int(getattr(wallet, f.name) or 0)
        expected = getattr(folded, f.name)
        if cached != expected:
            mismatches[f.name] = (cached, expected)
    return mismatches
