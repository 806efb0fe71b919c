from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import (
    AuthorizationError,
    InsufficientBalanceError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from marketplace.models.common import utcnow
from marketplace.models.payout import Payout, PayoutStatus
from marketplace.models.vendor import Vendor
from marketplace.services import ledger
from marketplace.services.statuses import parse_status

logger = logging.getLogger(__name__)

REJECTABLE = (PayoutStatus.pending, PayoutStatus.approved, PayoutStatus.processing, PayoutStatus.failed)
# statuses after which the amount is treated as reserved; rejecting from them refunds the wallet
RESERVED = (PayoutStatus.approved, PayoutStatus.processing)


async def get_payout(db: AsyncSession, payout_id: int) -> Payout:
    q = await db.execute(select(Payout).where(Payout.id == payout_id).execution_options(populate_existing=True))
    payout = q.scalar_one_or_none()
    if not payout:
        raise NotFoundError("Payout not found")
    return payout


async def _transition(
    db: AsyncSession,
    payout: Payout,
    allowed: Iterable[PayoutStatus],
    target: PayoutStatus,
    message: str,
    **values,
) -> tuple[PayoutStatus, Payout]:
    """Compare-and-set the payout status. Returns (previous status, refreshed payout)."""
    previous = payout.status
    if previous not in tuple(allowed):
        raise StateConflictError(message)
    res = await db.execute(
        update(Payout)
        .where(Payout.id == payout.id, Payout.status == previous)
        .values(status=target, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise StateConflictError("Payout was modified by another request")
    logger.info("payout transition payout_id=%s vendor_id=%s %s->%s", payout.id, payout.vendor_id, previous.value, target.value)
    return previous, await get_payout(db, payout.id)


async def request_payout(db: AsyncSession, vendor_id: int, amount: int, notes: str | None = None) -> Payout:
    amount = int(amount)
    if amount <= 0:
        raise ValidationError("Payout amount must be greater than zero")
    vendor = await db.get(Vendor, vendor_id)
    if not vendor:
        raise NotFoundError("Vendor not found")

    wallet = await ledger.get_wallet(db, vendor_id)
    if not wallet or wallet.balance < amount:
        raise InsufficientBalanceError("Insufficient balance for payout")

    bank_details = dict(vendor.bank_details or {})
    if not str(bank_details.get("account_number") or "").strip():
        raise ValidationError("Bank details not configured")

    payout = Payout(
        vendor_id=vendor_id,
        amount=amount,
        bank_details=bank_details,
        status=PayoutStatus.pending,
        requested_at=utcnow(),
        notes=notes,
    )
    db.add(payout)
    await db.flush()
    logger.info("payout requested payout_id=%s vendor_id=%s amount=%s", payout.id, vendor_id, amount)
    return payout


async def approve_payout(db: AsyncSession, payout_id: int, admin_id: int) -> Payout:
    payout = await get_payout(db, payout_id)
    _, payout = await _transition(
        db, payout, (PayoutStatus.pending,), PayoutStatus.approved,
        "Only pending payouts can be approved",
        approved_at=utcnow(), approved_by=admin_id,
    )
    return payout


async def process_payout(db: AsyncSession, payout_id: int, transaction_id: str) -> Payout:
    """Complete an approved payout; the only step that takes money out of the wallet."""
    if not transaction_id or not transaction_id.strip():
        raise ValidationError("Transaction id is required")
    payout = await get_payout(db, payout_id)
    _, payout = await _transition(
        db, payout, (PayoutStatus.approved,), PayoutStatus.completed,
        "Only approved payouts can be processed",
        processed_at=utcnow(), transaction_id=transaction_id.strip(),
    )
    await ledger.debit(
        db, payout.vendor_id, payout.amount, "Payout processed",
        payout_id=payout.id, dedup_key=f"payout:{payout.id}:debit",
    )
    return payout


async def reject_payout(db: AsyncSession, payout_id: int, reason: str | None = None) -> Payout:
    payout = await get_payout(db, payout_id)
    previous, payout = await _transition(
        db, payout, REJECTABLE, PayoutStatus.rejected,
        "This payout cannot be rejected",
        rejection_reason=(reason or "").strip() or "No reason provided",
    )
    if previous in RESERVED:
        # TODO: drop this refund once rejection only compensates payouts that were actually debited
        await ledger.refund(
            db, payout.vendor_id, payout.amount, "Payout rejected and refunded",
            payout_id=payout.id, dedup_key=f"payout:{payout.id}:refund",
        )
    return payout


async def cancel_payout(db: AsyncSession, vendor_id: int, payout_id: int) -> Payout:
    payout = await get_payout(db, payout_id)
    if payout.vendor_id != vendor_id:
        raise AuthorizationError("Not authorized to cancel this payout")
    _, payout = await _transition(
        db, payout, (PayoutStatus.pending,), PayoutStatus.cancelled,
        "Only pending payouts can be cancelled",
    )
    return payout


async def fail_payout(db: AsyncSession, payout_id: int, reason: str) -> Payout:
    if not reason or not reason.strip():
        raise ValidationError("Failure reason is required")
    payout = await get_payout(db, payout_id)
    _, payout = await _transition(
        db, payout, (PayoutStatus.approved, PayoutStatus.processing), PayoutStatus.failed,
        "Only approved payouts can be marked as failed",
        failure_reason=reason.strip(),
    )
    return payout


async def list_payouts(
    db: AsyncSession,
    status: str | PayoutStatus | None = None,
    vendor_id: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Payout], int]:
    stmt = select(Payout)
    if status is not None:
        stmt = stmt.where(Payout.status == parse_status(PayoutStatus, status))
    if vendor_id is not None:
        stmt = stmt.where(Payout.vendor_id == vendor_id)
    total_q = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = int(total_q.scalar_one())
    q = await db.execute(stmt.order_by(desc(Payout.id)).limit(limit).offset(offset))
    return list(q.scalars().all()), total
