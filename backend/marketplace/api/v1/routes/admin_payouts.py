from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import require_admin
from marketplace.schemas.payouts import (
    FailPayoutRequest,
    PayoutList,
    PayoutOut,
    ProcessPayoutRequest,
    RejectPayoutRequest,
    payout_out,
)
from marketplace.services.payouts import (
    approve_payout,
    fail_payout,
    get_payout,
    list_payouts,
    process_payout,
    reject_payout,
)

router = APIRouter()


@router.get("", response_model=PayoutList)
async def all_payouts(
    status: str | None = None,
    vendor_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=1000),
):
    rows, total = await list_payouts(db, status=status, vendor_id=vendor_id, offset=offset, limit=limit)
    return PayoutList(items=[payout_out(p) for p in rows], total=total)


@router.get("/{payout_id}", response_model=PayoutOut)
async def payout_detail(payout_id: int, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    return payout_out(await get_payout(db, payout_id))


@router.post("/{payout_id}/approve", response_model=PayoutOut)
async def approve(payout_id: int, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    payout = await approve_payout(db, payout_id, admin.id)
    await db.commit()
    return payout_out(payout)


@router.post("/{payout_id}/process", response_model=PayoutOut)
async def process(payout_id: int, payload: ProcessPayoutRequest, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    payout = await process_payout(db, payout_id, payload.transaction_id)
    await db.commit()
    return payout_out(payout)


@router.post("/{payout_id}/reject", response_model=PayoutOut)
async def reject(payout_id: int, payload: RejectPayoutRequest, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    payout = await reject_payout(db, payout_id, payload.reason)
    await db.commit()
    return payout_out(payout)


@router.post("/{payout_id}/fail", response_model=PayoutOut)
async def fail(payout_id: int, payload: FailPayoutRequest, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    payout = await fail_payout(db, payout_id, payload.reason)
    await db.commit()
    return payout_out(payout)
