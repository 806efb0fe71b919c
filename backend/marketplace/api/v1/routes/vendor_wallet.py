from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import require_vendor
from marketplace.models.vendor import Vendor
from marketplace.schemas.payouts import PayoutList, PayoutOut, PayoutRequest, payout_out
from marketplace.schemas.stats import VendorDashboard, VendorEarnings
from marketplace.schemas.wallet import BankDetails, TransactionList, WalletOut, transaction_out, wallet_out
from marketplace.services import ledger
from marketplace.services.payouts import cancel_payout, list_payouts, request_payout
from marketplace.services.reports import DEFAULT_PERIOD, vendor_dashboard, vendor_earnings

router = APIRouter()


@router.get("/wallet", response_model=WalletOut)
async def get_wallet(db: AsyncSession = Depends(get_db), vendor: Vendor = Depends(require_vendor)):
    wallet = await ledger.get_or_create_wallet(db, vendor.id)
    await db.commit()
    return wallet_out(vendor.id, wallet)


@router.get("/wallet/transactions", response_model=TransactionList)
async def get_transactions(
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(require_vendor),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    rows, total = await ledger.list_transactions(db, vendor.id, offset=offset, limit=limit)
    return TransactionList(items=[transaction_out(t) for t in rows], total=total)


@router.put("/bank-details")
async def update_bank_details(payload: BankDetails, db: AsyncSession = Depends(get_db), vendor: Vendor = Depends(require_vendor)):
    vendor.bank_details = payload.model_dump()
    await db.commit()
    return {"ok": True, "bank_details": vendor.bank_details}


@router.get("/dashboard", response_model=VendorDashboard)
async def get_dashboard(db: AsyncSession = Depends(get_db), vendor: Vendor = Depends(require_vendor)):
    data = await vendor_dashboard(db, vendor)
    await db.commit()
    return VendorDashboard(**data)


@router.get("/earnings", response_model=VendorEarnings)
async def get_earnings(
    period: str = Query(DEFAULT_PERIOD, pattern="^(day|week|month|year|all)$"),
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(require_vendor),
):
    return VendorEarnings(**await vendor_earnings(db, vendor.id, period))


@router.get("/payouts", response_model=PayoutList)
async def my_payouts(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(require_vendor),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    rows, total = await list_payouts(db, status=status, vendor_id=vendor.id, offset=offset, limit=limit)
    return PayoutList(items=[payout_out(p) for p in rows], total=total)


@router.post("/payouts", response_model=PayoutOut, status_code=201)
async def create_payout_request(payload: PayoutRequest, db: AsyncSession = Depends(get_db), vendor: Vendor = Depends(require_vendor)):
    payout = await request_payout(db, vendor.id, payload.amount, payload.notes)
    await db.commit()
    return payout_out(payout)


@router.post("/payouts/{payout_id}/cancel", response_model=PayoutOut)
async def cancel_payout_request(payout_id: int, db: AsyncSession = Depends(get_db), vendor: Vendor = Depends(require_vendor)):
    payout = await cancel_payout(db, vendor.id, payout_id)
    await db.commit()
    return payout_out(payout)
