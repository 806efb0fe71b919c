from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import require_admin
from marketplace.core.db import get_db
from marketplace.core.errors import NotFoundError
from marketplace.models.vendor import Vendor
from marketplace.schemas.stats import AdminDashboard
from marketplace.schemas.wallet import TransactionList, WalletOut, transaction_out, wallet_out
from marketplace.services import ledger
from marketplace.services.reports import admin_dashboard

router = APIRouter()


@router.get("/dashboard", response_model=AdminDashboard)
async def dashboard(db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    return AdminDashboard(**await admin_dashboard(db))


@router.get("/wallets/{vendor_id}", response_model=WalletOut)
async def vendor_wallet(vendor_id: int, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    if not await db.get(Vendor, vendor_id):
        raise NotFoundError("Vendor not found")
    return wallet_out(vendor_id, await ledger.get_wallet(db, vendor_id))


@router.get("/wallets/{vendor_id}/transactions", response_model=TransactionList)
async def vendor_ledger(
    vendor_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
    offset: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
):
    rows, total = await ledger.list_transactions(db, vendor_id, offset=offset, limit=limit)
    return TransactionList(items=[transaction_out(t) for t in rows], total=total)
