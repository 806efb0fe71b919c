from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import require_vendor
from marketplace.models.vendor import Vendor
from marketplace.schemas.orders import SetVendorStatusRequest, VendorOrderList, VendorOrderOut, vendor_order_out
from marketplace.services.fulfillment import set_vendor_sub_order_status
from marketplace.services.orders import get_orders_for_vendor

router = APIRouter()


@router.get("", response_model=VendorOrderList)
async def list_vendor_orders(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(require_vendor),
    offset: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=200),
):
    rows, total = await get_orders_for_vendor(db, vendor.id, status=status, offset=offset, limit=limit)
    return VendorOrderList(items=[vendor_order_out(o, so) for o, so in rows], total=total)


@router.put("/{order_id}/status", response_model=VendorOrderOut)
async def update_vendor_order_status(
    order_id: int,
    payload: SetVendorStatusRequest,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(require_vendor),
):
    order = await set_vendor_sub_order_status(
        db,
        vendor.id,
        order_id,
        payload.status,
        carrier=payload.carrier,
        tracking_number=payload.tracking_number,
        estimated_delivery=payload.estimated_delivery,
    )
    await db.commit()
    return vendor_order_out(order, order.sub_order_for(vendor.id))
