from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import require_admin
from marketplace.schemas.orders import OrderList, OrderOut, SetOrderStatusRequest, order_out
from marketplace.services.fulfillment import set_order_status
from marketplace.services.orders import list_orders

router = APIRouter()


@router.get("", response_model=OrderList)
async def all_orders(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=1000),
):
    rows, total = await list_orders(db, status=status, offset=offset, limit=limit)
    return OrderList(items=[order_out(o) for o in rows], total=total)


@router.put("/{order_id}/status", response_model=OrderOut)
async def update_order_status(order_id: int, payload: SetOrderStatusRequest, db: AsyncSession = Depends(get_db), admin=Depends(require_admin)):
    order = await set_order_status(db, order_id, payload.status)
    await db.commit()
    return order_out(order)
