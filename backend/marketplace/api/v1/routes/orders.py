from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import get_current_principal, get_vendor_id_for, require_customer
from marketplace.schemas.orders import CreateOrderRequest, OrderList, OrderOut, order_out
from marketplace.services.cart import load_cart
from marketplace.services.orders import create_order, get_order_for_actor, get_orders_for_customer

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=201)
async def checkout(
    payload: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    customer=Depends(require_customer),
    idempotency_key: str | None = Header(default=None, max_length=128),
):
    cart = await load_cart(db, customer.id)
    order = await create_order(
        db,
        customer.id,
        cart,
        shipping_address=payload.shipping_address.model_dump(),
        payment_method=payload.payment_method,
        tax_price=payload.tax_price,
        shipping_price=payload.shipping_price,
        idempotency_key=idempotency_key,
        notes=payload.notes,
    )
    await db.commit()
    return order_out(order)


@router.get("", response_model=OrderList)
async def my_orders(db: AsyncSession = Depends(get_db), customer=Depends(require_customer)):
    orders = await get_orders_for_customer(db, customer.id)
    return OrderList(items=[order_out(o) for o in orders], total=len(orders))


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db), principal=Depends(get_current_principal)):
    account, role = principal
    vendor_id = await get_vendor_id_for(db, account, role)
    order = await get_order_for_actor(db, order_id, account.id, role, vendor_id)
    return order_out(order)
