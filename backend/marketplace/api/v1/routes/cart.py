from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.api.deps import require_customer
from marketplace.schemas.cart import CartLineOut, CartOut, SetCartItemRequest
from marketplace.services.cart import clear_cart, load_cart, set_cart_item

router = APIRouter()


async def _cart_out(db: AsyncSession, customer_id: int) -> CartOut:
    lines = await load_cart(db, customer_id)
    return CartOut(
        items=[
            CartLineOut(
                product_id=l.product_id,
                vendor_id=l.vendor_id,
                name=l.name,
                unit_price=l.unit_price,
                quantity=l.quantity,
                image=l.image,
            )
            for l in lines
        ],
        subtotal=sum(l.unit_price * l.quantity for l in lines),
    )


@router.get("", response_model=CartOut)
async def get_cart(db: AsyncSession = Depends(get_db), customer=Depends(require_customer)):
    return await _cart_out(db, customer.id)


@router.put("/items", response_model=CartOut)
async def put_cart_item(payload: SetCartItemRequest, db: AsyncSession = Depends(get_db), customer=Depends(require_customer)):
    await set_cart_item(db, customer.id, payload.product_id, payload.quantity)
    await db.commit()
    return await _cart_out(db, customer.id)


@router.delete("", response_model=CartOut)
async def delete_cart(db: AsyncSession = Depends(get_db), customer=Depends(require_customer)):
    await clear_cart(db, customer.id)
    await db.commit()
    return CartOut(items=[], subtotal=0)
