from __future__ import annotations
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.models.product import CartItem, Product


@dataclass(frozen=True)
class CartLine:
    """One priced cart entry, detached from the live product row."""

    product_id: int
    vendor_id: int | None
    name: str
    unit_price: int
    quantity: int
    image: str = ""


async def load_cart(db: AsyncSession, customer_id: int) -> list[CartLine]:
    q = await db.execute(
        select(CartItem).where(CartItem.customer_id == customer_id).order_by(CartItem.id.asc())
    )
    items = q.scalars().all()
    if not items:
        return []
    qp = await db.execute(select(Product).where(Product.id.in_([i.product_id for i in items])))
    products = {p.id: p for p in qp.scalars().all()}

    lines: list[CartLine] = []
    for i in items:
        p = products.get(i.product_id)
        if not p:
            raise NotFoundError(f"Product #{i.product_id} in cart no longer exists")
        lines.append(
            CartLine(
                product_id=p.id,
                vendor_id=p.vendor_id,
                name=p.name,
                unit_price=int(p.price),
                quantity=int(i.quantity),
                image=p.image or "",
            )
        )
    return lines


async def set_cart_item(db: AsyncSession, customer_id: int, product_id: int, quantity: int) -> None:
    """Set the quantity of a product in the cart; zero removes it."""
    if quantity < 0:
        raise ValidationError("Quantity must not be negative")
    p = await db.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found")
    if quantity > p.quantity:
        raise ValidationError(f"Only {p.quantity} units of '{p.name}' in stock")

    q = await db.execute(
        select(CartItem).where(CartItem.customer_id == customer_id, CartItem.product_id == product_id)
    )
    item = q.scalar_one_or_none()
    if quantity == 0:
        if item:
            await db.delete(item)
    elif item:
        item.quantity = quantity
    else:
        db.add(CartItem(customer_id=customer_id, product_id=product_id, quantity=quantity))
    await db.flush()


async def clear_cart(db: AsyncSession, customer_id: int) -> None:
    await db.execute(delete(CartItem).where(CartItem.customer_id == customer_id))
