from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from marketplace.core.rbac import Role
from marketplace.models.common import utcnow
from marketplace.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    TrackingStatus,
    VendorOrderStatus,
    VendorSubOrder,
)
from marketplace.models.product import Product
from marketplace.models.vendor import Vendor
from marketplace.services import ledger
from marketplace.services.cart import CartLine, clear_cart
from marketplace.services.splitter import VendorGroup, VendorTerms, order_total, split_cart
from marketplace.services.statuses import parse_status

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("address", "city", "postal_code", "country")


def _check_checkout_input(shipping_address: dict | None, payment_method: str | None) -> None:
    if not shipping_address or not payment_method or not payment_method.strip():
        raise ValidationError("Shipping address and payment method are required")
    missing = [k for k in ADDRESS_FIELDS if not str(shipping_address.get(k) or "").strip()]
    if missing:
        raise ValidationError(f"Shipping address is missing: {', '.join(missing)}")


async def _find_by_key(db: AsyncSession, customer_id: int, key: str) -> Order | None:
    q = await db.execute(select(Order).where(Order.customer_id == customer_id, Order.idempotency_key == key))
    return q.scalar_one_or_none()


async def _vendor_terms(db: AsyncSession, lines: Sequence[CartLine]) -> dict[int, VendorTerms]:
    vendor_ids = {l.vendor_id for l in lines if l.vendor_id is not None}
    if not vendor_ids:
        return {}
    q = await db.execute(select(Vendor).where(Vendor.id.in_(vendor_ids)))
    return {
        v.id: VendorTerms(vendor_id=v.id, commission_percentage=v.commission_percentage, can_sell=v.can_sell)
        for v in q.scalars().all()
    }


def _build_order(
    customer_id: int,
    key: str,
    groups: list[VendorGroup],
    shipping_address: dict,
    payment_method: str,
    tax_price: int,
    shipping_price: int,
    notes: str | None,
) -> Order:
    now = utcnow()
    sub_orders = []
    for pos, g in enumerate(groups):
        sub_orders.append(
            VendorSubOrder(
                vendor_id=g.vendor_id,
                position=pos,
                vendor_subtotal=g.subtotal,
                commission_percentage=g.commission_percentage,
                commission_amount=g.commission_amount,
                vendor_earnings=g.vendor_earnings,
                status=VendorOrderStatus.pending,
                tracking_status=TrackingStatus.not_shipped,
                items=[
                    OrderItem(
                        position=i,
                        product_id=l.product_id,
                        name=l.name,
                        quantity=l.quantity,
                        unit_price=l.unit_price,
                        image=l.image,
                    )
                    for i, l in enumerate(g.lines)
                ],
            )
        )
    return Order(
        customer_id=customer_id,
        idempotency_key=key,
        shipping_address={k: str(shipping_address.get(k) or "").strip() for k in ADDRESS_FIELDS},
        payment_method=payment_method.strip(),
        tax_price=int(tax_price),
        shipping_price=int(shipping_price),
        total_price=order_total(groups, tax_price, shipping_price),
        # payment is settled upstream before checkout reaches us
        is_paid=True,
        paid_at=now,
        is_delivered=False,
        status=OrderStatus.pending,
        notes=notes,
        sub_orders=sub_orders,
    )


async def _decrement_inventory(db: AsyncSession, lines: Sequence[CartLine]) -> None:
    for l in lines:
        res = await db.execute(
            update(Product)
            .where(Product.id == l.product_id, Product.quantity >= l.quantity)
            .values(quantity=Product.quantity - l.quantity)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise StateConflictError(f"Insufficient stock for '{l.name}'")


async def _credit_vendors(db: AsyncSession, order: Order) -> None:
    for so in order.sub_orders:
        if so.vendor_earnings > 0:
            await ledger.credit(
                db, so.vendor_id, so.vendor_earnings, f"Order {order.id}",
                order_id=order.id, dedup_key=f"order:{order.id}:credit:{so.vendor_id}",
            )
        if so.commission_amount > 0:
            await ledger.record_commission(
                db, so.vendor_id, so.commission_amount, f"Commission for order {order.id}",
                order_id=order.id, dedup_key=f"order:{order.id}:commission:{so.vendor_id}",
            )
        await db.execute(
            update(Vendor)
            .where(Vendor.id == so.vendor_id)
            .values(total_orders=Vendor.total_orders + 1)
            .execution_options(synchronize_session=False)
        )


async def create_order(
    db: AsyncSession,
    customer_id: int,
    cart: Sequence[CartLine],
    shipping_address: dict,
    payment_method: str,
    tax_price: int = 0,
    shipping_price: int = 0,
    idempotency_key: str | None = None,
    notes: str | None = None,
) -> Order:
    """Split a checkout into per-vendor sub-orders and credit vendor wallets.

    Everything (order rows, stock, wallet entries, vendor counters, cart) is
    written inside the caller's transaction; the caller commits. Replaying an
    idempotency key the customer already used returns the stored order with no
    further side effects.
    """
    _check_checkout_input(shipping_address, payment_method)

    if idempotency_key:
        existing = await _find_by_key(db, customer_id, idempotency_key)
        if existing:
            logger.info("checkout replay customer_id=%s order_id=%s", customer_id, existing.id)
            return existing
    key = idempotency_key or uuid.uuid4().hex

    groups = split_cart(cart, await _vendor_terms(db, cart))
    order = _build_order(customer_id, key, groups, shipping_address, payment_method, tax_price, shipping_price, notes)

    db.add(order)
    try:
        await db.flush()
    except IntegrityError:
        # concurrent checkout with the same key won the insert
        await db.rollback()
        existing = await _find_by_key(db, customer_id, key)
        if existing:
            return existing
        raise

    await _decrement_inventory(db, cart)
    await _credit_vendors(db, order)
    await clear_cart(db, customer_id)
    await db.flush()

    logger.info(
        "order created order_id=%s customer_id=%s vendors=%s total_price=%s",
        order.id, customer_id, len(order.sub_orders), order.total_price,
    )
    return order


async def get_order(db: AsyncSession, order_id: int, for_update: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        # writers serialize on the parent row (no-op on sqlite, which locks the whole file)
        stmt = stmt.with_for_update()
    q = await db.execute(stmt.execution_options(populate_existing=True))
    order = q.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return order


async def get_order_for_actor(db: AsyncSession, order_id: int, account_id: int, role: Role, vendor_id: int | None = None) -> Order:
    order = await get_order(db, order_id)
    if role == Role.admin or order.customer_id == account_id:
        return order
    if role == Role.vendor and vendor_id is not None and order.sub_order_for(vendor_id) is not None:
        return order
    raise AuthorizationError("Not authorized to view this order")


async def get_orders_for_customer(db: AsyncSession, customer_id: int) -> list[Order]:
    q = await db.execute(select(Order).where(Order.customer_id == customer_id).order_by(desc(Order.id)))
    return list(q.scalars().all())


async def get_orders_for_vendor(
    db: AsyncSession,
    vendor_id: int,
    status: str | VendorOrderStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[tuple[Order, VendorSubOrder]], int]:
    stmt = select(VendorSubOrder).where(VendorSubOrder.vendor_id == vendor_id)
    if status is not None:
        stmt = stmt.where(VendorSubOrder.status == parse_status(VendorOrderStatus, status))

    total_q = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = int(total_q.scalar_one())
    q = await db.execute(stmt.order_by(desc(VendorSubOrder.order_id)).limit(limit).offset(offset))
    return [(so.order, so) for so in q.scalars().all()], total


async def list_orders(
    db: AsyncSession,
    status: str | OrderStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Order], int]:
    stmt = select(Order)
    if status is not None:
        stmt = stmt.where(Order.status == parse_status(OrderStatus, status))
    total_q = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = int(total_q.scalar_one())
    q = await db.execute(stmt.order_by(desc(Order.id)).limit(limit).offset(offset))
    return list(q.scalars().all()), total
