from __future__ import annotations
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import case, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import ValidationError
from marketplace.models.common import utcnow
from marketplace.models.order import Order, VendorOrderStatus, VendorSubOrder
from marketplace.models.payout import Payout, PayoutStatus
from marketplace.models.vendor import Vendor
from marketplace.models.wallet import Wallet
from marketplace.services import ledger

PERIODS = ("day", "week", "month", "year", "all")
DEFAULT_PERIOD = "month"
RECENT_ORDERS = 5


def period_start(period: str, now: datetime) -> datetime | None:
    if period == "all":
        return None
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "day":
        return day
    if period == "week":
        # weeks start on Sunday
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if period == "month":
        return day.replace(day=1)
    if period == "year":
        return day.replace(month=1, day=1)
    raise ValidationError(f"Invalid period {period!r}; expected one of: {', '.join(PERIODS)}")


def average(total: int, count: int) -> int:
    """Mean in minor units, rounded half-up."""
    if not count:
        return 0
    return int((Decimal(total) / count).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def wallet_summary(wallet: Wallet | None) -> dict:
    return {
        "balance": int(wallet.balance) if wallet else 0,
        "total_earnings": int(wallet.total_earnings) if wallet else 0,
        "total_commission_paid": int(wallet.total_commission_paid) if wallet else 0,
        "total_refunds": int(wallet.total_refunds) if wallet else 0,
    }


async def vendor_earnings(db: AsyncSession, vendor_id: int, period: str = DEFAULT_PERIOD, now: datetime | None = None) -> dict:
    """Earnings and commission over the vendor's delivered sub-orders."""
    since = period_start(period, now or utcnow())
    stmt = (
        select(
            func.count().label("orders"),
            func.coalesce(func.sum(VendorSubOrder.vendor_earnings), 0).label("earnings"),
            func.coalesce(func.sum(VendorSubOrder.commission_amount), 0).label("commission"),
        )
        .select_from(VendorSubOrder)
        .join(Order, Order.id == VendorSubOrder.order_id)
        .where(VendorSubOrder.vendor_id == vendor_id, VendorSubOrder.status == VendorOrderStatus.delivered)
    )
    if since is not None:
        stmt = stmt.where(Order.created_at >= since)
    row = (await db.execute(stmt)).one()

    total_orders = int(row.orders or 0)
    total_earnings = int(row.earnings or 0)
    wallet = await ledger.get_wallet(db, vendor_id)
    return {
        "period": period,
        "total_orders": total_orders,
        "total_earnings": total_earnings,
        "total_commission": int(row.commission or 0),
        "average_order_value": average(total_earnings, total_orders),
        "wallet": wallet_summary(wallet),
    }


async def vendor_dashboard(db: AsyncSession, vendor: Vendor) -> dict:
    """Headline numbers for the vendor's home screen.

    Sales count every sub-order except cancelled ones, whatever their
    delivery state. The wallet is created on first view.
    """
    sq = await db.execute(
        select(
            func.count().label("orders"),
            func.coalesce(
                func.sum(
                    case((VendorSubOrder.status != VendorOrderStatus.cancelled, VendorSubOrder.vendor_subtotal), else_=0)
                ),
                0,
            ).label("sales"),
        )
        .select_from(VendorSubOrder)
        .where(VendorSubOrder.vendor_id == vendor.id)
    )
    row = sq.one()

    rq = await db.execute(
        select(VendorSubOrder)
        .where(VendorSubOrder.vendor_id == vendor.id)
        .order_by(desc(VendorSubOrder.order_id))
        .limit(RECENT_ORDERS)
    )
    recent = [
        {
            "order_id": so.order_id,
            "created_at": so.order.created_at,
            "order_status": so.order.status.value,
            "total_price": int(so.order.total_price),
            "sub_order_status": so.status.value,
            "vendor_subtotal": int(so.vendor_subtotal),
            "vendor_earnings": int(so.vendor_earnings),
        }
        for so in rq.scalars().all()
    ]

    wallet = await ledger.get_or_create_wallet(db, vendor.id)
    return {
        "vendor": {
            "id": vendor.id,
            "business_name": vendor.business_name,
            "is_approved": bool(vendor.is_approved),
            "is_suspended": bool(vendor.is_suspended),
        },
        "total_orders": int(row.orders or 0),
        "total_sales": int(row.sales or 0),
        "wallet": wallet_summary(wallet),
        "recent_orders": recent,
    }


async def admin_dashboard(db: AsyncSession) -> dict:
    vq = await db.execute(
        select(
            func.count().label("total"),
            func.coalesce(func.sum(case((Vendor.is_approved == True, 1), else_=0)), 0).label("approved"),
            func.coalesce(func.sum(case((Vendor.is_suspended == True, 1), else_=0)), 0).label("suspended"),
        )
    )
    vrow = vq.one()

    oq = await db.execute(select(func.count()).select_from(Order))
    orders_total = int(oq.scalar_one() or 0)

    pq = await db.execute(
        select(
            func.count().label("total"),
            func.coalesce(func.sum(case((Payout.status == PayoutStatus.pending, 1), else_=0)), 0).label("pending"),
        )
    )
    prow = pq.one()

    rq = await db.execute(
        select(func.coalesce(func.sum(VendorSubOrder.commission_amount), 0))
        .select_from(VendorSubOrder)
        .join(Order, Order.id == VendorSubOrder.order_id)
        .where(Order.is_paid == True)
    )
    return {
        "vendors_total": int(vrow.total or 0),
        "vendors_approved": int(vrow.approved or 0),
        "vendors_suspended": int(vrow.suspended or 0),
        "orders_total": orders_total,
        "payouts_total": int(prow.total or 0),
        "payouts_pending": int(prow.pending or 0),
        "platform_revenue": int(rq.scalar_one() or 0),
    }
