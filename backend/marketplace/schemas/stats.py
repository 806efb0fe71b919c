from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class WalletSummary(BaseModel):
    balance: int
    total_earnings: int
    total_commission_paid: int
    total_refunds: int


class VendorEarnings(BaseModel):
    period: str
    total_orders: int
    total_earnings: int
    total_commission: int
    average_order_value: int
    wallet: WalletSummary


class VendorProfile(BaseModel):
    id: int
    business_name: str
    is_approved: bool
    is_suspended: bool


class RecentOrder(BaseModel):
    order_id: int
    created_at: Optional[datetime]
    order_status: str
    total_price: int
    sub_order_status: str
    vendor_subtotal: int
    vendor_earnings: int


class VendorDashboard(BaseModel):
    vendor: VendorProfile
    total_orders: int
    total_sales: int
    wallet: WalletSummary
    recent_orders: List[RecentOrder]


class AdminDashboard(BaseModel):
    vendors_total: int
    vendors_approved: int
    vendors_suspended: int
    orders_total: int
    payouts_total: int
    payouts_pending: int
    platform_revenue: int
