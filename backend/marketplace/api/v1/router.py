from fastapi import APIRouter
from marketplace.api.v1.routes import (
    auth,
    cart,
    orders,
    vendor_orders,
    vendor_wallet,
    admin_orders,
    admin_payouts,
    admin_reports,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(cart.router, prefix="/cart", tags=["cart"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])

api_router.include_router(vendor_orders.router, prefix="/vendor/orders", tags=["vendor-orders"])
api_router.include_router(vendor_wallet.router, prefix="/vendor", tags=["vendor-wallet"])

api_router.include_router(admin_orders.router, prefix="/admin/orders", tags=["admin-orders"])
api_router.include_router(admin_payouts.router, prefix="/admin/payouts", tags=["admin-payouts"])
api_router.include_router(admin_reports.router, prefix="/admin", tags=["admin-reports"])
