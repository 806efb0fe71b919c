from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from marketplace.models.order import Order, VendorSubOrder


class ShippingAddress(BaseModel):
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=128)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = Field(min_length=1, max_length=64)


class CreateOrderRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: str = Field(min_length=1, max_length=64)
    tax_price: int = Field(default=0, ge=0)
    shipping_price: int = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=2000)


class SetVendorStatusRequest(BaseModel):
    status: str
    carrier: Optional[str] = Field(default=None, max_length=64)
    tracking_number: Optional[str] = Field(default=None, max_length=128)
    estimated_delivery: Optional[datetime] = None


class SetOrderStatusRequest(BaseModel):
    status: str


class OrderItemOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: int
    image: str


class TrackingOut(BaseModel):
    carrier: Optional[str]
    tracking_number: Optional[str]
    status: str
    estimated_delivery: Optional[datetime]


class SubOrderOut(BaseModel):
    vendor_id: int
    items: List[OrderItemOut]
    vendor_subtotal: int
    commission_percentage: Decimal
    commission_amount: int
    vendor_earnings: int
    status: str
    tracking: TrackingOut


class OrderOut(BaseModel):
    id: int
    customer_id: int
    sub_orders: List[SubOrderOut]
    shipping_address: dict
    payment_method: str
    tax_price: int
    shipping_price: int
    total_price: int
    is_paid: bool
    paid_at: Optional[datetime]
    is_delivered: bool
    delivered_at: Optional[datetime]
    status: str
    notes: Optional[str]
    created_at: Optional[datetime]


class OrderList(BaseModel):
    items: List[OrderOut]
    total: int


class VendorOrderOut(BaseModel):
    order_id: int
    customer_id: int
    order_status: str
    shipping_address: dict
    created_at: Optional[datetime]
    sub_order: SubOrderOut


class VendorOrderList(BaseModel):
    items: List[VendorOrderOut]
    total: int


def sub_order_out(so: VendorSubOrder) -> SubOrderOut:
    return SubOrderOut(
        vendor_id=so.vendor_id,
        items=[
            OrderItemOut(product_id=i.product_id, name=i.name, quantity=i.quantity, unit_price=i.unit_price, image=i.image)
            for i in so.items
        ],
        vendor_subtotal=so.vendor_subtotal,
        commission_percentage=so.commission_percentage,
        commission_amount=so.commission_amount,
        vendor_earnings=so.vendor_earnings,
        status=so.status.value,
        tracking=TrackingOut(
            carrier=so.carrier,
            tracking_number=so.tracking_number,
            status=so.tracking_status.value,
            estimated_delivery=so.estimated_delivery,
        ),
    )


def order_out(o: Order) -> OrderOut:
    return OrderOut(
        id=o.id,
        customer_id=o.customer_id,
        sub_orders=[sub_order_out(so) for so in o.sub_orders],
        shipping_address=o.shipping_address or {},
        payment_method=o.payment_method,
        tax_price=o.tax_price,
        shipping_price=o.shipping_price,
        total_price=o.total_price,
        is_paid=o.is_paid,
        paid_at=o.paid_at,
        is_delivered=o.is_delivered,
        delivered_at=o.delivered_at,
        status=o.status.value,
        notes=o.notes,
        created_at=o.created_at,
    )


def vendor_order_out(o: Order, so: VendorSubOrder) -> VendorOrderOut:
    return VendorOrderOut(
        order_id=o.id,
        customer_id=o.customer_id,
        order_status=o.status.value,
        shipping_address=o.shipping_address or {},
        created_at=o.created_at,
        sub_order=sub_order_out(so),
    )
