from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.core.db import Base
from marketplace.models.common import TimestampMixin


class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class VendorOrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    in_transit = "in_transit"
    delivered = "delivered"
    cancelled = "cancelled"


class TrackingStatus(str, enum.Enum):
    not_shipped = "not_shipped"
    shipped = "shipped"
    in_transit = "in_transit"
    delivered = "delivered"
    cancelled = "cancelled"


class Order(Base, TimestampMixin):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("customer_id", "idempotency_key", name="uq_order_customer_idempotency_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(128), nullable=False)

    # address, city, postal_code, country
    shipping_address: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(64), nullable=False)

    # minor units
    tax_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    shipping_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_delivered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), default=OrderStatus.pending, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    sub_orders: Mapped[list["VendorSubOrder"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="VendorSubOrder.position",
        lazy="selectin",
    )

    def sub_order_for(self, vendor_id: int) -> "VendorSubOrder | None":
        for so in self.sub_orders:
            if so.vendor_id == vendor_id:
                return so
        return None


class VendorSubOrder(Base, TimestampMixin):
    __tablename__ = "vendor_sub_orders"
    __table_args__ = (UniqueConstraint("order_id", "vendor_id", name="uq_sub_order_order_vendor"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    vendor_id: Mapped[int] = mapped_column(Integer, ForeignKey("vendors.id"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    vendor_subtotal: Mapped[int] = mapped_column(BigInteger, nullable=False)
    commission_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)  # snapshot
    commission_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    vendor_earnings: Mapped[int] = mapped_column(BigInteger, nullable=False)

    status: Mapped[VendorOrderStatus] = mapped_column(
        Enum(VendorOrderStatus), default=VendorOrderStatus.pending, nullable=False
    )

    carrier: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    tracking_status: Mapped[TrackingStatus] = mapped_column(
        Enum(TrackingStatus), default=TrackingStatus.not_shipped, nullable=False
    )
    estimated_delivery: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    order: Mapped[Order] = relationship(back_populates="sub_orders", lazy="selectin")
    items: Mapped[list["OrderItem"]] = relationship(
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )


class OrderItem(Base):
    """Line item snapshot; later product edits never touch it."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sub_order_id: Mapped[int] = mapped_column(Integer, ForeignKey("vendor_sub_orders.id"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    image: Mapped[str] = mapped_column(String(512), default="", nullable=False)
