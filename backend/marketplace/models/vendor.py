from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.core.db import Base
from marketplace.models.common import TimestampMixin


class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), unique=True, index=True, nullable=False)

    business_name: Mapped[str] = mapped_column(String(128), nullable=False)

    # percentage of each sub-order kept by the platform, e.g. 10.00
    commission_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("10.00"), nullable=False)

    # account_holder_name, account_number, bank_name, ifsc_code, account_type
    bank_details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_suspended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def can_sell(self) -> bool:
        return bool(self.is_approved) and not self.is_suspended
