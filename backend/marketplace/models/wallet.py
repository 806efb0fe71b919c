from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.core.db import Base
from marketplace.models.common import TimestampMixin


class Wallet(Base, TimestampMixin):
    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    vendor_id: Mapped[int] = mapped_column(Integer, ForeignKey("vendors.id"), unique=True, index=True, nullable=False)

    # Cached folds over wallet_transactions; written only by services.ledger.
    balance: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_earnings: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_commission_paid: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_refunds: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
