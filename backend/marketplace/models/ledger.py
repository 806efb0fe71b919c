from sqlalchemy import Integer, ForeignKey, BigInteger, String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
import enum
from marketplace.core.db import Base
from marketplace.models.common import utcnow


class TransactionType(str, enum.Enum):
    credit = "credit"
    debit = "debit"
    refund = "refund"
    commission = "commission"


class WalletTransaction(Base):
    """Append-only wallet ledger entry. Rows are never updated or deleted."""

    __tablename__ = "wallet_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    wallet_id: Mapped[int] = mapped_column(Integer, ForeignKey("wallets.id"), index=True, nullable=False)
    vendor_id: Mapped[int] = mapped_column(Integer, ForeignKey("vendors.id"), index=True, nullable=False)
    order_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("orders.id"), index=True, nullable=True)
    payout_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("payouts.id"), index=True, nullable=True)

    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)  # always positive
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    dedup_key: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
