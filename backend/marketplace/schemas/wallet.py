from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from marketplace.models.ledger import WalletTransaction
from marketplace.models.wallet import Wallet


class WalletOut(BaseModel):
    vendor_id: int
    balance: int
    total_earnings: int
    total_commission_paid: int
    total_refunds: int


class TransactionOut(BaseModel):
    id: int
    type: str
    amount: int
    description: str
    order_id: Optional[int]
    payout_id: Optional[int]
    balance_after: int
    occurred_at: Optional[datetime]


class TransactionList(BaseModel):
    items: List[TransactionOut]
    total: int


class BankDetails(BaseModel):
    account_holder_name: str = Field(min_length=1, max_length=128)
    account_number: str = Field(min_length=4, max_length=34)
    bank_name: str = Field(min_length=1, max_length=128)
    ifsc_code: Optional[str] = Field(default=None, max_length=32)
    account_type: Optional[str] = Field(default=None, pattern="^(savings|current)$")


def wallet_out(vendor_id: int, w: Wallet | None) -> WalletOut:
    if w is None:
        return WalletOut(vendor_id=vendor_id, balance=0, total_earnings=0, total_commission_paid=0, total_refunds=0)
    return WalletOut(
        vendor_id=w.vendor_id,
        balance=w.balance,
        total_earnings=w.total_earnings,
        total_commission_paid=w.total_commission_paid,
        total_refunds=w.total_refunds,
    )


def transaction_out(t: WalletTransaction) -> TransactionOut:
    return TransactionOut(
        id=t.id,
        type=t.type.value,
        amount=t.amount,
        description=t.description,
        order_id=t.order_id,
        payout_id=t.payout_id,
        balance_after=t.balance_after,
        occurred_at=t.occurred_at,
    )
