from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from marketplace.models.payout import Payout


class PayoutRequest(BaseModel):
    amount: int = Field(gt=0)
    notes: Optional[str] = Field(default=None, max_length=1000)

class ProcessPayoutRequest(BaseModel):
    transaction_id: str = Field(min_length=1, max_length=128)

class RejectPayoutRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)

class FailPayoutRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class PayoutOut(BaseModel):
    id: int
    vendor_id: int
    amount: int
    status: str
    bank_details: dict
    requested_at: Optional[datetime]
    approved_at: Optional[datetime]
    processed_at: Optional[datetime]
    approved_by: Optional[int]
    transaction_id: Optional[str]
    rejection_reason: Optional[str]
    failure_reason: Optional[str]
    notes: Optional[str]

class PayoutList(BaseModel):
    items: List[PayoutOut]
    total: int


def payout_out(p: Payout) -> PayoutOut:
    return PayoutOut(
        id=p.id,
        vendor_id=p.vendor_id,
        amount=p.amount,
        status=p.status.value,
        bank_details=p.bank_details or {},
        requested_at=p.requested_at,
        approved_at=p.approved_at,
        processed_at=p.processed_at,
        approved_by=p.approved_by,
        transaction_id=p.transaction_id,
        rejection_reason=p.rejection_reason,
        failure_reason=p.failure_reason,
        notes=p.notes,
    )
