from pydantic import BaseModel, Field
from typing import List

class SetCartItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(ge=0, le=100000)

class CartLineOut(BaseModel):
    product_id: int
    vendor_id: int | None
    name: str
    unit_price: int
    quantity: int
    image: str

class CartOut(BaseModel):
    items: List[CartLineOut]
    subtotal: int
