from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class CounterpartyOut(BaseModel):
    id: int
    name: str
    contact_info: str
    customer_type: str
    open_balance: float
    total_purchases: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResellerCreate(BaseModel):
    name: str
    contact_info: str


class CreditBookItemIn(BaseModel):
    serial_number: str
    given_price: float = Field(gt=0)


class AddLaptopsIn(BaseModel):
    branch_name: str
    items: List[CreditBookItemIn]


class CreditBookItemOut(BaseModel):
    id: int
    serial_number: str
    product_name: str
    specifications: Optional[str] = None
    given_price: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerEntryOut(BaseModel):
    id: int
    debit: float
    credit: float
    balance_after: float
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
