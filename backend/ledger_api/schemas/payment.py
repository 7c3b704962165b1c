from typing import Optional
from pydantic import BaseModel, Field


class CreditPaymentIn(BaseModel):
    customer_phone: str
    sale_id: int
    amount: float = Field(gt=0)


class CreditPaymentOut(BaseModel):
    payment_id: int
    amount_paid: float
    unsettled_balance: float
    open_balance: float
    receipt_url: Optional[str] = None


class ResellerPaymentIn(BaseModel):
    amount: float = Field(gt=0)


class ResellerPaymentOut(BaseModel):
    payment_id: int
    amount_paid: float
    balance_left: float
    receipt_url: Optional[str] = None
