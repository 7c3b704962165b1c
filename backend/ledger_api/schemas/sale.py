from typing import List, Optional
from pydantic import BaseModel, Field


class SaleItemIn(BaseModel):
    serial_number: str
    price: float = Field(ge=0)
    ram_price: float = Field(default=0, ge=0)
    storage_price: float = Field(default=0, ge=0)


class SaleCreate(BaseModel):
    branch_name: str
    payment_type: str = "cash"  # cash, credit
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    vat_enabled: bool = False
    vat_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    sales_note: Optional[str] = None
    items: List[SaleItemIn]


class SaleCreated(BaseModel):
    sale_id: int
    payment_type: str
    total_amount: float
    profit: Optional[float] = None
    warning: Optional[str] = None
    receipt_url: Optional[str] = None
