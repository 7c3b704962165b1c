from typing import Optional
from pydantic import BaseModel, Field


class BranchCreate(BaseModel):
    name: str
    location: Optional[str] = None


class BranchOut(BaseModel):
    id: int
    name: str
    location: Optional[str] = None

    class Config:
        from_attributes = True


class StockCreate(BaseModel):
    serial_number: str
    product_name: str
    specifications: Optional[str] = None
    cost_price: float = Field(ge=0)
    branch_name: str


class StockOut(BaseModel):
    serial_number: str
    product_name: str
    specifications: Optional[str] = None
    cost_price: float
    status: str
    branch_name: Optional[str] = None
