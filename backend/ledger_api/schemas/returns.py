from pydantic import BaseModel


class CashReturnIn(BaseModel):
    serial_number: str
    sale_id: int


class CreditReturnIn(BaseModel):
    serial_number: str
    sale_id: int
    customer_phone: str


class LaptopReturnIn(BaseModel):
    serial_number: str
