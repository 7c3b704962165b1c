from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledger_api.db.base import Base

STOCK_AVAILABLE = "available"
STOCK_SOLD = "sold"
STOCK_CREDIT_BOOK = "credit_book"  # handed to a bulk reseller, not yet settled


class Stock(Base):
    """
    One physical laptop, identified by its serial number.

    Only the fields the ledger needs are kept here: availability for the
    sale/return processors and the cost basis used for profit.
    """
    __tablename__ = "stock"

    id = Column(Integer, primary_key=True, index=True)
    serial_number = Column(String(128), unique=True, nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    specifications = Column(String(512), nullable=True)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(16), nullable=False, default=STOCK_AVAILABLE, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    branch = relationship("Branch")
