from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledger_api.db.base import Base

PAYMENT_CASH = "cash"
PAYMENT_CREDIT = "credit"
PAYMENT_TYPES = (PAYMENT_CASH, PAYMENT_CREDIT)


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False)
    sold_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    payment_type = Column(String(16), nullable=False)  # cash, credit
    # Only credit sales reference a counterparty
    counterparty_id = Column(Integer, ForeignKey("counterparties.id", ondelete="RESTRICT"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)
    vat_enabled = Column(Boolean, nullable=False, default=False)
    vat_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    sales_note = Column(Text, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)  # items + VAT
    profit = Column(Numeric(12, 2), nullable=False, default=0)  # total - cost basis
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    branch = relationship("Branch")
    sold_by = relationship("User")
    counterparty = relationship("Counterparty", backref="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="sale")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(String(128), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    specifications = Column(String(512), nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    ram_price = Column(Numeric(12, 2), nullable=False, default=0)  # RAM upgrade
    storage_price = Column(Numeric(12, 2), nullable=False, default=0)  # storage upgrade
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)  # copied from stock at sale time

    sale = relationship("Sale", back_populates="items")
