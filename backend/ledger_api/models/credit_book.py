from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledger_api.db.base import Base


class CreditBookItem(Base):
    """A laptop handed to a bulk reseller on credit, until it is returned."""
    __tablename__ = "credit_book_items"

    id = Column(Integer, primary_key=True, index=True)
    reseller_id = Column(Integer, ForeignKey("counterparties.id", ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(String(128), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    specifications = Column(String(512), nullable=True)
    given_price = Column(Numeric(12, 2), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reseller = relationship("Counterparty", backref="credit_book_items")
    branch = relationship("Branch")
