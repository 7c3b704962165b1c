from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledger_api.db.base import Base


class Payment(Base):
    """
    Money received from a counterparty. Immutable once written.

    Customer payments always reference the sale they settle; reseller
    payments have sale_id NULL and settle the credit book as a whole.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    counterparty_id = Column(Integer, ForeignKey("counterparties.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="RESTRICT"), nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    receipt_number = Column(String(64), unique=True, nullable=False)
    recorded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    counterparty = relationship("Counterparty", backref="payments")
    sale = relationship("Sale", back_populates="payments")
    recorded_by = relationship("User")
