from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledger_api.db.base import Base


class LedgerEntry(Base):
    """
    Append-only trail of every movement of a counterparty's open balance.

    debit raises what they owe (sale, laptops given, upward correction),
    credit lowers it (payment, return, downward correction).
    """
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    counterparty_id = Column(Integer, ForeignKey("counterparties.id", ondelete="CASCADE"), nullable=False, index=True)
    debit = Column(Numeric(12, 2), default=0)
    credit = Column(Numeric(12, 2), default=0)
    balance_after = Column(Numeric(12, 2), nullable=False)
    description = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    counterparty = relationship("Counterparty", backref="ledger_entries")
