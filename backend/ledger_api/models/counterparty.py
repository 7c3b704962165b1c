from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from ledger_api.db.base import Base

CREDIT_CUSTOMER = "credit_customer"
BULK_RESELLER = "bulk_reseller"


class Counterparty(Base):
    """
    Someone who can owe money: a credit customer or a bulk reseller.

    Both variants share open_balance / total_purchases. They differ in how
    payments settle: customers pay against one specific sale, resellers pay
    against the aggregate of their credit book.

    open_balance is a stored running total. It must equal the outstanding
    amount recomputed from sales, payments and credit-book items; the
    reconciliation service repairs it when it drifts.
    """
    __tablename__ = "counterparties"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # Unique across both variants: the upsert on first credit sale relies on it
    contact_info = Column(String(64), unique=True, nullable=False, index=True)
    customer_type = Column(String(32), nullable=False, default=CREDIT_CUSTOMER, index=True)
    total_purchases = Column(Numeric(12, 2), nullable=False, default=0)
    open_balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_reseller(self) -> bool:
        return self.customer_type == BULK_RESELLER
