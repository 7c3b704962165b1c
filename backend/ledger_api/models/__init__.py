from ledger_api.models.user import User
from ledger_api.models.branch import Branch
from ledger_api.models.stock import Stock
from ledger_api.models.counterparty import Counterparty
from ledger_api.models.sale import Sale, SaleItem
from ledger_api.models.payment import Payment
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.ledger import LedgerEntry

__all__ = ["User", "Branch", "Stock", "Counterparty", "Sale", "SaleItem", "Payment", "CreditBookItem", "LedgerEntry"]
