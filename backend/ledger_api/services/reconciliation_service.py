"""
Balance reconciliation.

open_balance is a stored running total updated by sales, payments and
returns. These functions recompute it from the ledger's source rows and
overwrite the stored value:

    credit customer:  sum of unsettled balances over their credit sales
    bulk reseller:    sum of given_price on the credit book - sum of payments

Running a recalculation twice in a row reports a zero difference the second
time. Nothing calls these automatically; an admin triggers them.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ledger_api.models.counterparty import Counterparty, BULK_RESELLER, CREDIT_CUSTOMER
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.payment import Payment
from ledger_api.services import counterparty_service
from ledger_api.services.amounts import ZERO, to_money
from ledger_api.services.ledger_service import add_ledger_entry
from ledger_api.services.payment_service import unsettled_sales

logger = logging.getLogger(__name__)


@dataclass
class BalanceCheck:
    counterparty: Counterparty
    previous_balance: Decimal
    correct_balance: Decimal
    items_total: Decimal | None = None
    payments_total: Decimal | None = None

    @property
    def difference(self) -> Decimal:
        return self.correct_balance - self.previous_balance


def customer_correct_balance(db: Session, customer: Counterparty) -> Decimal:
    return sum((owed for _, owed in unsettled_sales(db, customer)), ZERO)


def reseller_totals(db: Session, reseller: Counterparty) -> tuple[Decimal, Decimal]:
    """(items_total, payments_total) for a reseller's credit book."""
    items_total = (
        db.query(func.coalesce(func.sum(CreditBookItem.given_price), 0))
        .filter(CreditBookItem.reseller_id == reseller.id)
        .scalar()
    )
    payments_total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.counterparty_id == reseller.id)
        .scalar()
    )
    return to_money(items_total), to_money(payments_total)


def check_balance(db: Session, counterparty: Counterparty) -> BalanceCheck:
    """Recompute without writing anything."""
    previous = to_money(counterparty.open_balance)
    if counterparty.customer_type == BULK_RESELLER:
        items_total, payments_total = reseller_totals(db, counterparty)
        return BalanceCheck(counterparty, previous, items_total - payments_total, items_total, payments_total)
    return BalanceCheck(counterparty, previous, customer_correct_balance(db, counterparty))


def _apply(db: Session, check: BalanceCheck) -> BalanceCheck:
    counterparty = check.counterparty
    if check.difference != ZERO:
        logger.warning(
            f"Balance drift for {counterparty.customer_type} {counterparty.id} ({counterparty.name}): "
            f"stored {check.previous_balance}, correct {check.correct_balance}"
        )
        counterparty.open_balance = check.correct_balance
        if check.difference > ZERO:
            add_ledger_entry(db, counterparty, debit=check.difference, description="Balance recalculation")
        else:
            add_ledger_entry(db, counterparty, credit=-check.difference, description="Balance recalculation")
    else:
        logger.info(f"Balance for {counterparty.customer_type} {counterparty.id} is consistent")
    return check


def recalculate_customer_balance(db: Session, phone: str) -> BalanceCheck:
    customer = counterparty_service.get_credit_customer(db, phone, for_update=True)
    return _apply(db, check_balance(db, customer))


def recalculate_reseller_balance(db: Session, reseller_id: int) -> BalanceCheck:
    reseller = counterparty_service.get_reseller(db, reseller_id, for_update=True)
    return _apply(db, check_balance(db, reseller))


def audit_balances(db: Session) -> list[BalanceCheck]:
    """Every counterparty whose stored balance has drifted. Read-only."""
    drifted = []
    for counterparty in db.query(Counterparty).filter(
        Counterparty.customer_type.in_((CREDIT_CUSTOMER, BULK_RESELLER))
    ).order_by(Counterparty.id).all():
        check = check_balance(db, counterparty)
        if check.difference != ZERO:
            drifted.append(check)
    return drifted
