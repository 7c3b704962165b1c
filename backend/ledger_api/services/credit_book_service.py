"""Bulk reseller credit book: laptops handed over on credit."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ValidationError
from ledger_api.models.counterparty import Counterparty
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.services import counterparty_service, inventory_service
from ledger_api.services.amounts import ZERO, to_money
from ledger_api.services.ledger_service import add_ledger_entry

logger = logging.getLogger(__name__)


@dataclass
class CreditBookLine:
    serial_number: str
    given_price: Decimal | float


def list_items(db: Session, reseller: Counterparty) -> list[CreditBookItem]:
    return (
        db.query(CreditBookItem)
        .filter(CreditBookItem.reseller_id == reseller.id)
        .order_by(CreditBookItem.created_at.desc(), CreditBookItem.id.desc())
        .all()
    )


def add_laptops(
    db: Session,
    reseller_id: int,
    branch_name: str,
    items: list[CreditBookLine],
) -> tuple[Counterparty, list[CreditBookItem]]:
    """
    Hand laptops to a reseller; their balance grows by the sum of given prices.

    Raises:
        NotFoundError: unknown reseller or branch
        ValidationError: no items, bad price or serial
        ConflictError: a laptop is already sold or on another credit book
    """
    reseller = counterparty_service.get_reseller(db, reseller_id, for_update=True)
    if not items:
        raise ValidationError("At least one laptop is required")
    for line in items:
        if to_money(line.given_price) <= ZERO:
            raise ValidationError(f"Given price must be greater than zero (serial {line.serial_number})")

    branch = inventory_service.get_branch_by_name(db, branch_name)
    stock_by_serial = inventory_service.load_available_stock(db, [line.serial_number for line in items])

    added = []
    total = ZERO
    for line in items:
        stock = stock_by_serial[line.serial_number.strip()]
        price = to_money(line.given_price)
        item = CreditBookItem(
            reseller_id=reseller.id,
            serial_number=stock.serial_number,
            product_name=stock.product_name,
            specifications=stock.specifications,
            given_price=price,
            branch_id=branch.id,
        )
        db.add(item)
        inventory_service.mark_on_credit_book(stock)
        added.append(item)
        total += price

    reseller.open_balance = to_money(reseller.open_balance) + total
    reseller.total_purchases = to_money(reseller.total_purchases) + total
    db.flush()
    add_ledger_entry(
        db, reseller, debit=total,
        description=f"{len(added)} laptop(s) added to credit book: {', '.join(i.serial_number for i in added)}",
    )
    logger.info(f"Reseller {reseller.id}: {len(added)} laptop(s) added, balance now {reseller.open_balance}")
    return reseller, added
