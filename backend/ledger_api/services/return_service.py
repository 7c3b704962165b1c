"""
Returns: reverse one sold laptop (cash or credit) or take one back from a
reseller's credit book.

The (serial, sale) pair is located and checked before anything changes, so a
mismatch leaves every balance untouched.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.sale import Sale, SaleItem, PAYMENT_CASH, PAYMENT_CREDIT
from ledger_api.services import counterparty_service, inventory_service
from ledger_api.services.amounts import ZERO, to_money
from ledger_api.services.ledger_service import add_ledger_entry
from ledger_api.services.payment_service import unsettled_balance
from ledger_api.services.sale_service import sale_total

logger = logging.getLogger(__name__)


@dataclass
class ReturnResult:
    serial_number: str
    sale_id: int | None
    amount: Decimal  # refunded (cash) or taken off the balance (credit, reseller)
    message: str


def _find_sold_item(db: Session, serial_number: str, sale_id: int, payment_type: str) -> tuple[Sale, SaleItem]:
    serial = (serial_number or "").strip()
    if not serial:
        raise ValidationError("Serial number is required")
    row = (
        db.query(SaleItem, Sale)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(SaleItem.serial_number == serial, Sale.id == sale_id, Sale.payment_type == payment_type)
        .first()
    )
    if row is None:
        raise NotFoundError(f"Serial {serial} was not sold on {payment_type} sale #{sale_id}")
    item, sale = row
    return sale, item


def _remove_item(db: Session, sale: Sale, item: SaleItem) -> Decimal:
    """
    Take the line off the sale and fix totals. Returns its contribution.

    The total is recomputed from the remaining lines, so the contribution
    absorbs VAT rounding and the last line returned leaves a total of zero.
    """
    old_total = to_money(sale.total_amount)
    sale.items.remove(item)
    new_total = sale_total(sale)
    contribution = max(ZERO, old_total - new_total)
    sale.total_amount = new_total
    sale.profit = to_money(sale.profit) - (contribution - to_money(item.cost_price))
    inventory_service.restore_to_available(db, item.serial_number)
    return contribution


def process_cash_return(db: Session, serial_number: str, sale_id: int) -> ReturnResult:
    sale, item = _find_sold_item(db, serial_number, sale_id, PAYMENT_CASH)
    refunded = _remove_item(db, sale, item)
    db.flush()
    logger.info(f"Cash return of {item.serial_number} from sale #{sale.id}, refund {refunded}")
    return ReturnResult(
        serial_number=item.serial_number,
        sale_id=sale.id,
        amount=refunded,
        message=f"Laptop {item.serial_number} returned from sale #{sale.id}",
    )


def process_credit_return(db: Session, serial_number: str, sale_id: int, customer_phone: str) -> ReturnResult:
    """
    Reverse one line of a credit sale.

    The customer's balance drops by the line's contribution, but never by
    more than the sale still owes: money already paid is not turned into
    negative debt.

    Raises:
        NotFoundError: customer unknown, or the serial/sale/customer triple does not match
    """
    customer = counterparty_service.get_credit_customer(db, customer_phone, for_update=True)
    sale, item = _find_sold_item(db, serial_number, sale_id, PAYMENT_CREDIT)
    if sale.counterparty_id != customer.id:
        raise NotFoundError(f"Sale #{sale_id} does not belong to customer {customer.contact_info}")

    owed_before = unsettled_balance(db, sale)
    contribution = _remove_item(db, sale, item)
    reduced = min(contribution, owed_before)

    customer.open_balance = to_money(customer.open_balance) - reduced
    customer.total_purchases = max(ZERO, to_money(customer.total_purchases) - contribution)
    db.flush()
    if reduced > ZERO:
        add_ledger_entry(
            db, customer, credit=reduced,
            description=f"Return of {item.serial_number} from sale #{sale.id}",
        )
    logger.info(
        f"Credit return of {item.serial_number} from sale #{sale.id}: "
        f"contribution {contribution}, balance reduced by {reduced}"
    )
    return ReturnResult(
        serial_number=item.serial_number,
        sale_id=sale.id,
        amount=reduced,
        message=f"Laptop {item.serial_number} returned from sale #{sale.id}",
    )


def return_reseller_laptop(db: Session, reseller_id: int, serial_number: str) -> ReturnResult:
    """
    Take a laptop back from a reseller's credit book.

    Raises:
        NotFoundError: reseller unknown, or the laptop is not on their credit book
        ConflictError: the reseller has already paid past what would remain owed
    """
    reseller = counterparty_service.get_reseller(db, reseller_id, for_update=True)
    serial = (serial_number or "").strip()
    if not serial:
        raise ValidationError("Serial number is required")

    item = (
        db.query(CreditBookItem)
        .filter(CreditBookItem.reseller_id == reseller.id, CreditBookItem.serial_number == serial)
        .first()
    )
    if item is None:
        raise NotFoundError(f"Serial {serial} is not on {reseller.name}'s credit book")

    given_price = to_money(item.given_price)
    if given_price > to_money(reseller.open_balance):
        raise ConflictError(
            f"Cannot return {serial}: its price {given_price} exceeds the outstanding balance "
            f"{reseller.open_balance} (already paid for)"
        )

    db.delete(item)
    inventory_service.restore_to_available(db, serial)
    reseller.open_balance = to_money(reseller.open_balance) - given_price
    reseller.total_purchases = max(ZERO, to_money(reseller.total_purchases) - given_price)
    db.flush()
    add_ledger_entry(db, reseller, credit=given_price, description=f"Return of {serial} from credit book")

    logger.info(f"Reseller {reseller.id} returned {serial}, balance reduced by {given_price}")
    return ReturnResult(
        serial_number=serial,
        sale_id=None,
        amount=given_price,
        message=f"Laptop {serial} returned to inventory",
    )
