"""Stock lookups and status changes used by sales, returns and credit books."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger_api.models.branch import Branch
from ledger_api.models.stock import Stock, STOCK_AVAILABLE, STOCK_SOLD, STOCK_CREDIT_BOOK
from ledger_api.services.amounts import to_money

logger = logging.getLogger(__name__)


def get_branch_by_name(db: Session, branch_name: str | None) -> Branch:
    if not branch_name or not branch_name.strip():
        raise ValidationError("Branch name is required")
    branch = db.query(Branch).filter(Branch.name == branch_name.strip()).first()
    if not branch:
        raise NotFoundError(f"Branch '{branch_name}' not found")
    return branch


def create_branch(db: Session, name: str, location: str | None = None) -> Branch:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Branch name is required")
    if db.query(Branch).filter(Branch.name == name).first():
        raise ConflictError(f"Branch '{name}' already exists")
    branch = Branch(name=name, location=location)
    db.add(branch)
    db.flush()
    return branch


def create_stock(
    db: Session,
    serial_number: str,
    product_name: str,
    cost_price: Decimal | float,
    branch: Branch,
    specifications: str | None = None,
) -> Stock:
    serial = (serial_number or "").strip()
    if not serial:
        raise ValidationError("Serial number is required")
    if not (product_name or "").strip():
        raise ValidationError("Product name is required")
    if to_money(cost_price) < 0:
        raise ValidationError("Cost price cannot be negative")
    if db.query(Stock).filter(Stock.serial_number == serial).first():
        raise ConflictError(f"Serial number {serial} already exists")
    stock = Stock(
        serial_number=serial,
        product_name=product_name.strip(),
        specifications=specifications,
        cost_price=to_money(cost_price),
        branch_id=branch.id,
        status=STOCK_AVAILABLE,
    )
    db.add(stock)
    db.flush()
    return stock


def get_stock(db: Session, serial_number: str) -> Stock | None:
    return db.query(Stock).filter(Stock.serial_number == serial_number.strip()).first()


def load_available_stock(db: Session, serial_numbers: list[str]) -> dict[str, Stock]:
    """
    Fetch every serial and check it can leave the shelf.

    Raises:
        ValidationError: blank, duplicated or unknown serial number
        ConflictError: serial already sold or sitting on a credit book
    """
    serials = [(s or "").strip() for s in serial_numbers]
    if any(not s for s in serials):
        raise ValidationError("Every item needs a serial number")
    if len(set(serials)) != len(serials):
        raise ValidationError("The same serial number appears more than once")

    rows = db.query(Stock).filter(Stock.serial_number.in_(serials)).with_for_update().all()
    by_serial = {row.serial_number: row for row in rows}

    for serial in serials:
        stock = by_serial.get(serial)
        if stock is None:
            raise ValidationError(f"Unknown serial number: {serial}")
        if stock.status == STOCK_SOLD:
            raise ConflictError(f"Serial number {serial} has already been sold")
        if stock.status == STOCK_CREDIT_BOOK:
            raise ConflictError(f"Serial number {serial} is on a reseller credit book")
    return by_serial


def mark_sold(stock: Stock) -> None:
    stock.status = STOCK_SOLD


def mark_on_credit_book(stock: Stock) -> None:
    stock.status = STOCK_CREDIT_BOOK


def restore_to_available(db: Session, serial_number: str) -> Stock | None:
    """Put a returned laptop back on the shelf. Unknown serials are logged, not fatal."""
    stock = get_stock(db, serial_number)
    if stock is None:
        logger.warning(f"Returned serial {serial_number} has no stock record; nothing restored")
        return None
    stock.status = STOCK_AVAILABLE
    return stock
