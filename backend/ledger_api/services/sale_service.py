"""Sale creation: stock checks, totals, profit, and the credit balance increment."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_api.core.exceptions import NotFoundError, ValidationError
from ledger_api.models.counterparty import Counterparty
from ledger_api.models.sale import Sale, SaleItem, PAYMENT_TYPES, PAYMENT_CREDIT, PAYMENT_CASH
from ledger_api.models.user import User
from ledger_api.services import counterparty_service, inventory_service
from ledger_api.services.amounts import ZERO, calculate_vat, to_money
from ledger_api.services.ledger_service import add_ledger_entry

logger = logging.getLogger(__name__)


@dataclass
class SaleLine:
    serial_number: str
    price: Decimal | float
    ram_price: Decimal | float = 0
    storage_price: Decimal | float = 0


@dataclass
class SaleResult:
    sale: Sale
    warning: str | None = None

    @property
    def receipt_url(self) -> str | None:
        # Credit sales are settled later; their receipts come from payments
        if self.sale.payment_type == PAYMENT_CASH:
            return f"/receipt/sale/{self.sale.id}"
        return None


def line_subtotal(item: SaleItem | SaleLine) -> Decimal:
    return to_money(item.price) + to_money(item.ram_price) + to_money(item.storage_price)


def sale_total(sale: Sale) -> Decimal:
    """Total of the sale's current lines, VAT rounded once over the subtotal."""
    subtotal = sum((line_subtotal(item) for item in sale.items), ZERO)
    return calculate_vat(subtotal, sale.vat_enabled, sale.vat_percentage)["total_amount"]


def _validate_request(payment_type: str, vat_enabled: bool, vat_percentage, items: list[SaleLine]) -> None:
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}")
    if not items:
        raise ValidationError("At least one item is required")
    if vat_enabled and not (0 <= to_money(vat_percentage) <= 100):
        raise ValidationError("VAT percentage must be between 0 and 100")
    for line in items:
        if min(to_money(line.price), to_money(line.ram_price), to_money(line.storage_price)) < 0:
            raise ValidationError(f"Prices cannot be negative (serial {line.serial_number})")


def create_sale(
    db: Session,
    seller: User | None,
    branch_name: str,
    payment_type: str,
    items: list[SaleLine],
    customer_name: str | None = None,
    customer_phone: str | None = None,
    vat_enabled: bool = False,
    vat_percentage: Decimal | float = 0,
    sales_note: str | None = None,
) -> SaleResult:
    """
    Record a sale and, for credit, charge it to the customer's open balance.

    Every check runs before the first write. The caller commits (see
    db.session.atomic) so a failure anywhere leaves no trace.

    Raises:
        ValidationError: malformed request, unknown serial, credit sale without customer
        ConflictError: serial already sold or on a reseller credit book
        NotFoundError: unknown branch
    """
    payment_type = (payment_type or "").strip().lower()
    _validate_request(payment_type, vat_enabled, vat_percentage, items)

    if payment_type == PAYMENT_CREDIT and not (
        customer_name and customer_name.strip() and customer_phone and customer_phone.strip()
    ):
        raise ValidationError("Credit sales require the customer's name and phone number")

    try:
        branch = inventory_service.get_branch_by_name(db, branch_name)
    except ValidationError as e:
        raise NotFoundError(e.message) from e

    stock_by_serial = inventory_service.load_available_stock(db, [line.serial_number for line in items])

    warning = None
    elsewhere = sorted(
        serial for serial, stock in stock_by_serial.items()
        if stock.branch_id is not None and stock.branch_id != branch.id
    )
    if elsewhere:
        warning = f"Sold from another branch's stock: {', '.join(elsewhere)}"

    vat_pct = to_money(vat_percentage) if vat_enabled else ZERO
    sale = Sale(
        branch_id=branch.id,
        sold_by_id=seller.id if seller else None,
        payment_type=payment_type,
        customer_name=customer_name.strip() if customer_name else None,
        vat_enabled=bool(vat_enabled),
        vat_percentage=vat_pct,
        sales_note=sales_note or None,
    )

    subtotal = ZERO
    cost_basis = ZERO
    for line in items:
        stock = stock_by_serial[line.serial_number.strip()]
        sale.items.append(SaleItem(
            serial_number=stock.serial_number,
            product_name=stock.product_name,
            specifications=stock.specifications,
            price=to_money(line.price),
            ram_price=to_money(line.ram_price),
            storage_price=to_money(line.storage_price),
            cost_price=to_money(stock.cost_price),
        ))
        subtotal += line_subtotal(line)
        cost_basis += to_money(stock.cost_price)
        inventory_service.mark_sold(stock)

    totals = calculate_vat(subtotal, sale.vat_enabled, vat_pct)
    sale.total_amount = totals["total_amount"]
    sale.profit = totals["total_amount"] - cost_basis

    db.add(sale)
    # Flush before the customer upsert so its savepoint nests in an open transaction
    db.flush()

    if payment_type == PAYMENT_CREDIT:
        customer = counterparty_service.upsert_credit_customer(db, customer_name, customer_phone)
        sale.counterparty_id = customer.id
        sale.customer_name = customer.name
        _charge(db, customer, sale)

    db.flush()
    logger.info(
        f"Sale #{sale.id} ({payment_type}) at {branch.name}: "
        f"{len(items)} item(s), total {sale.total_amount}, profit {sale.profit}"
    )
    return SaleResult(sale=sale, warning=warning)


def _charge(db: Session, customer: Counterparty, sale: Sale) -> None:
    customer.open_balance = to_money(customer.open_balance) + sale.total_amount
    customer.total_purchases = to_money(customer.total_purchases) + sale.total_amount
    add_ledger_entry(db, customer, debit=sale.total_amount, description=f"Credit sale #{sale.id}")


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError(f"Sale #{sale_id} not found")
    return sale
