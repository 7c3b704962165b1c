"""Credit customers and bulk resellers: lookup, upsert, create, delete."""
import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger_api.models.counterparty import Counterparty, CREDIT_CUSTOMER, BULK_RESELLER
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.ledger import LedgerEntry
from ledger_api.models.payment import Payment
from ledger_api.models.stock import Stock, STOCK_SOLD
from ledger_api.services.amounts import ZERO

logger = logging.getLogger(__name__)


def sanitize_name(name: str | None) -> str:
    """Clean a customer/reseller name before it is stored.

    - Strip and collapse whitespace
    - Remove markup and control characters
    - Limit length to 100 characters
    """
    if not name or not name.strip():
        raise ValidationError("Name cannot be empty")

    name = " ".join(name.strip().split())
    name = re.sub(r"<[^>]*>", "", name)
    name = re.sub(r"[\x00-\x1f\x7f;]", "", name)
    name = name[:100].strip()

    if len(name) < 2:
        raise ValidationError("Name must be at least 2 characters")
    return name


def normalize_phone(phone: str | None) -> str:
    """Phone numbers are the counterparty key; drop spaces and separators."""
    if not phone or not phone.strip():
        raise ValidationError("Phone number is required")
    cleaned = re.sub(r"[\s\-().]", "", phone.strip())
    if not re.fullmatch(r"\+?\d{6,20}", cleaned):
        raise ValidationError(f"Invalid phone number: {phone}")
    return cleaned


def get_by_contact(db: Session, phone: str, for_update: bool = False) -> Counterparty | None:
    q = db.query(Counterparty).filter(Counterparty.contact_info == normalize_phone(phone))
    if for_update:
        q = q.with_for_update()
    return q.first()


def get_credit_customer(db: Session, phone: str, for_update: bool = False) -> Counterparty:
    customer = get_by_contact(db, phone, for_update=for_update)
    if customer is None or customer.customer_type != CREDIT_CUSTOMER:
        raise NotFoundError(f"Credit customer with phone {phone} not found")
    return customer


def get_reseller(db: Session, reseller_id: int, for_update: bool = False) -> Counterparty:
    q = db.query(Counterparty).filter(
        Counterparty.id == reseller_id,
        Counterparty.customer_type == BULK_RESELLER,
    )
    if for_update:
        q = q.with_for_update()
    reseller = q.first()
    if reseller is None:
        raise NotFoundError(f"Bulk reseller {reseller_id} not found")
    return reseller


def upsert_credit_customer(db: Session, name: str, phone: str) -> Counterparty:
    """
    Return the customer registered under this phone, creating it if needed.

    The insert runs in a savepoint and leans on the unique contact_info
    constraint: when a concurrent request created the row first, the
    IntegrityError is swallowed and that row is used instead.

    Raises:
        ValidationError: name/phone missing, or phone belongs to a bulk reseller
    """
    name_clean = sanitize_name(name)
    phone_clean = normalize_phone(phone)

    existing = get_by_contact(db, phone_clean, for_update=True)
    if existing is None:
        try:
            with db.begin_nested():
                existing = Counterparty(
                    name=name_clean,
                    contact_info=phone_clean,
                    customer_type=CREDIT_CUSTOMER,
                    total_purchases=ZERO,
                    open_balance=ZERO,
                )
                db.add(existing)
            logger.info(f"Created credit customer {name_clean} ({phone_clean})")
        except IntegrityError:
            existing = get_by_contact(db, phone_clean, for_update=True)
            if existing is None:
                raise

    if existing.is_reseller:
        raise ValidationError(f"Phone {phone_clean} belongs to a bulk reseller, not a credit customer")
    return existing


def list_counterparties(db: Session, customer_type: str | None = None) -> list[Counterparty]:
    q = db.query(Counterparty)
    if customer_type:
        q = q.filter(Counterparty.customer_type == customer_type)
    return q.order_by(Counterparty.name).all()


def create_reseller(db: Session, name: str, contact_info: str) -> Counterparty:
    name_clean = sanitize_name(name)
    phone_clean = normalize_phone(contact_info)
    if get_by_contact(db, phone_clean) is not None:
        raise ConflictError(f"A customer or reseller with phone {phone_clean} already exists")
    reseller = Counterparty(
        name=name_clean,
        contact_info=phone_clean,
        customer_type=BULK_RESELLER,
        total_purchases=ZERO,
        open_balance=ZERO,
    )
    db.add(reseller)
    db.flush()
    return reseller


def delete_reseller(db: Session, reseller_id: int) -> str:
    """
    Remove a reseller together with its credit book, payments and ledger trail.

    Laptops still on the credit book have been paid for (the balance is
    zero), so their stock rows stay out of inventory as sold.

    Raises:
        NotFoundError: no such reseller
        ConflictError: the reseller still owes money
    """
    reseller = get_reseller(db, reseller_id, for_update=True)
    if reseller.open_balance != ZERO:
        raise ConflictError(
            f"Cannot delete {reseller.name}: outstanding balance of {reseller.open_balance}"
        )

    serials = [
        serial for (serial,) in
        db.query(CreditBookItem.serial_number).filter(CreditBookItem.reseller_id == reseller.id).all()
    ]
    if serials:
        db.query(Stock).filter(Stock.serial_number.in_(serials)).update(
            {Stock.status: STOCK_SOLD}, synchronize_session=False
        )

    db.query(CreditBookItem).filter(CreditBookItem.reseller_id == reseller.id).delete(synchronize_session=False)
    db.query(Payment).filter(Payment.counterparty_id == reseller.id).delete(synchronize_session=False)
    db.query(LedgerEntry).filter(LedgerEntry.counterparty_id == reseller.id).delete(synchronize_session=False)
    name = reseller.name
    db.delete(reseller)
    db.flush()
    return name
