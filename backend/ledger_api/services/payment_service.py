"""Applying payments: per sale for credit customers, per credit book for resellers.

Over-payment is rejected, never capped: an amount larger than what is
outstanding raises ConflictError and nothing is written.
"""
import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger_api.models.counterparty import Counterparty
from ledger_api.models.payment import Payment
from ledger_api.models.sale import Sale, PAYMENT_CREDIT
from ledger_api.models.user import User
from ledger_api.services import counterparty_service
from ledger_api.services.amounts import ZERO, to_money
from ledger_api.services.ledger_service import add_ledger_entry

logger = logging.getLogger(__name__)


def paid_on_sale(db: Session, sale_id: int) -> Decimal:
    total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.sale_id == sale_id).scalar()
    return to_money(total)


def unsettled_balance(db: Session, sale: Sale) -> Decimal:
    """Sale total minus payments against it, never below zero."""
    return max(ZERO, to_money(sale.total_amount) - paid_on_sale(db, sale.id))


def unsettled_sales(db: Session, customer: Counterparty) -> list[tuple[Sale, Decimal]]:
    """Credit sales of this customer that still have something to pay, oldest first."""
    paid = (
        db.query(Payment.sale_id, func.sum(Payment.amount).label("paid"))
        .filter(Payment.sale_id.isnot(None))
        .group_by(Payment.sale_id)
        .subquery()
    )
    rows = (
        db.query(Sale, func.coalesce(paid.c.paid, 0))
        .outerjoin(paid, paid.c.sale_id == Sale.id)
        .filter(Sale.counterparty_id == customer.id, Sale.payment_type == PAYMENT_CREDIT)
        .order_by(Sale.created_at, Sale.id)
        .all()
    )
    result = []
    for sale, paid_amount in rows:
        owed = to_money(sale.total_amount) - to_money(paid_amount)
        if owed > ZERO:
            result.append((sale, owed))
    return result


def _validate_amount(amount: Decimal | float) -> Decimal:
    try:
        value = to_money(amount)
    except (ArithmeticError, ValueError) as e:
        raise ValidationError(f"Invalid amount: {amount}") from e
    if value <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")
    return value


def _new_receipt_number(prefix: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"{prefix}-{stamp}-{secrets.token_hex(4).upper()}"


def apply_credit_payment(
    db: Session,
    customer_phone: str,
    sale_id: int,
    amount: Decimal | float,
    recorded_by: User | None = None,
) -> tuple[Payment, Decimal]:
    """
    Pay down one unsettled credit sale.

    Returns:
        (payment, unsettled balance of the sale after the payment)

    Raises:
        ValidationError: amount not positive
        NotFoundError: customer or sale missing, or the sale is not theirs
        ConflictError: sale already settled, or amount exceeds what is owed on it
    """
    value = _validate_amount(amount)
    customer = counterparty_service.get_credit_customer(db, customer_phone, for_update=True)

    sale = (
        db.query(Sale)
        .filter(Sale.id == sale_id, Sale.counterparty_id == customer.id, Sale.payment_type == PAYMENT_CREDIT)
        .first()
    )
    if sale is None:
        raise NotFoundError(f"Credit sale #{sale_id} not found for customer {customer.contact_info}")

    outstanding = unsettled_balance(db, sale)
    if outstanding == ZERO:
        raise ConflictError(f"Sale #{sale.id} is already fully paid")
    if value > outstanding:
        logger.warning(
            f"Rejected over-payment of {value} on sale #{sale.id} (outstanding {outstanding})"
        )
        raise ConflictError(
            f"Payment of {value} exceeds the outstanding balance of {outstanding} on sale #{sale.id}"
        )

    payment = Payment(
        counterparty_id=customer.id,
        sale_id=sale.id,
        amount=value,
        receipt_number=_new_receipt_number("CP"),
        recorded_by_id=recorded_by.id if recorded_by else None,
    )
    db.add(payment)
    customer.open_balance = to_money(customer.open_balance) - value
    db.flush()
    add_ledger_entry(db, customer, credit=value, description=f"Payment #{payment.id} on sale #{sale.id}")

    logger.info(f"Payment #{payment.id}: {value} from {customer.contact_info} on sale #{sale.id}")
    return payment, outstanding - value


def apply_reseller_payment(
    db: Session,
    reseller_id: int,
    amount: Decimal | float,
    recorded_by: User | None = None,
) -> Payment:
    """
    Pay down a reseller's aggregate balance. No per-laptop earmarking.

    Raises:
        ValidationError: amount not positive
        NotFoundError: no such reseller
        ConflictError: amount exceeds the open balance
    """
    value = _validate_amount(amount)
    reseller = counterparty_service.get_reseller(db, reseller_id, for_update=True)

    balance = to_money(reseller.open_balance)
    if value > balance:
        logger.warning(f"Rejected over-payment of {value} by reseller {reseller.id} (balance {balance})")
        raise ConflictError(f"Payment of {value} exceeds the outstanding balance of {balance}")

    payment = Payment(
        counterparty_id=reseller.id,
        sale_id=None,
        amount=value,
        receipt_number=_new_receipt_number("BR"),
        recorded_by_id=recorded_by.id if recorded_by else None,
    )
    db.add(payment)
    reseller.open_balance = balance - value
    db.flush()
    add_ledger_entry(db, reseller, credit=value, description=f"Payment #{payment.id}")

    logger.info(f"Payment #{payment.id}: {value} from reseller {reseller.name}, balance left {reseller.open_balance}")
    return payment


def get_payment(db: Session, payment_id: int, customer_type: str) -> Payment:
    payment = (
        db.query(Payment)
        .join(Counterparty, Payment.counterparty_id == Counterparty.id)
        .filter(Payment.id == payment_id, Counterparty.customer_type == customer_type)
        .first()
    )
    if payment is None:
        raise NotFoundError(f"Payment #{payment_id} not found")
    return payment
