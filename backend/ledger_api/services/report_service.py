"""Credit payments report: who paid what, and when."""
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Session

from ledger_api.core.exceptions import ValidationError
from ledger_api.models.counterparty import Counterparty, BULK_RESELLER, CREDIT_CUSTOMER
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.payment import Payment
from ledger_api.models.sale import Sale
from ledger_api.services.amounts import ZERO, to_money
from ledger_api.services.inventory_service import get_branch_by_name


def credit_payments(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    branch_name: str | None = None,
) -> tuple[list[tuple[Payment, Counterparty]], dict]:
    """
    Payments from credit customers and bulk resellers, newest first.

    Both date bounds are optional and inclusive (whole days). A branch
    matches a customer payment through the sale it settles, and a reseller
    payment when the reseller holds credit-book laptops from that branch.

    Returns:
        (rows, totals) where totals has total_payments, total_amount,
        credit_customer_amount and bulk_reseller_amount
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")

    q = (
        db.query(Payment, Counterparty)
        .join(Counterparty, Payment.counterparty_id == Counterparty.id)
        .outerjoin(Sale, Payment.sale_id == Sale.id)
    )
    if start_date:
        q = q.filter(Payment.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        q = q.filter(Payment.created_at < datetime.combine(end_date + timedelta(days=1), time.min))
    if branch_name:
        branch = get_branch_by_name(db, branch_name)
        on_credit_book = exists().where(and_(
            CreditBookItem.reseller_id == Counterparty.id,
            CreditBookItem.branch_id == branch.id,
        ))
        q = q.filter(or_(
            Sale.branch_id == branch.id,
            and_(Payment.sale_id.is_(None), Counterparty.customer_type == BULK_RESELLER, on_credit_book),
        ))

    rows = q.order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    by_type: dict[str, Decimal] = {CREDIT_CUSTOMER: ZERO, BULK_RESELLER: ZERO}
    for payment, counterparty in rows:
        by_type[counterparty.customer_type] = by_type.get(counterparty.customer_type, ZERO) + to_money(payment.amount)

    totals = {
        "total_payments": len(rows),
        "total_amount": sum(by_type.values(), ZERO),
        "credit_customer_amount": by_type[CREDIT_CUSTOMER],
        "bulk_reseller_amount": by_type[BULK_RESELLER],
    }
    return rows, totals
