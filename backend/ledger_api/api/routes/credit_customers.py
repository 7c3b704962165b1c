"""Credit customers: balances, unsettled sales, payments, balance repair."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user, require_admin
from ledger_api.core.audit import AuditLog
from ledger_api.db.session import atomic
from ledger_api.models.user import User
from ledger_api.schemas.counterparty import CounterpartyOut, LedgerEntryOut
from ledger_api.schemas.payment import CreditPaymentIn, CreditPaymentOut
from ledger_api.services import counterparty_service, payment_service, reconciliation_service
from ledger_api.services.ledger_service import list_ledger_entries

router = APIRouter()


@router.get("/credit-customers", response_model=dict)
def list_customers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """All counterparties, tagged by customer_type; the console filters by type."""
    rows = counterparty_service.list_counterparties(db)
    return {"customers": [CounterpartyOut.model_validate(c).model_dump() for c in rows]}


@router.get("/credit-customers/{phone}/debts", response_model=dict)
def customer_debts(phone: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """The customer and every credit sale they have not finished paying."""
    customer = counterparty_service.get_credit_customer(db, phone)
    unsettled = payment_service.unsettled_sales(db, customer)
    return {
        "customer": CounterpartyOut.model_validate(customer).model_dump(),
        "unsettled_sales": [
            {
                "sale_id": sale.id,
                "total_amount": float(sale.total_amount),
                "unsettled_balance": float(owed),
                "items": [
                    {
                        "serial_number": i.serial_number,
                        "product_name": i.product_name,
                        "specifications": i.specifications,
                        "price": float(i.price),
                        "ram_price": float(i.ram_price),
                        "storage_price": float(i.storage_price),
                    }
                    for i in sale.items
                ],
                "sales_note": sale.sales_note,
                "created_at": sale.created_at.isoformat() if sale.created_at else None,
            }
            for sale, owed in unsettled
        ],
    }


@router.get("/credit-customers/{phone}/ledger", response_model=dict)
def customer_ledger(phone: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    customer = counterparty_service.get_credit_customer(db, phone)
    entries = list_ledger_entries(db, customer.id)
    return {
        "customer": CounterpartyOut.model_validate(customer).model_dump(),
        "entries": [LedgerEntryOut.model_validate(e).model_dump() for e in entries],
    }


@router.post("/credit-payment", response_model=CreditPaymentOut)
def credit_payment(
    data: CreditPaymentIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Pay down one unsettled credit sale. Over-payment is rejected with 409."""
    with atomic(db):
        payment, remaining = payment_service.apply_credit_payment(
            db, data.customer_phone, data.sale_id, data.amount, recorded_by=current_user
        )
        result = CreditPaymentOut(
            payment_id=payment.id,
            amount_paid=float(payment.amount),
            unsettled_balance=float(remaining),
            open_balance=float(payment.counterparty.open_balance),
            receipt_url=f"/receipt/credit-payment/{payment.id}",
        )
    AuditLog.log_action("create", "payment", result.payment_id, current_user, changes={
        "sale_id": data.sale_id, "amount": result.amount_paid,
    })
    return result


@router.post("/credit-customers/{phone}/recalculate-balance", response_model=dict)
def recalculate_customer_balance(
    phone: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Admin repair: rebuild open_balance from unsettled sales."""
    with atomic(db):
        check = reconciliation_service.recalculate_customer_balance(db, phone)
        result = {
            "previous_balance": float(check.previous_balance),
            "correct_balance": float(check.correct_balance),
            "difference": float(check.difference),
        }
        counterparty_id = check.counterparty.id
    AuditLog.log_action("recalculate", "balance", counterparty_id, admin, changes=result)
    return result
