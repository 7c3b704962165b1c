"""Bulk resellers: credit book, aggregate payments, returns, balance repair."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user, require_admin
from ledger_api.core.audit import AuditLog
from ledger_api.db.session import atomic
from ledger_api.models.counterparty import BULK_RESELLER
from ledger_api.models.user import User
from ledger_api.schemas.counterparty import AddLaptopsIn, CounterpartyOut, CreditBookItemOut, ResellerCreate
from ledger_api.schemas.payment import ResellerPaymentIn, ResellerPaymentOut
from ledger_api.schemas.returns import LaptopReturnIn
from ledger_api.services import (
    counterparty_service,
    credit_book_service,
    payment_service,
    reconciliation_service,
    return_service,
)
from ledger_api.services.credit_book_service import CreditBookLine

router = APIRouter()


@router.get("", response_model=dict)
def list_resellers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = counterparty_service.list_counterparties(db, BULK_RESELLER)
    return {"resellers": [CounterpartyOut.model_validate(r).model_dump() for r in rows]}


@router.post("", response_model=dict)
def create_reseller(
    data: ResellerCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with atomic(db):
        reseller = counterparty_service.create_reseller(db, data.name, data.contact_info)
    AuditLog.log_action("create", "reseller", reseller.id, admin, changes={"name": reseller.name})
    return {
        "message": f"Reseller {reseller.name} created",
        "reseller": CounterpartyOut.model_validate(reseller).model_dump(),
    }


@router.delete("/{reseller_id}", response_model=dict)
def delete_reseller(
    reseller_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Only resellers who owe nothing can be deleted."""
    with atomic(db):
        name = counterparty_service.delete_reseller(db, reseller_id)
    AuditLog.log_action("delete", "reseller", reseller_id, admin, changes={"name": name})
    return {"message": f"Reseller {name} deleted", "id": reseller_id}


@router.get("/{reseller_id}/credit-book", response_model=dict)
def credit_book(reseller_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    reseller = counterparty_service.get_reseller(db, reseller_id)
    items = credit_book_service.list_items(db, reseller)
    return {
        "reseller": CounterpartyOut.model_validate(reseller).model_dump(),
        "items": [CreditBookItemOut.model_validate(i).model_dump() for i in items],
        "total_items": len(items),
    }


@router.post("/{reseller_id}/add-laptops", response_model=dict)
def add_laptops(
    reseller_id: int,
    data: AddLaptopsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with atomic(db):
        reseller, added = credit_book_service.add_laptops(
            db,
            reseller_id,
            data.branch_name,
            [CreditBookLine(i.serial_number, i.given_price) for i in data.items],
        )
        total = sum(float(i.given_price) for i in added)
        result = {
            "message": f"{len(added)} laptop(s) added to {reseller.name}'s credit book",
            "amount_added": total,
            "open_balance": float(reseller.open_balance),
        }
    AuditLog.log_action("laptops_added", "reseller", reseller_id, current_user, changes={
        "count": len(data.items), "amount": total,
    })
    return result


@router.post("/{reseller_id}/return-laptop", response_model=dict)
def return_laptop(
    reseller_id: int,
    data: LaptopReturnIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with atomic(db):
        result = return_service.return_reseller_laptop(db, reseller_id, data.serial_number)
    AuditLog.log_action("laptop", "return", reseller_id, current_user, changes={
        "serial_number": result.serial_number, "amount_reduced": result.amount,
    })
    return {"message": result.message, "amount_reduced": float(result.amount)}


@router.post("/{reseller_id}/payment", response_model=ResellerPaymentOut)
def reseller_payment(
    reseller_id: int,
    data: ResellerPaymentIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Pay down the reseller's whole credit book. Over-payment is rejected with 409."""
    with atomic(db):
        payment = payment_service.apply_reseller_payment(db, reseller_id, data.amount, recorded_by=current_user)
        result = ResellerPaymentOut(
            payment_id=payment.id,
            amount_paid=float(payment.amount),
            balance_left=float(payment.counterparty.open_balance),
            receipt_url=f"/receipt/bulk-reseller-payment/{payment.id}",
        )
    AuditLog.log_action("create", "payment", result.payment_id, current_user, changes={
        "reseller_id": reseller_id, "amount": result.amount_paid,
    })
    return result


@router.post("/{reseller_id}/recalculate-balance", response_model=dict)
def recalculate_reseller_balance(
    reseller_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Admin repair: open_balance = credit book total - payments."""
    with atomic(db):
        check = reconciliation_service.recalculate_reseller_balance(db, reseller_id)
        result = {
            "previous_balance": float(check.previous_balance),
            "items_total": float(check.items_total),
            "payments_total": float(check.payments_total),
            "correct_balance": float(check.correct_balance),
            "difference": float(check.difference),
        }
    AuditLog.log_action("recalculate", "balance", reseller_id, admin, changes=result)
    return result
