"""Sales and returns of sold laptops."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user
from ledger_api.core.audit import AuditLog
from ledger_api.core.config import settings
from ledger_api.db.session import atomic
from ledger_api.models.user import User
from ledger_api.schemas.returns import CashReturnIn, CreditReturnIn
from ledger_api.schemas.sale import SaleCreate, SaleCreated
from ledger_api.services import return_service, sale_service
from ledger_api.services.sale_service import SaleLine

router = APIRouter()


@router.post("/sales", response_model=SaleCreated, response_model_exclude_none=True)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Sell one or more laptops.

    Cash sales come back with a receipt_url; credit sales are charged to the
    customer's open balance and receipts follow each payment instead.
    """
    with atomic(db):
        result = sale_service.create_sale(
            db,
            seller=current_user,
            branch_name=data.branch_name,
            payment_type=data.payment_type,
            items=[
                SaleLine(i.serial_number, i.price, i.ram_price, i.storage_price)
                for i in data.items
            ],
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            vat_enabled=data.vat_enabled,
            vat_percentage=data.vat_percentage if data.vat_percentage is not None else settings.DEFAULT_VAT_PERCENTAGE,
            sales_note=data.sales_note,
        )
        sale = result.sale
    AuditLog.log_action("create", "sale", sale.id, current_user, changes={
        "payment_type": sale.payment_type,
        "total_amount": sale.total_amount,
        "counterparty_id": sale.counterparty_id,
    })
    return SaleCreated(
        sale_id=sale.id,
        payment_type=sale.payment_type,
        total_amount=float(sale.total_amount),
        profit=float(sale.profit),
        warning=result.warning,
        receipt_url=result.receipt_url,
    )


@router.post("/cash-return", response_model=dict)
def cash_return(
    data: CashReturnIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with atomic(db):
        result = return_service.process_cash_return(db, data.serial_number, data.sale_id)
    AuditLog.log_action("cash", "return", result.sale_id, current_user, changes={
        "serial_number": result.serial_number, "amount_refunded": result.amount,
    })
    return {"message": result.message, "amount_refunded": float(result.amount)}


@router.post("/credit-return", response_model=dict)
def credit_return(
    data: CreditReturnIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with atomic(db):
        result = return_service.process_credit_return(
            db, data.serial_number, data.sale_id, data.customer_phone
        )
    AuditLog.log_action("credit", "return", result.sale_id, current_user, changes={
        "serial_number": result.serial_number, "amount_reduced": result.amount,
    })
    return {"message": result.message, "amount_reduced": float(result.amount)}
