"""PDF receipts, opened by the console in a new tab."""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user
from ledger_api.models.user import User
from ledger_api.services import receipt_service

router = APIRouter()


def _pdf(buffer, filename: str) -> StreamingResponse:
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={filename}"},
    )


@router.get("/sale/{sale_id}")
def sale_receipt(sale_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _pdf(receipt_service.generate_sale_receipt(db, sale_id), f"sale_{sale_id}.pdf")


@router.get("/credit-payment/{payment_id}")
def credit_payment_receipt(payment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _pdf(receipt_service.generate_credit_payment_receipt(db, payment_id), f"payment_{payment_id}.pdf")


@router.get("/bulk-reseller-payment/{payment_id}")
def reseller_payment_receipt(payment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _pdf(receipt_service.generate_reseller_payment_receipt(db, payment_id), f"reseller_payment_{payment_id}.pdf")
