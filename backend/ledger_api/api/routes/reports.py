"""Reports: credit payments, and the balance integrity audit."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user, require_admin
from ledger_api.models.user import User
from ledger_api.services import reconciliation_service, report_service

router = APIRouter()


@router.get("/reports/credit-payments", response_model=dict)
def credit_payments_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    branch_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows, totals = report_service.credit_payments(db, start_date, end_date, branch_name)
    return {
        "payments": [
            {
                "payment_id": p.id,
                "payment_date": p.created_at.isoformat() if p.created_at else None,
                "customer_name": c.name,
                "customer_phone": c.contact_info,
                "payment_type": c.customer_type,
                "sale_id": p.sale_id,
                "amount": float(p.amount),
                "receipt_number": p.receipt_number,
            }
            for p, c in rows
        ],
        "totals": {
            "total_payments": totals["total_payments"],
            "total_amount": float(totals["total_amount"]),
            "credit_customer_amount": float(totals["credit_customer_amount"]),
            "bulk_reseller_amount": float(totals["bulk_reseller_amount"]),
        },
        "total_amount": float(totals["total_amount"]),
        "count": totals["total_payments"],
    }


@router.get("/ledger/integrity", response_model=dict)
def ledger_integrity(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Counterparties whose stored balance drifted. Read-only; fix with recalculate-balance."""
    drifted = reconciliation_service.audit_balances(db)
    return {
        "consistent": not drifted,
        "drifted": [
            {
                "id": check.counterparty.id,
                "name": check.counterparty.name,
                "contact_info": check.counterparty.contact_info,
                "customer_type": check.counterparty.customer_type,
                "stored_balance": float(check.previous_balance),
                "correct_balance": float(check.correct_balance),
                "difference": float(check.difference),
            }
            for check in drifted
        ],
    }
