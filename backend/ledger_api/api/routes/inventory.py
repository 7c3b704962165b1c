"""Branches and stock: just enough inventory for sales and credit books to run."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user, require_admin
from ledger_api.core.exceptions import NotFoundError
from ledger_api.db.session import atomic
from ledger_api.models.branch import Branch
from ledger_api.models.stock import Stock
from ledger_api.models.user import User
from ledger_api.schemas.stock import BranchCreate, BranchOut, StockCreate, StockOut
from ledger_api.services import inventory_service

router = APIRouter()


def _stock_out(stock: Stock) -> StockOut:
    return StockOut(
        serial_number=stock.serial_number,
        product_name=stock.product_name,
        specifications=stock.specifications,
        cost_price=float(stock.cost_price),
        status=stock.status,
        branch_name=stock.branch.name if stock.branch else None,
    )


@router.get("/branches", response_model=dict)
def list_branches(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    branches = db.query(Branch).order_by(Branch.name).all()
    return {"branches": [BranchOut.model_validate(b).model_dump() for b in branches]}


@router.post("/branch", response_model=dict)
def create_branch(
    data: BranchCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with atomic(db):
        branch = inventory_service.create_branch(db, data.name, data.location)
    return {"message": f"Branch {branch.name} created", "branch": BranchOut.model_validate(branch).model_dump()}


@router.post("/stock", response_model=StockOut)
def add_stock(
    data: StockCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Register one laptop as available stock."""
    with atomic(db):
        branch = inventory_service.get_branch_by_name(db, data.branch_name)
        stock = inventory_service.create_stock(
            db,
            serial_number=data.serial_number,
            product_name=data.product_name,
            cost_price=data.cost_price,
            branch=branch,
            specifications=data.specifications,
        )
    db.refresh(stock)
    return _stock_out(stock)


@router.get("/stock/{serial_number}", response_model=StockOut)
def get_stock(
    serial_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    stock = inventory_service.get_stock(db, serial_number)
    if not stock:
        raise NotFoundError(f"Serial number {serial_number} not found")
    return _stock_out(stock)
