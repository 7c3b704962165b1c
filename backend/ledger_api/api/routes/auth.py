"""Auth: login for the console, user registration for admins."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ledger_api.api.deps import get_db, get_current_user, require_admin
from ledger_api.core.audit import AuditLog
from ledger_api.core.exceptions import AuthError, ConflictError
from ledger_api.core.security import verify_password, get_password_hash, create_access_token
from ledger_api.db.session import atomic
from ledger_api.models.user import User
from ledger_api.schemas.user import UserCreate, UserLogin, UserResponse, LoginResponse
from ledger_api.services.inventory_service import get_branch_by_name

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login", response_model=LoginResponse)
def login(data: UserLogin, request: Request, db: Session = Depends(get_db)):
    """
    Exchange email/password for a bearer token.

    Generic error message whichever field is wrong, to prevent user enumeration.
    """
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("failed_login", data.email, _client_ip(request), False, reason="Bad credentials")
        raise AuthError("Invalid email or password")

    AuditLog.log_authentication("login", user.email, _client_ip(request), True)
    return LoginResponse(
        token=create_access_token(subject=str(user.id), role=user.role),
        email=user.email,
        name=user.name,
        role=user.role,
        branch_name=user.branch.name if user.branch else None,
    )


@router.post("/register", response_model=UserResponse)
def register(
    data: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Admin creates a console user (admin or sales)."""
    with atomic(db):
        if db.query(User).filter(User.email == data.email).first():
            raise ConflictError("Email already registered")
        branch = get_branch_by_name(db, data.branch_name) if data.branch_name else None
        user = User(
            email=data.email,
            name=data.name.strip(),
            hashed_password=get_password_hash(data.password),
            role=data.role,
            branch_id=branch.id if branch else None,
        )
        db.add(user)
    db.refresh(user)
    AuditLog.log_authentication("register", user.email, _client_ip(request), True)
    return user


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
