"""FastAPI dependencies: DB session, current user from JWT, role gates.

The console keeps its token in localStorage and sends it as
Authorization: Bearer <token> on every call.
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ledger_api.core.audit import AuditLog
from ledger_api.core.exceptions import AuthError, PermissionDeniedError
from ledger_api.core.security import decode_access_token
from ledger_api.db.session import SessionLocal
from ledger_api.models.user import User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """Extract user ID from the bearer token."""
    if not credentials:
        raise AuthError("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if not claims or "sub" not in claims:
        raise AuthError("Invalid or expired token")

    try:
        return int(claims["sub"])
    except (TypeError, ValueError):
        raise AuthError("Invalid token")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthError("User not found")
    return user


def require_admin(request: Request, current_user: User = Depends(get_current_user)) -> User:
    """Admin-only operations: reconciliation, reseller management, users, stock."""
    if not current_user.is_admin:
        AuditLog.log_access_denied(
            f"{request.method} {request.url.path}", current_user.id, "Admin role required"
        )
        raise PermissionDeniedError("Admin access required")
    return current_user
