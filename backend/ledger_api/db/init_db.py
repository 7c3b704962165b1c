"""Create all tables. Run on app startup.

The bootstrap admin gets ADMIN_PASSWORD from the environment, or a random
password that is logged once on first start.
"""
import logging
import secrets

from ledger_api.core.config import settings
from ledger_api.core.security import get_password_hash
from ledger_api.db.base import Base
from ledger_api.db.session import engine, SessionLocal
from ledger_api import models  # noqa: F401 - register models
from ledger_api.models.user import User, ROLE_ADMIN

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            password = settings.ADMIN_PASSWORD or secrets.token_urlsafe(16)
            db.add(User(
                email=settings.ADMIN_EMAIL,
                name="Administrator",
                hashed_password=get_password_hash(password),
                role=ROLE_ADMIN,
            ))
            db.commit()
            if settings.ADMIN_PASSWORD:
                logger.info(f"Default admin user created: {settings.ADMIN_EMAIL}")
            else:
                logger.warning(
                    f"Default admin user created: {settings.ADMIN_EMAIL} / {password} "
                    "- change this password after first login"
                )
    finally:
        db.close()
