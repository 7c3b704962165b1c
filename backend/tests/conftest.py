"""
Shared fixtures: an in-memory SQLite ledger, a seeded store and an API client.

Seed data:
    branches  Main, Annex
    users     admin@example.com (admin), sales@example.com (sales)
    stock     LAP-001 .. LAP-010 at Main, LAP-100 at Annex, each costing 100,000
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEFAULT_VAT_PERCENTAGE"] = "7.5"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_api import models  # noqa: F401 - register models
from ledger_api.api.deps import get_db
from ledger_api.core.security import create_access_token, get_password_hash
from ledger_api.db.base import Base
from ledger_api.main import app
from ledger_api.models.branch import Branch
from ledger_api.models.stock import Stock
from ledger_api.models.user import User, ROLE_ADMIN, ROLE_SALES

ADMIN_PASSWORD = "admin-password-1"
SALES_PASSWORD = "sales-password-1"
COST = 100000


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory, seed):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(session_factory):
    session = session_factory()
    main = Branch(name="Main", location="Ikeja")
    annex = Branch(name="Annex", location="Yaba")
    session.add_all([main, annex])
    session.flush()

    admin = User(
        email="admin@example.com", name="Admin", role=ROLE_ADMIN,
        hashed_password=get_password_hash(ADMIN_PASSWORD), branch_id=main.id,
    )
    sales = User(
        email="sales@example.com", name="Sales Rep", role=ROLE_SALES,
        hashed_password=get_password_hash(SALES_PASSWORD), branch_id=main.id,
    )
    session.add_all([admin, sales])

    for n in range(1, 11):
        session.add(Stock(
            serial_number=f"LAP-{n:03d}", product_name="HP EliteBook 840",
            specifications="i5 / 8GB / 256GB", cost_price=COST, branch_id=main.id,
        ))
    session.add(Stock(
        serial_number="LAP-100", product_name="Dell Latitude 5420",
        specifications="i7 / 16GB / 512GB", cost_price=COST, branch_id=annex.id,
    ))
    session.commit()
    ids = {"admin_id": admin.id, "sales_id": sales.id}
    session.close()
    return ids


@pytest.fixture
def admin_user(db, seed):
    return db.get(User, seed["admin_id"])


@pytest.fixture
def client(session_factory, seed):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not entered as a context manager: lifespan (init_db) would touch the real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(seed):
    token = create_access_token(subject=str(seed["admin_id"]), role=ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sales_headers(seed):
    token = create_access_token(subject=str(seed["sales_id"]), role=ROLE_SALES)
    return {"Authorization": f"Bearer {token}"}
