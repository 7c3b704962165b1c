"""Balance recalculation for customers and resellers."""
from decimal import Decimal

import pytest

from ledger_api.core.exceptions import NotFoundError
from ledger_api.db.session import atomic
from ledger_api.models.ledger import LedgerEntry
from ledger_api.services import (
    counterparty_service,
    credit_book_service,
    payment_service,
    reconciliation_service,
)
from ledger_api.services.credit_book_service import CreditBookLine
from ledger_api.services.sale_service import SaleLine, create_sale

PHONE = "08012345678"


def setup_customer_with_debt(db, user):
    """Two credit sales (500,000 and 200,000); 150,000 paid on the first."""
    with atomic(db):
        first = create_sale(
            db, user, "Main", "credit", [SaleLine("LAP-001", 500000)],
            customer_name="Ada Obi", customer_phone=PHONE,
        ).sale
    with atomic(db):
        create_sale(
            db, user, "Main", "credit", [SaleLine("LAP-002", 200000)],
            customer_name="Ada Obi", customer_phone=PHONE,
        )
    with atomic(db):
        payment_service.apply_credit_payment(db, PHONE, first.id, 150000)
    return counterparty_service.get_credit_customer(db, PHONE)


def recalc_customer(db):
    with atomic(db):
        return reconciliation_service.recalculate_customer_balance(db, PHONE)


def test_consistent_customer_reports_no_difference(db, admin_user):
    setup_customer_with_debt(db, admin_user)
    check = recalc_customer(db)
    assert check.previous_balance == Decimal("550000.00")
    assert check.correct_balance == Decimal("550000.00")
    assert check.difference == Decimal("0.00")


def test_drifted_customer_balance_is_repaired(db, admin_user):
    customer = setup_customer_with_debt(db, admin_user)
    with atomic(db):
        customer.open_balance = Decimal("600000.00")

    check = recalc_customer(db)
    assert check.previous_balance == Decimal("600000.00")
    assert check.correct_balance == Decimal("550000.00")
    assert check.difference == Decimal("-50000.00")

    db.expire_all()
    assert counterparty_service.get_credit_customer(db, PHONE).open_balance == Decimal("550000.00")
    adjustment = (
        db.query(LedgerEntry)
        .filter_by(counterparty_id=customer.id, description="Balance recalculation")
        .one()
    )
    assert adjustment.credit == Decimal("50000.00")


def test_recalculation_is_idempotent(db, admin_user):
    customer = setup_customer_with_debt(db, admin_user)
    with atomic(db):
        customer.open_balance = Decimal("1.00")

    assert recalc_customer(db).difference != Decimal("0")
    assert recalc_customer(db).difference == Decimal("0.00")


def test_unknown_customer(db):
    with pytest.raises(NotFoundError):
        reconciliation_service.recalculate_customer_balance(db, "08000000000")


def test_reseller_scenario(db):
    with atomic(db):
        reseller = counterparty_service.create_reseller(db, "Gadget Hub", "07011112222")
    with atomic(db):
        credit_book_service.add_laptops(
            db, reseller.id, "Main",
            [CreditBookLine(s, 100000) for s in ("LAP-001", "LAP-002", "LAP-003")],
        )
    assert reseller.open_balance == Decimal("300000.00")

    with atomic(db):
        payment_service.apply_reseller_payment(db, reseller.id, 150000)
    assert reseller.open_balance == Decimal("150000.00")

    with atomic(db):
        check = reconciliation_service.recalculate_reseller_balance(db, reseller.id)
    assert check.items_total == Decimal("300000.00")
    assert check.payments_total == Decimal("150000.00")
    assert check.correct_balance == Decimal("150000.00")
    assert check.difference == Decimal("0.00")


def test_audit_lists_only_drifted_counterparties(db, admin_user):
    customer = setup_customer_with_debt(db, admin_user)
    with atomic(db):
        reseller = counterparty_service.create_reseller(db, "Gadget Hub", "07011112222")
    assert reconciliation_service.audit_balances(db) == []

    with atomic(db):
        customer.open_balance = Decimal("10.00")
    drifted = reconciliation_service.audit_balances(db)
    assert [c.counterparty.id for c in drifted] == [customer.id]
    assert drifted[0].correct_balance == Decimal("550000.00")
    assert reseller.open_balance == Decimal("0.00")
