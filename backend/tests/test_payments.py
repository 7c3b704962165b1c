"""Payments against credit sales and against reseller credit books."""
from decimal import Decimal

import pytest

from ledger_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger_api.db.session import atomic
from ledger_api.models.payment import Payment
from ledger_api.services import counterparty_service, credit_book_service, payment_service
from ledger_api.services.credit_book_service import CreditBookLine
from ledger_api.services.sale_service import SaleLine, create_sale

PHONE = "08012345678"


def credit_sale(db, user, serial="LAP-001", price=500000, phone=PHONE):
    with atomic(db):
        return create_sale(
            db, user, "Main", "credit", [SaleLine(serial, price)],
            customer_name="Ada Obi", customer_phone=phone,
        ).sale


def pay(db, sale_id, amount, phone=PHONE):
    with atomic(db):
        return payment_service.apply_credit_payment(db, phone, sale_id, amount)


def balance(db, phone=PHONE):
    db.expire_all()
    return counterparty_service.get_credit_customer(db, phone).open_balance


def test_payment_reduces_sale_and_customer_balance(db, admin_user):
    sale = credit_sale(db, admin_user)
    payment, remaining = pay(db, sale.id, 120000)

    assert remaining == Decimal("380000.00")
    assert payment_service.unsettled_balance(db, sale) == Decimal("380000.00")
    assert balance(db) == Decimal("380000.00")
    assert payment.receipt_number.startswith("CP-")


def test_full_settlement_round_trip(db, admin_user):
    sale = credit_sale(db, admin_user)
    customer = counterparty_service.get_credit_customer(db, PHONE)
    assert [s.id for s, _ in payment_service.unsettled_sales(db, customer)] == [sale.id]

    pay(db, sale.id, 200000)
    pay(db, sale.id, 300000)

    assert payment_service.unsettled_balance(db, sale) == Decimal("0.00")
    assert payment_service.unsettled_sales(db, customer) == []
    assert balance(db) == Decimal("0.00")


def test_over_payment_is_rejected_and_nothing_changes(db, admin_user):
    sale = credit_sale(db, admin_user)
    pay(db, sale.id, 100000)

    with pytest.raises(ConflictError, match="exceeds the outstanding balance"):
        pay(db, sale.id, 400000.01)

    assert balance(db) == Decimal("400000.00")
    assert db.query(Payment).count() == 1


def test_paying_a_settled_sale(db, admin_user):
    sale = credit_sale(db, admin_user, price=1000)
    pay(db, sale.id, 1000)
    with pytest.raises(ConflictError, match="already fully paid"):
        pay(db, sale.id, 1)


@pytest.mark.parametrize("amount", [0, -50])
def test_amount_must_be_positive(db, admin_user, amount):
    sale = credit_sale(db, admin_user)
    with pytest.raises(ValidationError):
        pay(db, sale.id, amount)


def test_sale_must_belong_to_customer(db, admin_user):
    sale = credit_sale(db, admin_user)
    credit_sale(db, admin_user, serial="LAP-002", phone="08099999999")
    with pytest.raises(NotFoundError):
        pay(db, sale.id, 1000, phone="08099999999")


def test_unknown_customer(db, admin_user):
    with pytest.raises(NotFoundError):
        pay(db, 1, 1000, phone="08000000000")


def test_cash_sale_cannot_be_paid(db, admin_user):
    credit_sale(db, admin_user, serial="LAP-002")
    with atomic(db):
        cash = create_sale(db, admin_user, "Main", "cash", [SaleLine("LAP-001", 5000)]).sale
    with pytest.raises(NotFoundError):
        pay(db, cash.id, 1000)


def test_payments_are_not_deduplicated(db, admin_user):
    sale = credit_sale(db, admin_user)
    first, _ = pay(db, sale.id, 1000)
    second, _ = pay(db, sale.id, 1000)
    assert first.id != second.id
    assert first.receipt_number != second.receipt_number
    assert balance(db) == Decimal("498000.00")


def make_reseller_with_laptops(db, prices):
    with atomic(db):
        reseller = counterparty_service.create_reseller(db, "Gadget Hub", "07011112222")
    with atomic(db):
        credit_book_service.add_laptops(
            db, reseller.id, "Main",
            [CreditBookLine(f"LAP-{n:03d}", price) for n, price in enumerate(prices, start=1)],
        )
    return reseller


def test_reseller_payment_reduces_aggregate_balance(db):
    reseller = make_reseller_with_laptops(db, [100000, 100000, 100000])
    assert reseller.open_balance == Decimal("300000.00")

    with atomic(db):
        payment = payment_service.apply_reseller_payment(db, reseller.id, 150000)
    assert payment.sale_id is None
    assert reseller.open_balance == Decimal("150000.00")


def test_reseller_over_payment_is_rejected(db):
    reseller = make_reseller_with_laptops(db, [100000])
    with pytest.raises(ConflictError):
        with atomic(db):
            payment_service.apply_reseller_payment(db, reseller.id, 100000.5)
    db.expire_all()
    assert reseller.open_balance == Decimal("100000.00")
