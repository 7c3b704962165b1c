"""Cash, credit and reseller returns, plus reseller deletion."""
from decimal import Decimal

import pytest

from ledger_api.core.exceptions import ConflictError, NotFoundError
from ledger_api.db.session import atomic
from ledger_api.models.counterparty import Counterparty
from ledger_api.models.credit_book import CreditBookItem
from ledger_api.models.sale import Sale, SaleItem
from ledger_api.models.stock import Stock, STOCK_AVAILABLE, STOCK_CREDIT_BOOK, STOCK_SOLD
from ledger_api.services import (
    counterparty_service,
    credit_book_service,
    payment_service,
    return_service,
)
from ledger_api.services.credit_book_service import CreditBookLine
from ledger_api.services.sale_service import SaleLine, create_sale

PHONE = "08012345678"


def stock_status(db, serial):
    db.expire_all()
    return db.query(Stock).filter_by(serial_number=serial).one().status


def credit_sale(db, user, lines, phone=PHONE):
    with atomic(db):
        return create_sale(
            db, user, "Main", "credit", lines,
            customer_name="Ada Obi", customer_phone=phone,
        ).sale


def test_cash_return_restores_stock(db, admin_user):
    with atomic(db):
        sale = create_sale(
            db, admin_user, "Main", "cash",
            [SaleLine("LAP-001", 150000), SaleLine("LAP-002", 250000)],
        ).sale

    with atomic(db):
        result = return_service.process_cash_return(db, "LAP-001", sale.id)

    assert result.amount == Decimal("150000.00")
    assert stock_status(db, "LAP-001") == STOCK_AVAILABLE
    assert stock_status(db, "LAP-002") == STOCK_SOLD
    sale = db.get(Sale, sale.id)
    assert sale.total_amount == Decimal("250000.00")
    assert sale.profit == Decimal("150000.00")
    assert [i.serial_number for i in sale.items] == ["LAP-002"]


def test_credit_return_before_any_payment(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 500000)])

    with atomic(db):
        result = return_service.process_credit_return(db, "LAP-001", sale.id, PHONE)

    assert result.amount == Decimal("500000.00")
    db.expire_all()
    customer = counterparty_service.get_credit_customer(db, PHONE)
    assert customer.open_balance == Decimal("0.00")
    assert customer.total_purchases == Decimal("0.00")
    assert db.get(Sale, sale.id).total_amount == Decimal("0.00")
    assert stock_status(db, "LAP-001") == STOCK_AVAILABLE


def test_credit_return_after_partial_payment_is_capped(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 500000)])
    with atomic(db):
        payment_service.apply_credit_payment(db, PHONE, sale.id, 300000)

    with atomic(db):
        result = return_service.process_credit_return(db, "LAP-001", sale.id, PHONE)

    assert result.amount == Decimal("200000.00")
    db.expire_all()
    assert counterparty_service.get_credit_customer(db, PHONE).open_balance == Decimal("0.00")


def test_credit_return_of_one_line(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 300000), SaleLine("LAP-002", 200000)])

    with atomic(db):
        return_service.process_credit_return(db, "LAP-002", sale.id, PHONE)

    db.expire_all()
    customer = counterparty_service.get_credit_customer(db, PHONE)
    assert customer.open_balance == Decimal("300000.00")
    assert payment_service.unsettled_balance(db, db.get(Sale, sale.id)) == Decimal("300000.00")


def test_returning_every_line_of_a_vat_sale_clears_it(db, admin_user):
    with atomic(db):
        sale = create_sale(
            db, admin_user, "Main", "credit",
            [SaleLine("LAP-001", 1000.06), SaleLine("LAP-002", 1000.06)],
            customer_name="Ada Obi", customer_phone=PHONE,
            vat_enabled=True, vat_percentage=7.5,
        ).sale
    assert sale.total_amount == Decimal("2150.13")

    with atomic(db):
        first = return_service.process_credit_return(db, "LAP-001", sale.id, PHONE)
    with atomic(db):
        second = return_service.process_credit_return(db, "LAP-002", sale.id, PHONE)

    assert first.amount + second.amount == Decimal("2150.13")
    db.expire_all()
    sale = db.get(Sale, sale.id)
    assert sale.items == []
    assert sale.total_amount == Decimal("0.00")
    customer = counterparty_service.get_credit_customer(db, PHONE)
    assert customer.open_balance == Decimal("0.00")
    assert payment_service.unsettled_sales(db, customer) == []


def test_cash_return_of_last_vat_line_refunds_the_remainder(db, admin_user):
    with atomic(db):
        sale = create_sale(
            db, admin_user, "Main", "cash",
            [SaleLine("LAP-001", 1000.06), SaleLine("LAP-002", 1000.06)],
            vat_enabled=True, vat_percentage=7.5,
        ).sale

    with atomic(db):
        return_service.process_cash_return(db, "LAP-001", sale.id)
    with atomic(db):
        last = return_service.process_cash_return(db, "LAP-002", sale.id)

    assert last.amount == Decimal("1075.06")
    db.expire_all()
    sale = db.get(Sale, sale.id)
    assert sale.total_amount == Decimal("0.00")
    assert sale.profit == Decimal("0.00")


def test_mismatched_serial_changes_nothing(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 500000)])

    with pytest.raises(NotFoundError):
        with atomic(db):
            return_service.process_credit_return(db, "LAP-002", sale.id, PHONE)

    db.expire_all()
    assert counterparty_service.get_credit_customer(db, PHONE).open_balance == Decimal("500000.00")
    assert db.query(SaleItem).count() == 1
    assert stock_status(db, "LAP-001") == STOCK_SOLD


def test_credit_return_for_another_customer(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 500000)])
    credit_sale(db, admin_user, [SaleLine("LAP-002", 1000)], phone="08099999999")

    with pytest.raises(NotFoundError, match="does not belong"):
        with atomic(db):
            return_service.process_credit_return(db, "LAP-001", sale.id, "08099999999")


def test_cash_return_of_credit_sale_is_not_found(db, admin_user):
    sale = credit_sale(db, admin_user, [SaleLine("LAP-001", 500000)])
    with pytest.raises(NotFoundError):
        return_service.process_cash_return(db, "LAP-001", sale.id)


def make_reseller(db, prices):
    with atomic(db):
        reseller = counterparty_service.create_reseller(db, "Gadget Hub", "07011112222")
    with atomic(db):
        credit_book_service.add_laptops(
            db, reseller.id, "Main",
            [CreditBookLine(f"LAP-{n:03d}", price) for n, price in enumerate(prices, start=1)],
        )
    return reseller.id


def test_reseller_return_reduces_balance(db):
    reseller_id = make_reseller(db, [100000, 120000])
    assert stock_status(db, "LAP-001") == STOCK_CREDIT_BOOK

    with atomic(db):
        result = return_service.return_reseller_laptop(db, reseller_id, "LAP-002")

    assert result.amount == Decimal("120000.00")
    db.expire_all()
    assert db.get(Counterparty, reseller_id).open_balance == Decimal("100000.00")
    assert db.query(CreditBookItem).count() == 1
    assert stock_status(db, "LAP-002") == STOCK_AVAILABLE


def test_reseller_return_after_paying_for_it(db):
    reseller_id = make_reseller(db, [100000, 100000])
    with atomic(db):
        payment_service.apply_reseller_payment(db, reseller_id, 150000)

    with pytest.raises(ConflictError):
        with atomic(db):
            return_service.return_reseller_laptop(db, reseller_id, "LAP-001")
    assert stock_status(db, "LAP-001") == STOCK_CREDIT_BOOK


def test_reseller_return_of_laptop_not_on_book(db):
    reseller_id = make_reseller(db, [100000])
    with pytest.raises(NotFoundError):
        return_service.return_reseller_laptop(db, reseller_id, "LAP-005")


def test_cannot_delete_reseller_who_owes(db):
    reseller_id = make_reseller(db, [100000])
    with pytest.raises(ConflictError, match="outstanding balance"):
        with atomic(db):
            counterparty_service.delete_reseller(db, reseller_id)


def test_delete_settled_reseller(db):
    reseller_id = make_reseller(db, [100000])
    with atomic(db):
        payment_service.apply_reseller_payment(db, reseller_id, 100000)

    with atomic(db):
        name = counterparty_service.delete_reseller(db, reseller_id)

    assert name == "Gadget Hub"
    db.expire_all()
    assert db.get(Counterparty, reseller_id) is None
    assert db.query(CreditBookItem).count() == 0
    assert stock_status(db, "LAP-001") == STOCK_SOLD
