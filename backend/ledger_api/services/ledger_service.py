"""Ledger trail entries. Written by every service that moves a balance."""
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_api.models.counterparty import Counterparty
from ledger_api.models.ledger import LedgerEntry
from ledger_api.services.amounts import to_money


def add_ledger_entry(
    db: Session,
    counterparty: Counterparty,
    debit: Decimal | float = Decimal("0"),
    credit: Decimal | float = Decimal("0"),
    description: str | None = None,
) -> LedgerEntry:
    """Append an entry. Flushes only: the caller's transaction commits it."""
    entry = LedgerEntry(
        counterparty_id=counterparty.id,
        debit=to_money(debit),
        credit=to_money(credit),
        balance_after=to_money(counterparty.open_balance),
        description=description,
    )
    db.add(entry)
    db.flush()
    return entry


def list_ledger_entries(db: Session, counterparty_id: int, limit: int = 200) -> list[LedgerEntry]:
    return (
        db.query(LedgerEntry)
        .filter(LedgerEntry.counterparty_id == counterparty_id)
        .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
        .limit(limit)
        .all()
    )
