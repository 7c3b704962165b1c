"""Money arithmetic shared by the ledger services."""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | float | int | str | None) -> Decimal:
    """Convert to a Decimal rounded to the cent. None counts as zero."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def vat_factor(vat_enabled: bool, vat_percentage: Decimal | float) -> Decimal:
    """Multiplier applied to a subtotal: 1 + pct/100 when VAT is on."""
    if not vat_enabled:
        return Decimal("1")
    return Decimal("1") + Decimal(str(vat_percentage)) / Decimal("100")


def calculate_vat(subtotal: Decimal | float, vat_enabled: bool, vat_percentage: Decimal | float) -> dict:
    """VAT breakdown for a sale.

    Returns:
        dict with subtotal, vat_amount, total_amount (all rounded to the cent)
    """
    base = to_money(subtotal)
    total = to_money(base * vat_factor(vat_enabled, vat_percentage))
    return {
        "subtotal": base,
        "vat_amount": total - base,
        "total_amount": total,
    }
