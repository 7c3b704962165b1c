"""
PDF receipts for cash sales and credit payments.

Receipt URLs returned by the sale and payment endpoints point here:
    /receipt/sale/{sale_id}                      cash sales only
    /receipt/credit-payment/{payment_id}
    /receipt/bulk-reseller-payment/{payment_id}
"""
from io import BytesIO
from datetime import datetime
from decimal import Decimal

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from sqlalchemy.orm import Session

from ledger_api.core.config import settings
from ledger_api.core.exceptions import ValidationError
from ledger_api.models.counterparty import CREDIT_CUSTOMER, BULK_RESELLER
from ledger_api.models.payment import Payment
from ledger_api.models.sale import PAYMENT_CASH
from ledger_api.services.payment_service import get_payment, unsettled_balance
from ledger_api.services.sale_service import get_sale, line_subtotal
from ledger_api.services.amounts import to_money

_TABLE_STYLE = TableStyle([
    ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 9),
    ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ('TOPPADDING', (0, 0), (-1, -1), 4),
    ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
])


def _money(value: Decimal | float) -> str:
    return f"{settings.CURRENCY_SYMBOL} {to_money(value):,.2f}"


def _styles() -> dict:
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            'ReceiptTitle', parent=styles['Heading1'], fontSize=16,
            alignment=TA_CENTER, spaceAfter=6,
        ),
        "normal": ParagraphStyle(
            'ReceiptNormal', parent=styles['Normal'], fontSize=9,
            textColor=colors.HexColor('#374151'),
        ),
        "footer": ParagraphStyle(
            'ReceiptFooter', parent=styles['Normal'], fontSize=7,
            textColor=colors.grey, alignment=TA_CENTER,
        ),
    }


def _build(title: str, header_lines: list[str], rows: list[list[str]], col_widths: list[float]) -> BytesIO:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A5, topMargin=0.4*inch, bottomMargin=0.4*inch)
    st = _styles()

    elements = [
        Paragraph(f"<b>{settings.BUSINESS_NAME}</b>", st["title"]),
        Paragraph(title, st["title"]),
        Spacer(1, 0.15*inch),
        Paragraph("<br/>".join(header_lines), st["normal"]),
        Spacer(1, 0.2*inch),
    ]

    table = Table(rows, colWidths=col_widths)
    table.setStyle(_TABLE_STYLE)
    elements.append(table)

    elements.append(Spacer(1, 0.4*inch))
    elements.append(Paragraph("Thank you for your business!", st["footer"]))
    elements.append(Paragraph(f"Printed {datetime.now().strftime('%d %b %Y at %I:%M %p')}", st["footer"]))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def _stamp(value: datetime | None) -> str:
    return value.strftime('%d %b %Y, %I:%M %p') if value else "-"


def generate_sale_receipt(db: Session, sale_id: int) -> BytesIO:
    sale = get_sale(db, sale_id)
    if sale.payment_type != PAYMENT_CASH:
        raise ValidationError("Receipts are issued for cash sales; credit sales get one per payment")

    rows = [["Item", "Serial", "Amount"]]
    for item in sale.items:
        label = item.product_name
        if item.specifications:
            label += f" ({item.specifications})"
        rows.append([label, item.serial_number, _money(line_subtotal(item))])
    if sale.vat_enabled:
        rows.append([f"VAT {to_money(sale.vat_percentage)}%", "", ""])
    rows.append(["TOTAL", "", _money(sale.total_amount)])

    header = [
        f"<b>Sale #:</b> {sale.id}",
        f"<b>Date:</b> {_stamp(sale.created_at)}",
        f"<b>Branch:</b> {sale.branch.name if sale.branch else '-'}",
    ]
    if sale.customer_name:
        header.append(f"<b>Customer:</b> {sale.customer_name}")
    if sale.sales_note:
        header.append(f"<b>Note:</b> {sale.sales_note}")
    return _build("SALES RECEIPT", header, rows, [2.2*inch, 1.4*inch, 1.2*inch])


def _payment_receipt(db: Session, payment: Payment) -> BytesIO:
    counterparty = payment.counterparty
    header = [
        f"<b>Receipt #:</b> {payment.receipt_number}",
        f"<b>Date:</b> {_stamp(payment.created_at)}",
        f"<b>Received from:</b> {counterparty.name} ({counterparty.contact_info})",
    ]
    rows = [["Description", "Amount"]]
    if payment.sale_id is not None:
        rows.append([f"Payment on sale #{payment.sale_id}", _money(payment.amount)])
        rows.append(["Remaining on this sale", _money(unsettled_balance(db, payment.sale))])
    else:
        rows.append(["Payment on credit book", _money(payment.amount)])
    rows.append(["Total outstanding", _money(counterparty.open_balance)])
    return _build("PAYMENT RECEIPT", header, rows, [3.2*inch, 1.6*inch])


def generate_credit_payment_receipt(db: Session, payment_id: int) -> BytesIO:
    return _payment_receipt(db, get_payment(db, payment_id, CREDIT_CUSTOMER))


def generate_reseller_payment_receipt(db: Session, payment_id: int) -> BytesIO:
    return _payment_receipt(db, get_payment(db, payment_id, BULK_RESELLER))
