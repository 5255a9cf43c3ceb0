"""
Receipt generation for completed sales.

build_receipt() is pure: it reads a loaded Sale aggregate (items, customer,
prescription, cashier) and computes totals from persisted values:
    subtotal = sum(item.subtotal)      (item subtotals are already net of line discounts)
    total    = subtotal + tax - discount   (tax and discount as stored)
Renderers turn a Receipt into plain text (thermal printer / terminal)
or a PDF document.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from app.core.config import settings
from app.models.sale import Sale

logger = logging.getLogger(__name__)

TEXT_WIDTH = 42


@dataclass
class ReceiptLine:
    name: str
    generic_name: Optional[str]
    quantity: int
    unit_price: Decimal
    discount: Decimal
    subtotal: Decimal


@dataclass
class ReceiptTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


@dataclass
class Receipt:
    sale_id: int
    number: str
    sale_date: datetime
    cashier: str
    payment_method: str
    lines: List[ReceiptLine]
    totals: ReceiptTotals
    customer: Optional[str] = None
    prescription_number: Optional[str] = None
    notes: Optional[str] = None
    header: List[str] = field(default_factory=list)
    footer: List[str] = field(default_factory=list)


def _dec(value) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def compute_totals(sale: Sale) -> ReceiptTotals:
    subtotal = sum((_dec(item.subtotal) for item in sale.items), Decimal("0"))
    tax = _dec(sale.tax)
    discount = _dec(sale.discount)
    return ReceiptTotals(subtotal=subtotal, tax=tax, discount=discount, total=subtotal + tax - discount)


def receipt_number(sale_id: int) -> str:
    return f"{sale_id:08d}"[:8].upper()


def format_currency(amount, currency: Optional[str] = None) -> str:
    """'UGX 1,234' for whole amounts, 'UGX 1,234.50' otherwise."""
    currency = currency or settings.RECEIPT_CURRENCY
    value = _dec(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        body = f"{int(value):,}"
    else:
        body = f"{value:,.2f}"
    return f"{sign}{currency} {body}"


def format_receipt_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M")


def build_receipt(sale: Sale) -> Receipt:
    totals = compute_totals(sale)
    if sale.total is not None and _dec(sale.total) != totals.total:
        logger.warning(
            f"Sale #{sale.id}: stored total {sale.total} differs from computed {totals.total}"
        )

    lines = [
        ReceiptLine(
            name=item.medicine.name if item.medicine else f"Medicine #{item.medicine_id}",
            generic_name=item.medicine.generic_name if item.medicine else None,
            quantity=item.quantity,
            unit_price=_dec(item.unit_price),
            discount=_dec(item.discount),
            subtotal=_dec(item.subtotal),
        )
        for item in sale.items
    ]

    return Receipt(
        sale_id=sale.id,
        number=receipt_number(sale.id),
        sale_date=sale.sale_date,
        cashier=sale.cashier.name if sale.cashier else "",
        payment_method=sale.payment_method,
        lines=lines,
        totals=totals,
        customer=sale.customer.name if sale.customer else None,
        prescription_number=sale.prescription.prescription_number if sale.prescription else None,
        notes=sale.notes,
        header=[
            settings.PHARMACY_NAME,
            settings.PHARMACY_TAGLINE,
            settings.PHARMACY_ADDRESS,
            f"Tel: {settings.PHARMACY_PHONE}",
            f"Email: {settings.PHARMACY_EMAIL}",
        ],
        footer=[
            f"Thank you for choosing {settings.PHARMACY_NAME.title()}!",
            "Please keep this receipt for your records",
            f"For questions, call: {settings.PHARMACY_PHONE}",
            "This receipt is computer generated and valid without signature",
        ],
    )


def _row(left: str, right: str, width: int = TEXT_WIDTH) -> str:
    gap = max(1, width - len(left) - len(right))
    return f"{left}{' ' * gap}{right}"


def render_receipt_text(receipt: Receipt, width: int = TEXT_WIDTH) -> str:
    divider = "-" * width
    out = [line.center(width).rstrip() for line in receipt.header]
    out.append(divider)
    out.append(_row("Receipt #:", receipt.number, width))
    out.append(_row("Date:", format_receipt_date(receipt.sale_date), width))
    out.append(_row("Cashier:", receipt.cashier, width))
    if receipt.customer:
        out.append(_row("Customer:", receipt.customer, width))
    if receipt.prescription_number:
        out.append(_row("Prescription:", f"#{receipt.prescription_number}", width))
    out.append(divider)

    for line in receipt.lines:
        out.append(line.name[:width])
        if line.generic_name:
            out.append(f"  {line.generic_name}"[:width])
        out.append(_row(
            f"  {line.quantity} x {format_currency(line.unit_price)}",
            format_currency(line.subtotal),
            width,
        ))
    out.append(divider)

    totals = receipt.totals
    out.append(_row("Subtotal:", format_currency(totals.subtotal), width))
    out.append(_row("Tax:", format_currency(totals.tax), width))
    if totals.discount > 0:
        out.append(_row("Discount:", f"-{format_currency(totals.discount)}", width))
    out.append(_row("TOTAL:", format_currency(totals.total), width))
    out.append(divider)
    out.append(_row("Payment Method:", receipt.payment_method, width))
    out.append(_row("Amount Paid:", format_currency(totals.total), width))

    if receipt.notes:
        out.append(divider)
        out.append("Notes:")
        out.append(receipt.notes)

    out.append(divider)
    out.extend(line.center(width).rstrip() for line in receipt.footer)
    return "\n".join(out) + "\n"


def generate_receipt_pdf(receipt: Receipt) -> BytesIO:
    """
    Render a receipt as a PDF.

    Returns:
        BytesIO buffer positioned at the start
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A5, topMargin=0.4*inch, bottomMargin=0.4*inch)

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=16,
        alignment=TA_CENTER,
        spaceAfter=4
    )
    centered_style = ParagraphStyle(
        'ReceiptCentered',
        parent=styles['Normal'],
        fontSize=8,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#374151')
    )
    normal_style = ParagraphStyle(
        'ReceiptNormal',
        parent=styles['Normal'],
        fontSize=9,
    )

    if receipt.header:
        elements.append(Paragraph(receipt.header[0], title_style))
        for line in receipt.header[1:]:
            elements.append(Paragraph(line, centered_style))
    elements.append(Spacer(1, 0.2*inch))

    details = [
        ["Receipt #:", receipt.number],
        ["Date:", format_receipt_date(receipt.sale_date)],
        ["Cashier:", receipt.cashier],
    ]
    if receipt.customer:
        details.append(["Customer:", receipt.customer])
    if receipt.prescription_number:
        details.append(["Prescription:", f"#{receipt.prescription_number}"])
    details_table = Table(details, colWidths=[1.3*inch, 3.2*inch])
    details_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
    ]))
    elements.append(details_table)
    elements.append(Spacer(1, 0.15*inch))

    items_data = [["Item", "Qty", "Price", "Total"]]
    for line in receipt.lines:
        label = line.name
        if line.generic_name:
            label += f"<br/><font size=7 color='#666666'>{line.generic_name}</font>"
        items_data.append([
            Paragraph(label, normal_style),
            str(line.quantity),
            format_currency(line.unit_price),
            format_currency(line.subtotal),
        ])
    items_table = Table(items_data, colWidths=[2.0*inch, 0.5*inch, 1.0*inch, 1.0*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.grey),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.15*inch))

    totals = receipt.totals
    totals_data = [
        ["Subtotal:", format_currency(totals.subtotal)],
        ["Tax:", format_currency(totals.tax)],
    ]
    if totals.discount > 0:
        totals_data.append(["Discount:", f"-{format_currency(totals.discount)}"])
    totals_data.append(["TOTAL:", format_currency(totals.total)])
    totals_data.append(["Payment Method:", receipt.payment_method])
    totals_table = Table(totals_data, colWidths=[3.0*inch, 1.5*inch])
    last_total_row = len(totals_data) - 2
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('FONTNAME', (0, last_total_row), (-1, last_total_row), 'Helvetica-Bold'),
        ('LINEABOVE', (0, last_total_row), (-1, last_total_row), 1, colors.black),
    ]))
    elements.append(totals_table)

    if receipt.notes:
        elements.append(Spacer(1, 0.15*inch))
        elements.append(Paragraph(f"<b>Notes:</b> {receipt.notes}", normal_style))

    elements.append(Spacer(1, 0.3*inch))
    for line in receipt.footer:
        elements.append(Paragraph(line, centered_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
