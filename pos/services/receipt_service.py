"""Receipt building and PDF rendering for completed transactions."""

from decimal import Decimal
from io import BytesIO
from typing import Any, Callable, Dict, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A6
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from pos.domain import StoreSettings, Transaction
from pos.i18n import translate
from pos.services.checkout_service import TAX_RATE
from pos.utils.formatters import datetime_id, format_rupiah


def build_receipt(
    transaction: Transaction,
    settings: StoreSettings,
    tax_rate: Decimal = TAX_RATE
) -> Dict[str, Any]:
    """
    Receipt contents for a transaction.

    Tax is shown as whatever separates the item subtotal from the total paid,
    which is 0 when the sale was rung up in tax-included mode.
    """
    subtotal = transaction.subtotal
    return {
        'store': {
            'name': settings.name,
            'logo': settings.logo,
            'address': settings.address,
            'phone': settings.phone,
        },
        'transaction_id': transaction.id,
        'timestamp': transaction.timestamp.isoformat() if transaction.timestamp else None,
        'items': [
            {
                'name': item.name,
                'quantity': item.quantity,
                'price': item.price,
                'line_total': item.line_total,
            }
            for item in transaction.items
        ],
        'subtotal': subtotal,
        'tax_rate_percent': int(Decimal(str(tax_rate)) * 100),
        'tax': transaction.total - subtotal,
        'total': transaction.total,
        'tendered_amount': transaction.tendered_amount,
        'change': transaction.change,
        'notes': settings.receipt_notes,
    }


def render_receipt_pdf(receipt: Dict[str, Any], timestamp=None, t: Optional[Callable[..., str]] = None) -> BytesIO:
    """Render a built receipt on an A6 page."""
    t = t or translate
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A6,
        rightMargin=6*mm,
        leftMargin=6*mm,
        topMargin=6*mm,
        bottomMargin=6*mm,
        title=t('receiptTitle')
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=14,
        alignment=TA_CENTER,
        spaceAfter=2,
        fontName='Helvetica-Bold'
    )
    header_style = ParagraphStyle(
        'ReceiptHeader',
        parent=styles['Normal'],
        fontSize=7,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER
    )

    store = receipt['store']
    elements = [Paragraph(escape(store['name'] or ''), title_style)]
    if store.get('address'):
        elements.append(Paragraph(escape(store['address']), header_style))
    if store.get('phone'):
        elements.append(Paragraph(f"Telp: {escape(store['phone'])}", header_style))
    elements.append(Spacer(1, 3*mm))

    meta = [[f"{t('transactionId')}: {receipt['transaction_id'][:8]}", datetime_id(timestamp)]]
    meta_table = Table(meta, colWidths=[50*mm, 36*mm])
    meta_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 6),
        ('ALIGN', (1, 0), (1, 0), 'RIGHT'),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#7F8C8D')),
    ]))
    elements.append(meta_table)

    rows = [[f"{item['name']} ({item['quantity']}x)", format_rupiah(item['line_total'])]
            for item in receipt['items']]
    rows += [
        [t('subtotal'), format_rupiah(receipt['subtotal'])],
        [f"{t('tax')} ({receipt['tax_rate_percent']}%)", format_rupiah(receipt['tax'])],
        [t('totalPaid'), format_rupiah(receipt['total'])],
        [t('tendered'), format_rupiah(receipt['tendered_amount'])],
        [t('changeDue'), format_rupiah(receipt['change'])],
    ]
    first_summary = len(receipt['items'])
    total_row = first_summary + 2

    items_table = Table(rows, colWidths=[56*mm, 30*mm])
    items_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('LINEABOVE', (0, first_summary), (-1, first_summary), 0.5, colors.HexColor('#BDC3C7')),
        ('LINEABOVE', (0, total_row), (-1, total_row), 1, colors.black),
        ('FONTNAME', (0, total_row), (-1, total_row), 'Helvetica-Bold'),
        ('FONTSIZE', (0, total_row), (-1, total_row), 10),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 4*mm))

    if receipt.get('notes'):
        elements.append(Paragraph(f"<i>{escape(receipt['notes'])}</i>", header_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
