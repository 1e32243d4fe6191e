# billing/services/bill_document_service.py

import io
import logging

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from domain.models import Bill
from utils.barcode import bill_barcode_png
from utils.formatting import format_bill_date, format_currency, format_quantity

logger = logging.getLogger(__name__)

ITEM_HEADERS = ("Qty", "Item", "Price", "Total")


def _summary_row(doc: Document, label: str, value: str, bold: bool = False) -> None:
    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.RIGHT
    run = p.add_run(f"{label} {value}")
    run.bold = bold


def build_bill_document(
        bill: Bill,
        *,
        store_header: str = "Billing Software",
        currency_symbol: str = "₹",
        with_barcode: bool = True,
) -> Document:
    """
    Printable invoice for one bill. The tax line is only shown when tax > 0.
    with_barcode=False leaves out the bill-number barcode.
    """
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Courier New"
    style.font.size = Pt(10)

    doc.add_heading("INVOICE", level=1)
    doc.add_paragraph(store_header)

    doc.add_paragraph(f"Bill #: {bill.bill_number}")
    doc.add_paragraph(f"Date: {format_bill_date(bill.issue_date, '%d/%m/%Y')}")

    doc.add_heading("Bill To:", level=2)
    doc.add_paragraph(bill.customer_name)
    if bill.customer_address:
        doc.add_paragraph(bill.customer_address)
    if bill.customer_phone:
        doc.add_paragraph(f"Ph: {bill.customer_phone}")

    table = doc.add_table(rows=1, cols=len(ITEM_HEADERS))
    table.style = "Table Grid"
    for cell, title in zip(table.rows[0].cells, ITEM_HEADERS):
        cell.text = title

    for item in bill.items:
        cells = table.add_row().cells
        cells[0].text = format_quantity(item.quantity)
        cells[1].text = item.item_name
        cells[2].text = format_currency(item.unit_price, currency_symbol)
        cells[3].text = format_currency(item.line_total, currency_symbol)

    _summary_row(doc, "Subtotal:", format_currency(bill.subtotal, currency_symbol))
    if bill.tax_amount > 0:
        _summary_row(doc, "Tax:", format_currency(bill.tax_amount, currency_symbol))
    _summary_row(doc, "TOTAL:", format_currency(bill.total, currency_symbol), bold=True)

    if with_barcode:
        doc.add_picture(bill_barcode_png(bill.bill_number), width=Inches(2.0))

    footer = doc.add_paragraph("Thank you for your business!")
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

    return doc


def render_bill_document(bill: Bill, **kwargs) -> bytes:
    """Same as build_bill_document, serialised to .docx bytes for download."""
    doc = build_bill_document(bill, **kwargs)
    buffer = io.BytesIO()
    doc.save(buffer)
    logger.info("Rendered invoice document for %s", bill.bill_number)
    return buffer.getvalue()
