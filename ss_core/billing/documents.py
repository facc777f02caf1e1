# ss_core/billing/documents.py
"""
Invoice PDF rendering. Read-only: never touches invoice state.
"""
import io
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ss_core.billing.models import Invoice

logger = logging.getLogger(__name__)

HEADER_COLOR = colors.HexColor("#1E40AF")
LIGHT_GRAY = colors.HexColor("#F3F4F6")


def _fmt_money(value) -> str:
    return f"{value:,.2f}"


def invoice_filename(invoice: Invoice) -> str:
    return f"{invoice.invoice_number or invoice.id}.pdf"


def render_invoice_pdf(invoice: Invoice) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=f"Invoice {invoice.invoice_number or invoice.id}",
    )
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph(f"Invoice {invoice.invoice_number or '(draft)'}", styles["Title"]))
    elements.append(Paragraph(f"Status: {invoice.status}", styles["Normal"]))
    elements.append(Paragraph(f"Tenant: {invoice.tenant.full_name} ({invoice.tenant.document})", styles["Normal"]))
    if invoice.contract_id:
        elements.append(Paragraph(f"Contract: {invoice.contract_id}", styles["Normal"]))
    if invoice.issue_date:
        elements.append(Paragraph(f"Issue date: {invoice.issue_date.isoformat()}", styles["Normal"]))
    if invoice.due_date:
        elements.append(Paragraph(f"Due date: {invoice.due_date.isoformat()}", styles["Normal"]))
    elements.append(Spacer(1, 0.6 * cm))

    rows = [["Description", "Qty", "Unit price", "Total"]]
    for item in invoice.items.all().order_by("created_at"):
        rows.append([item.description, str(item.quantity), _fmt_money(item.unit_price), _fmt_money(item.total_amount)])
    rows.append(["", "", "Total", _fmt_money(invoice.total_amount)])

    table = Table(rows, colWidths=[8.5 * cm, 2 * cm, 3 * cm, 3.5 * cm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -2), [colors.white, LIGHT_GRAY]),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (0, -1), (-1, -1), 0.75, colors.black),
            ]
        )
    )
    elements.append(table)

    if invoice.void_reason:
        elements.append(Spacer(1, 0.6 * cm))
        elements.append(Paragraph(f"VOID: {invoice.void_reason}", styles["Normal"]))

    doc.build(elements)
    pdf = buffer.getvalue()
    buffer.close()

    logger.info("Rendered invoice %s PDF (%s bytes)", invoice.id, len(pdf))
    return pdf
