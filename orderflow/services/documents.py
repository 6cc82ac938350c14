from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from orderflow.domain.orders.totals import OrderTotals
from orderflow.domain.pricing.money import format_money, from_cents

UNKNOWN_ITEM_NAME = "Unknown Item"


@dataclass(frozen=True)
class DocumentLine:
    name: str
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass(frozen=True)
class OrderDocument:
    order_id: str
    status: str
    delivery_date: date
    notes: str | None
    client_name: str
    client_address: str
    client_vat_id: str
    client_phone: str
    client_email: str
    lines: list[DocumentLine]
    totals: OrderTotals

    @property
    def filename(self) -> str:
        return f"order-{self.order_id[-8:]}.pdf"


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_order_document(document: OrderDocument, currency: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=36,
        rightMargin=36,
        topMargin=48,
        bottomMargin=36,
        title=f"Order {document.order_id[-8:]}",
    )
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph(f"<b>Order #{_escape(document.order_id[-8:])}</b>", styles["Title"]))
    story.append(
        Paragraph(
            f"Delivery date: {document.delivery_date.isoformat()} &nbsp;&nbsp; Status: {_escape(document.status)}",
            styles["Normal"],
        )
    )
    story.append(Spacer(1, 12))

    story.append(Paragraph("<b>Client</b>", styles["Heading3"]))
    for value in (
        document.client_name,
        document.client_address,
        f"VAT: {document.client_vat_id}" if document.client_vat_id else "",
        document.client_phone,
        document.client_email,
    ):
        if value:
            story.append(Paragraph(_escape(value), styles["Normal"]))
    story.append(Spacer(1, 12))

    headers = ["Item", "Quantity", f"Unit price ({currency})", f"Total ({currency})"]
    rows = [
        [
            line.name,
            str(line.quantity),
            format_money(from_cents(line.unit_price_cents)),
            format_money(from_cents(line.line_total_cents)),
        ]
        for line in document.lines
    ]
    table = Table([headers] + rows, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2563EB")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 12))

    discount = document.totals.discount
    summary = [
        ["Subtotal", f"{format_money(discount.subtotal)} {currency}"],
        [f"Discount ({discount.discount_percentage}%)", f"-{format_money(discount.discount_amount)} {currency}"],
        ["Total", f"{format_money(discount.final_total)} {currency}"],
    ]
    summary_table = Table(summary, hAlign="RIGHT")
    summary_table.setStyle(
        TableStyle(
            [
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (0, -1), (-1, -1), 0.75, colors.black),
            ]
        )
    )
    story.append(summary_table)

    if document.notes:
        story.append(Spacer(1, 18))
        story.append(Paragraph("<b>Notes</b>", styles["Heading3"]))
        story.append(Paragraph(_escape(document.notes), styles["Normal"]))

    doc.build(story)
    return buffer.getvalue()
