"""
Order Receipt PDF Generator
Generates a branded one-page receipt for an order
"""

import io
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Order

logger = logging.getLogger(__name__)


def _money(amount) -> str:
    # Base-14 fonts have no Naira glyph
    return f"NGN {float(amount or 0):,.2f}"


class ReceiptPDFGenerator:
    """Generate order receipts"""

    def __init__(self, order: Order):
        self.order = order

        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        # Brand color (indigo)
        self.brand_color = colors.HexColor("#4338ca")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating receipt PDF for order {self.order.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Receipt - Order #{self.order.id}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ReceiptTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
            spaceAfter=6,
        )
        muted_style = ParagraphStyle(
            "ReceiptMuted",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#64748b"),
        )
        heading_style = ParagraphStyle(
            "ReceiptHeading",
            parent=styles["Heading2"],
            fontSize=13,
            textColor=self.dark_gray,
            spaceBefore=16,
            spaceAfter=8,
        )

        order = self.order
        style = order.style or {}
        material = order.material or {}
        created = order.created_at.strftime("%d %b %Y, %H:%M") if order.created_at else "-"

        story = [
            Paragraph("SyberTailor", title_style),
            Paragraph(f"Receipt for order #{order.id} - {created} UTC", muted_style),
            Spacer(1, 12),
            Paragraph("Customer", heading_style),
            self._key_value_table(
                [
                    ("Name", order.customer_name or "-"),
                    ("E-mail", order.customer_email or "-"),
                    ("Order type", order.order_type),
                ]
            ),
            Paragraph("Items", heading_style),
        ]

        yards = float(style.get("yardsRequired") or 0)
        per_yard = float(material.get("pricePerYard") or 0)
        items = [
            ["Item", "Detail", "Amount"],
            ["Style", str(style.get("title") or "-"), _money(style.get("price"))],
            [
                "Fabric",
                f"{material.get('name') or '-'} ({yards:g} yd x {_money(per_yard)})",
                _money(per_yard * yards),
            ],
            ["", "Total", _money(order.total_price)],
        ]
        items_table = Table(
            items,
            colWidths=[self.content_width * 0.2, self.content_width * 0.55, self.content_width * 0.25],
        )
        items_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                    ("LINEBELOW", (0, 0), (-1, -2), 0.5, colors.HexColor("#e2e8f0")),
                    ("BACKGROUND", (0, -1), (-1, -1), self.light_gray),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(items_table)

        story.append(Paragraph("Status", heading_style))
        status_rows = [
            ("Order status", order.status),
            ("Payment status", order.payment_status),
        ]
        if order.payment_reference:
            status_rows.append(("Payment reference", order.payment_reference))
        if order.expected_delivery_date:
            status_rows.append(
                ("Expected delivery", order.expected_delivery_date.strftime("%d %b %Y"))
            )
        story.append(self._key_value_table(status_rows))

        story.append(Spacer(1, 24))
        story.append(Paragraph("Thank you for choosing SyberTailor.", muted_style))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Receipt PDF generated ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _key_value_table(self, rows: list) -> Table:
        table = Table(
            [[label, str(value)] for label, value in rows],
            colWidths=[self.content_width * 0.3, self.content_width * 0.7],
        )
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table


def generate_order_receipt(order: Order) -> bytes:
    return ReceiptPDFGenerator(order).generate()
