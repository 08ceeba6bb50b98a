"""
Invoice PDF Generator
Renders a single-session invoice with the VAT split of its inclusive amount
"""

import io
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def split_vat(total, vat_rate):
    """Return (amount excluding VAT, VAT) for a VAT-inclusive total"""
    total = Decimal(str(total)).quantize(CENT, rounding=ROUND_HALF_UP)
    rate = Decimal(str(vat_rate))
    excluding = (total / (1 + rate)).quantize(CENT, rounding=ROUND_HALF_UP)
    return excluding, total - excluding


def invoice_filename(invoice, today=None):
    today = today or datetime.now()
    return f"invoice-{invoice.number()}-{today.strftime('%Y-%m-%d')}.pdf"


class InvoicePDFGenerator:
    """Generate the PDF attached to invoice emails"""

    def __init__(self, invoice):
        self.invoice = invoice
        self.client = invoice.client
        self.appointment = invoice.appointment

        config = current_app.config
        self.practitioner_name = config['PRACTITIONER_NAME']
        self.practitioner_email = config.get('PRACTITIONER_EMAIL') or ''
        self.vat_rate = config['VAT_RATE']
        self.currency = config['CURRENCY']

        self.margin = 0.75 * inch
        self.brand_color = colors.HexColor("#14b8a6")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def _money(self, value):
        return f"{value:.2f} {self.currency}"

    def _session_description(self):
        if self.invoice.description:
            return self.invoice.description
        if self.appointment:
            start = self.appointment.start_time
            return f"{self.appointment.describe_format()} of {start.strftime('%d/%m/%Y')} at {start.strftime('%H:%M')}"
        return "Therapy session"

    def generate(self):
        """Generate PDF and return bytes"""
        logger.info(f"Generating invoice PDF for invoice {self.invoice.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Invoice {self.invoice.number()}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "InvoiceTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
        )
        body_style = ParagraphStyle(
            "InvoiceBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            leading=14,
        )

        total = Decimal(str(self.invoice.amount))
        excluding_vat, vat = split_vat(total, self.vat_rate)
        vat_percent = f"{Decimal(str(self.vat_rate)) * 100:.0f}%"
        issued = (self.invoice.created_at or datetime.now()).strftime('%d/%m/%Y')

        story = [
            Paragraph("INVOICE", title_style),
            Paragraph(f"No: {self.invoice.number()}", body_style),
            Paragraph(f"Date: {issued}", body_style),
        ]
        if self.invoice.due_date:
            story.append(Paragraph(f"Due: {self.invoice.due_date.strftime('%d/%m/%Y')}", body_style))
        story.append(Spacer(1, 0.3 * inch))

        story.append(Paragraph(f"<b>{self.practitioner_name}</b>", body_style))
        if self.practitioner_email:
            story.append(Paragraph(self.practitioner_email, body_style))
        story.append(Spacer(1, 0.2 * inch))

        story.append(Paragraph("<b>BILL TO:</b>", body_style))
        story.append(Paragraph(self.client.get_full_name(), body_style))
        story.append(Paragraph(self.client.email, body_style))
        if self.client.phone_number:
            story.append(Paragraph(self.client.phone_number, body_style))
        story.append(Spacer(1, 0.3 * inch))

        lines = Table(
            [
                ["Description", "Qty", "Unit price excl. VAT", "VAT", "VAT amount", "Total"],
                [Paragraph(self._session_description(), body_style), "1", f"{excluding_vat:.2f}",
                 vat_percent, f"{vat:.2f}", f"{total:.2f}"],
            ],
            colWidths=[2.4 * inch, 0.5 * inch, 1.2 * inch, 0.6 * inch, 0.9 * inch, 0.9 * inch],
        )
        lines.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("GRID", (0, 0), (-1, -1), 0.5, self.light_gray),
        ]))
        story.append(lines)
        story.append(Spacer(1, 0.3 * inch))

        summary = Table(
            [
                ["Total excl. VAT:", self._money(excluding_vat)],
                ["Total VAT:", self._money(vat)],
                ["Total incl. VAT:", self._money(total)],
            ],
            colWidths=[1.6 * inch, 1.4 * inch],
            hAlign="RIGHT",
        )
        summary.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), self.light_gray),
            ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ]))
        story.append(summary)
        story.append(Spacer(1, 0.3 * inch))

        if self.invoice.is_paid() and self.invoice.paid_at:
            payment = f"Paid on {self.invoice.paid_at.strftime('%d/%m/%Y')}"
            if self.invoice.payment_method:
                payment += f" ({self.invoice.payment_method.replace('_', ' ').lower()})"
            story.append(Paragraph(payment, body_style))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes
