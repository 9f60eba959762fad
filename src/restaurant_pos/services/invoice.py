"""
Счёт по заказу: проекция заказа (build_invoice) и печатная форма в PDF
(render_invoice_pdf). Ни то ни другое ничего не пишет в БД.
"""
import io
import logging
from xml.sax.saxutils import escape
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from restaurant_pos.config import settings
from restaurant_pos.exceptions import PresentationError
from restaurant_pos.models import Order
from restaurant_pos.schemas.invoice import Invoice, InvoiceLine
from restaurant_pos.schemas.settings import StoreSettingsRead

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return (amount * Decimal(percent) / Decimal(100)).quantize(CENT, ROUND_HALF_UP)


def build_invoice(order: Order, store: Optional[StoreSettingsRead] = None) -> Invoice:
    """
    Собирает счёт из заказа. Сохранённая сумма заказа не меняется: скидка
    заказа вычитается только здесь, налог и сервисный сбор начисляются на
    сумму после скидки по текущим настройкам заведения.
    """
    store = store or StoreSettingsRead(restaurant_name=settings.RESTAURANT_NAME)

    lines = [
        InvoiceLine(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.price,
            line_total=(item.price * item.quantity).quantize(CENT, ROUND_HALF_UP),
            notes=item.notes,
        )
        for item in order.items
    ]

    subtotal = Decimal(order.total)
    discount_amount = _percent_of(subtotal, order.discount_percent)
    total = subtotal - discount_amount
    tax_amount = _percent_of(total, store.tax_rate)
    service_amount = _percent_of(total, store.service_charge)

    return Invoice(
        order_id=order.id,
        order_number=order.order_number,
        created_at=order.created_at,
        order_type=order.order_type.value if hasattr(order.order_type, "value") else str(order.order_type),
        table_name=order.table_name,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        lines=lines,
        subtotal=subtotal,
        discount_percent=order.discount_percent,
        discount_amount=discount_amount,
        total=total,
        tax_rate=store.tax_rate,
        tax_amount=tax_amount,
        service_charge_rate=store.service_charge,
        service_charge_amount=service_amount,
        grand_total=total + tax_amount + service_amount,
        restaurant_name=store.restaurant_name or settings.RESTAURANT_NAME,
        footer=store.receipt_footer,
        currency_symbol=settings.CURRENCY_SYMBOL,
    )


def _money(invoice: Invoice, amount: Decimal) -> str:
    return f"{invoice.currency_symbol}{amount:,.2f}"


def _invoice_story(invoice: Invoice) -> list:
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="InvoiceTitle",
            parent=styles["Title"],
            alignment=TA_CENTER,
            fontSize=16,
            spaceAfter=12,
        )
    )

    story = [Paragraph(escape(invoice.restaurant_name), styles["InvoiceTitle"])]
    story.append(Paragraph(f"Invoice {escape(invoice.order_number)}", styles["Heading3"]))
    story.append(Paragraph(f"Date: {invoice.created_at:%Y-%m-%d %H:%M}", styles["Normal"]))
    if invoice.table_name:
        story.append(Paragraph(f"Table: {escape(invoice.table_name)}", styles["Normal"]))
    else:
        story.append(Paragraph("Takeout", styles["Normal"]))
    if invoice.customer_name:
        story.append(Paragraph(f"Customer: {escape(invoice.customer_name)}", styles["Normal"]))
    if invoice.customer_phone:
        story.append(Paragraph(f"Phone: {escape(invoice.customer_phone)}", styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    rows = [["Item", "Qty", "Price", "Total"]]
    for line in invoice.lines:
        rows.append([line.name, str(line.quantity), _money(invoice, line.unit_price), _money(invoice, line.line_total)])

    rows.append(["Subtotal", "", "", _money(invoice, invoice.subtotal)])
    if invoice.discount_amount:
        rows.append([f"Discount ({invoice.discount_percent}%)", "", "", f"-{_money(invoice, invoice.discount_amount)}"])
    if invoice.tax_amount:
        rows.append([f"Tax ({invoice.tax_rate}%)", "", "", _money(invoice, invoice.tax_amount)])
    if invoice.service_charge_amount:
        rows.append(
            [f"Service charge ({invoice.service_charge_rate}%)", "", "", _money(invoice, invoice.service_charge_amount)]
        )
    rows.append(["Grand total", "", "", _money(invoice, invoice.grand_total)])

    first_total_row = len(invoice.lines) + 1
    lines_table = Table(rows, colWidths=[2.2 * inch, 0.5 * inch, 0.9 * inch, 0.9 * inch])
    lines_table.setStyle(
        TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
            ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
            ("LINEABOVE", (0, first_total_row), (-1, first_total_row), 0.5, colors.grey),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
        ])
    )
    story.append(lines_table)

    if invoice.footer:
        story.append(Spacer(1, 0.3 * inch))
        story.append(Paragraph(escape(invoice.footer), styles["Italic"]))
    return story


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """
    Печатная форма счёта. Любая ошибка вёрстки превращается в PresentationError:
    данные заказа при этом не затрагиваются.
    """
    output = io.BytesIO()
    try:
        doc = SimpleDocTemplate(
            output,
            pagesize=A5,
            leftMargin=0.5 * inch,
            rightMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
            title=f"Invoice {invoice.order_number}",
        )
        doc.build(_invoice_story(invoice))
        return output.getvalue()
    except Exception as e:
        logger.error("Invoice rendering failed for order %s: %s", invoice.order_number, e)
        raise PresentationError(
            f"Could not render invoice for order {invoice.order_number}: {e}",
            title="Invoice unavailable",
        ) from e
    finally:
        output.close()
