# workcenter/services/documents.py
"""
Документы по заказам: PDF наряда и выгрузка завершённых заказов (CSV / XLSX).

Только представление: цены и журнал не меняются. В документы для клиента
не попадают признаки ручной цены и история заказа.
"""
import csv
from decimal import Decimal
from io import BytesIO, StringIO
from typing import List, Sequence
from urllib.parse import quote

# ===== PDF =====
from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

# ===== XLSX =====
from openpyxl import Workbook

from workcenter.models.order import Order
from workcenter.services.attachments import current_version
from workcenter.utils.enums import STATUS_LABELS

EXPORT_HEADER = ["Order #", "Customer", "Created Date", "Finished Date", "Products", "Total"]


def content_disposition(pretty_filename_utf8: str, fallback_ascii: str) -> str:
    """
    Content-Disposition с ASCII-фолбэком и UTF-8 вариантом по RFC 5987.
    Заголовки должны быть latin-1, поэтому UTF-8 имя экранируем.
    """
    return "attachment; filename=\"{fallback}\"; filename*=UTF-8''{utf8}".format(
        fallback=fallback_ascii.replace('"', ''),
        utf8=quote(pretty_filename_utf8, safe="")
    )


def money(value) -> str:
    return f"${Decimal(str(value or 0)):.2f}"


def _fmt_dt(value, fmt: str = "%Y-%m-%d %H:%M") -> str:
    return value.strftime(fmt) if value else ""


# ---------- PDF ----------
def render_order_pdf(order: Order, brand: str) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=LETTER,
        leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36,
        title=f"Work Order {order.order_number}",
    )
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Wrap", parent=styles["Normal"], fontSize=9, leading=11))
    styles.add(ParagraphStyle(name="Section", parent=styles["Heading3"], spaceAfter=4))

    elems = [
        Paragraph(escape(brand), styles["Title"]),
        Paragraph("Work Order", styles["Heading2"]),
    ]

    # Шапка
    meta = [
        f"Order #: {escape(order.order_number)}",
        f"Status: {STATUS_LABELS.get(order.status, order.status)}",
        f"Created: {_fmt_dt(order.created_at)}",
    ]
    if order.finished_at:
        meta.append(f"Completed: {_fmt_dt(order.finished_at)}")
    elems += [Paragraph("<br/>".join(meta), styles["Normal"]), Spacer(1, 10)]

    # Клиент (снимок на момент заказа)
    customer = [f"Name: {escape(order.customer_name_snapshot or '')}"]
    if order.customer_phone_snapshot:
        customer.append(f"Phone: {escape(order.customer_phone_snapshot)}")
    if order.customer_email_snapshot:
        customer.append(f"Email: {escape(order.customer_email_snapshot)}")
    customer.append(f"Shipping Address: {escape(order.customer_shipping_address_snapshot or '')}")
    elems += [
        Paragraph("Customer", styles["Section"]),
        Paragraph("<br/>".join(customer), styles["Normal"]),
        Spacer(1, 10),
        Paragraph("Products / Charges", styles["Section"]),
    ]

    # Таблица: итоговая цена без пометок о ручной цене
    if not order.line_items:
        elems.append(Paragraph("No products added.", styles["Normal"]))
    else:
        data = [["Item", "Qty", "Unit", "Total"]]
        for li in order.line_items:
            data.append([
                Paragraph(escape(li.product_name_snapshot or ""), styles["Wrap"]),
                str(li.qty),
                money(li.unit_price_final),
                money(li.line_total),
            ])
        data.append(["", "", "Subtotal:", money(order.total)])
        data.append(["", "", "Total:", money(order.total)])

        table = Table(data, colWidths=[290, 50, 90, 110])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("GRID", (0, 0), (-1, -3), 0.5, colors.grey),
            ("LINEABOVE", (0, -2), (-1, -2), 2, colors.HexColor("#b00020")),
            ("FONTNAME", (2, -2), (-1, -1), "Helvetica-Bold"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
        ]))
        elems.append(table)

    # Ссылки: только активные вложения и их текущие версии
    links = []
    for att in order.attachments:
        if att.is_archived:
            continue
        version = current_version(att)
        if version is not None:
            links.append(f"{escape(att.label)}: {escape(version.url)}")
    if links:
        elems += [
            Spacer(1, 10),
            Paragraph("Reference Links", styles["Section"]),
            Paragraph("<br/>".join(links), styles["Wrap"]),
        ]

    doc.build(elems)
    return buf.getvalue()


# ---------- Выгрузка завершённых ----------
def _export_row(order: Order) -> List:
    products = " | ".join(
        f"{li.qty}x {li.product_name_snapshot or 'Item'}" for li in order.line_items
    )
    return [
        order.order_number,
        order.customer_name_snapshot or "",
        _fmt_dt(order.created_at, "%Y-%m-%d"),
        _fmt_dt(order.finished_at, "%Y-%m-%d"),
        products,
        order.total,
    ]


def completed_orders_csv(orders: Sequence[Order]) -> str:
    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for o in orders:
        row = _export_row(o)
        row[-1] = f"{row[-1]:.2f}"
        writer.writerow(row)
    return out.getvalue()


def completed_orders_xlsx(orders: Sequence[Order]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Completed Orders"

    ws.append(EXPORT_HEADER)
    for o in orders:
        row = _export_row(o)
        row[-1] = float(row[-1])
        ws.append(row)

    # ширина колонок
    ws.column_dimensions["A"].width = 12  # Order #
    ws.column_dimensions["B"].width = 28  # Customer
    ws.column_dimensions["C"].width = 14
    ws.column_dimensions["D"].width = 14
    ws.column_dimensions["E"].width = 60  # Products
    ws.column_dimensions["F"].width = 12

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()
