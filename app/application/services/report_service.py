"""
Report service — renders the catalog to PDF (reportlab) and XLSX (pandas/openpyxl)
and stores the files on the public disk.
"""

from datetime import datetime
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional, Sequence
from xml.sax.saxutils import escape

import pandas as pd
import pytz
import structlog
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.config import get_settings
from app.core.exceptions import ReportGenerationException
from app.domain.models.product import Product
from app.domain.repositories.product_repository import ProductRepository
from app.infrastructure.storage import StorageBackend
from app.application.services.image_service import random_alnum
from app.application.services.product_service import get_products_for_export, status_label

settings = get_settings()
logger = structlog.get_logger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

EXCEL_HEADERS = ["ID", "Name", "Slug", "Price", "Stock", "Status", "Active", "Created At"]
PDF_HEADERS = ["#", "Name", "Slug", "Description", "Price", "Stock", "Status", "Active", "Created At"]
DESCRIPTION_LIMIT = 60

Renderer = Callable[..., bytes]


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a stored timestamp to the server timezone (naive values are UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(tz)


def _format(value: Optional[datetime], fmt: str) -> str:
    local = to_local(value)
    return local.strftime(fmt) if local else ""


def _truncate(text: Optional[str], limit: int = DESCRIPTION_LIMIT) -> str:
    text = text or ""
    return text if len(text) <= limit else text[: limit - 3].rstrip() + "..."


def format_price(price: Any) -> str:
    return f"${price or 0:,.2f}"


# PDF

def render_products_pdf(
    products: Sequence[Product],
    generated_at: datetime,
    title: str = "Products Report",
    orientation: str = "portrait",
) -> bytes:
    """Render the product table as an A4 PDF document."""
    pagesize = landscape(A4) if orientation == "landscape" else A4
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        title=title,
        leftMargin=1 * cm,
        rightMargin=1 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"].clone("cell", fontSize=7, leading=9)

    rows: List[List[Any]] = [PDF_HEADERS]
    for index, product in enumerate(products, start=1):
        rows.append([
            str(index),
            Paragraph(escape(product.name or ""), cell_style),
            Paragraph(escape(product.slug or ""), cell_style),
            Paragraph(escape(_truncate(product.description)), cell_style),
            format_price(product.price),
            str(product.stock),
            status_label(product),
            "Yes" if product.active else "No",
            _format(product.created_at, "%d/%m/%Y %H:%M"),
        ])

    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#d1d5db")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f9fafb")]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))

    story = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated at {generated_at:%d/%m/%Y %H:%M}", styles["Normal"]),
        Spacer(1, 0.5 * cm),
        table,
    ]
    doc.build(story)
    return buffer.getvalue()


def export_path(extension: str, now: datetime) -> str:
    """exports/products_YYYYMMDD_HHMMSS_<8 alnum>.<ext>; never reused."""
    return f"{settings.EXPORT_PREFIX}/products_{now:%Y%m%d_%H%M%S}_{random_alnum(8)}.{extension}"


def generate_pdf(storage: StorageBackend, renderer: Renderer, context: Dict[str, Any], path: str) -> Dict[str, str]:
    """
    Render a PDF and store it on ``storage`` at ``path``.

    Raises ReportGenerationException when rendering yields no bytes or the
    file cannot be found after writing; nothing is written in the first case.
    """
    content = renderer(**context)
    if not content:
        raise ReportGenerationException("PDF rendering produced no output", {"path": path})

    storage.put(path, content, "application/pdf")
    if not storage.exists(path):
        raise ReportGenerationException("PDF file was not written", {"path": path})

    logger.info("PDF generated", path=path, size=len(content))
    return {"path": path, "url": storage.url(path)}


def export_products_pdf(
    repo: ProductRepository,
    storage: StorageBackend,
    renderer: Renderer = render_products_pdf,
) -> Dict[str, str]:
    now = datetime.now(tz)
    context = {"products": get_products_for_export(repo), "generated_at": now}
    path = export_path("pdf", now)
    return generate_pdf(storage, renderer, context, path)


# Excel

def build_products_frame(products: Sequence[Product]) -> pd.DataFrame:
    """One row per product; an empty catalog yields only the header row."""
    records = [
        {
            "ID": product.id,
            "Name": product.name,
            "Slug": product.slug,
            "Price": float(product.price or 0),
            "Stock": product.stock,
            "Status": status_label(product),
            "Active": "Yes" if product.active else "No",
            "Created At": _format(product.created_at, "%Y-%m-%d %H:%M:%S"),
        }
        for product in products
    ]
    return pd.DataFrame(records, columns=EXCEL_HEADERS)


def render_products_excel(products: Sequence[Product]) -> bytes:
    frame = build_products_frame(products)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name="Products")
        sheet = writer.sheets["Products"]
        for cell in sheet[1]:
            cell.font = Font(bold=True)
    return buffer.getvalue()


def export_products_excel(repo: ProductRepository, storage: StorageBackend) -> Dict[str, str]:
    now = datetime.now(tz)
    path = export_path("xlsx", now)
    content = render_products_excel(get_products_for_export(repo))
    storage.put(path, content, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    logger.info("Excel export generated", path=path, size=len(content))
    return {"path": path, "url": storage.url(path)}
