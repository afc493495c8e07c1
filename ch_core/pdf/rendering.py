# ch_core/pdf/rendering.py
"""
Form-to-PDF rendering with reportlab platypus.

Builders describe a document as a title plus sections of label/value rows,
free text and tables; `render_with_timeout` lays it out on A4 and gives up
after PDF_RENDER_TIMEOUT_SECONDS.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from datetime import date, datetime, timezone as dt_timezone
from io import BytesIO
from typing import Any, Iterable, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ch_core.common.logging import get_logger

log = get_logger(__name__)

# 20px page margins, in points.
PAGE_MARGIN = 15
NOT_SPECIFIED = "Not specified"

HEADER_BG = colors.HexColor("#f3f4f6")
GRID = colors.HexColor("#d1d5db")


class RenderError(Exception):
    """Rendering failed or timed out. str(exc) is reported to the caller as details."""


@dataclass
class Section:
    heading: str
    fields: List[Tuple[str, Any]] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    # First row is the header.
    table: Optional[List[Sequence[Any]]] = None


@dataclass
class PdfDocument:
    title: str
    subtitle: str = ""
    sections: List[Section] = field(default_factory=list)
    notice: str = ""


# ----------------------------
# Value formatting
# ----------------------------
def fmt_value(value: Any) -> str:
    if value is None or value == "":
        return NOT_SPECIFIED
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(fmt_value(v) for v in value) if value else "None"
    if isinstance(value, dict):
        return "; ".join(f"{k}: {fmt_value(v)}" for k, v in value.items())
    return str(value)


def fmt_date(value: Any) -> str:
    """en-GB date from epoch milliseconds, ISO strings or date objects."""
    if value is None or value == "":
        return NOT_SPECIFIED
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc).strftime("%d/%m/%Y")
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")

    text = str(value)
    parsed = parse_datetime(text) or parse_date(text)
    if parsed is None:
        return text
    return parsed.strftime("%d/%m/%Y")


def generated_stamp(now: datetime | None = None) -> str:
    now = timezone.localtime(now or timezone.now())
    return f"{now.strftime('%d/%m/%Y')} at {now.strftime('%H:%M')}"


def rows(data: dict, fields: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """(label, key) pairs -> (label, formatted value) rows."""
    return [(label, fmt_value(data.get(key))) for label, key in fields]


# ----------------------------
# Layout
# ----------------------------
def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": base["Title"],
        "subtitle": ParagraphStyle("Subtitle", parent=base["Normal"], alignment=1, textColor=colors.grey),
        "heading": base["Heading2"],
        "body": base["BodyText"],
        "label": ParagraphStyle("Label", parent=base["BodyText"], fontName="Helvetica-Bold"),
        "notice": ParagraphStyle("Notice", parent=base["BodyText"], textColor=colors.HexColor("#991b1b")),
        "footer": ParagraphStyle("Footer", parent=base["Normal"], fontSize=8, textColor=colors.grey, alignment=1),
    }


def _p(text: Any, style) -> Paragraph:
    return Paragraph(escape(str(text)).replace("\n", "<br/>"), style)


def _fields_table(fields: List[Tuple[str, Any]], styles: dict, width: float) -> Table:
    data = [[_p(label, styles["label"]), _p(value, styles["body"])] for label, value in fields]
    table = Table(data, colWidths=[width * 0.35, width * 0.65])
    table.setStyle(
        TableStyle(
            [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW", (0, 0), (-1, -1), 0.25, GRID),
            ]
        )
    )
    return table


def _grid_table(rows_: List[Sequence[Any]], styles: dict, width: float) -> Table:
    data = [[_p(cell, styles["label"] if i == 0 else styles["body"]) for cell in row] for i, row in enumerate(rows_)]
    cols = max(len(r) for r in rows_)
    table = Table(data, colWidths=[width / cols] * cols, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                ("GRID", (0, 0), (-1, -1), 0.5, GRID),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def render_document(doc: PdfDocument) -> bytes:
    buffer = BytesIO()
    template = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=doc.title,
    )
    width = A4[0] - 2 * PAGE_MARGIN
    styles = _styles()

    story: list = [_p(doc.title, styles["title"])]
    if doc.subtitle:
        story.append(_p(doc.subtitle, styles["subtitle"]))
    story.append(Spacer(1, 12))

    for section in doc.sections:
        story.append(_p(section.heading, styles["heading"]))
        if section.fields:
            story.append(_fields_table(section.fields, styles, width))
        for text in section.paragraphs:
            story.append(_p(text, styles["body"]))
        if section.table:
            story.append(Spacer(1, 4))
            story.append(_grid_table(section.table, styles, width))
        story.append(Spacer(1, 10))

    if doc.notice:
        story.append(_p(doc.notice, styles["notice"]))
        story.append(Spacer(1, 10))

    story.append(_p(f"Document generated on {generated_stamp()}", styles["footer"]))
    template.build(story)
    return buffer.getvalue()


def render_with_timeout(doc: PdfDocument, *, timeout: float | None = None) -> bytes:
    timeout = settings.PDF_RENDER_TIMEOUT_SECONDS if timeout is None else timeout
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(render_document, doc)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout:
        log.warning("PDF render of {!r} exceeded {}s", doc.title, timeout)
        raise RenderError(f"Rendering timed out after {timeout} seconds") from None
    except Exception as exc:
        raise RenderError(str(exc) or exc.__class__.__name__) from exc
    finally:
        executor.shutdown(wait=False)
