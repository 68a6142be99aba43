"""PDF report rendering.

:func:`build_report` lays out a plant analysis as a PDF with ReportLab's
platypus engine:

- page 1: the title, today's date, and the analysis text
- page 2 (only when an image is supplied): the image, scaled to fit the
  configured box with its aspect ratio preserved, centered on the page

Layout is left entirely to ReportLab; this module only assembles flowables.
"""

from __future__ import annotations

import io
import logging
from datetime import date
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    Image as RLImage,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from plantlens.core import data_uri
from plantlens.core.errors import StorageError
from plantlens.core.scratch import discard

logger = logging.getLogger(__name__)

REPORT_TITLE = "Plant Analysis Report"

# Frame padding ReportLab reserves inside SimpleDocTemplate's single frame,
# plus a little slack so the image table never overflows the page.
_FRAME_SLACK = 24


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle", parent=base["Title"], fontSize=24, leading=29, alignment=TA_CENTER
        ),
        "date": ParagraphStyle("ReportDate", parent=base["Normal"], fontSize=14, leading=17),
        "body": ParagraphStyle(
            "ReportBody", parent=base["Normal"], fontSize=12, leading=15, alignment=TA_LEFT
        ),
    }


def format_report_date(day: date) -> str:
    """Format *day* as ``M/D/YYYY``."""
    return f"{day.month}/{day.day}/{day.year}"


def _text_to_markup(text: str) -> str:
    # Paragraph parses a mini-markup language; the analysis is plain text.
    return escape(text).replace("\r\n", "\n").replace("\n", "<br/>")


def _image_page(image_bytes: bytes, doc: SimpleDocTemplate, box: tuple[int, int]) -> list:
    box_width = min(box[0], doc.width - _FRAME_SLACK)
    box_height = min(box[1], doc.height - _FRAME_SLACK)
    picture = RLImage(
        io.BytesIO(image_bytes), width=box_width, height=box_height, kind="proportional"
    )
    picture.hAlign = "CENTER"

    holder = Table(
        [[picture]],
        colWidths=[doc.width - _FRAME_SLACK],
        rowHeights=[doc.height - _FRAME_SLACK],
    )
    holder.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
            ]
        )
    )
    return [PageBreak(), holder]


def build_report(
    path: Path,
    result: str,
    image: bytes | None = None,
    *,
    image_box: tuple[int, int] = (500, 400),
    today: date | None = None,
) -> Path:
    """Render an analysis into a PDF file at *path*.

    Args:
        path: Destination file.  Its parent directory must exist.
        result: Analysis text; newlines are kept as line breaks.
        image: Optional raw bytes of the analysed image.
        image_box: Width and height in points the image is fit into.
        today: Date printed under the title; defaults to today.

    Returns:
        *path*, for chaining.

    Raises:
        ValidationError: If *image* is not a decodable picture.
        StorageError: If the file cannot be written.  Any partially
            written file is removed before the error propagates.
    """
    if image is not None:
        data_uri.check_image(image)

    styles = _styles()
    doc = SimpleDocTemplate(str(path), pagesize=LETTER, title=REPORT_TITLE)

    story: list = [
        Paragraph(REPORT_TITLE, styles["title"]),
        Spacer(1, 14),
        Paragraph(f"Date: {format_report_date(today or date.today())}", styles["date"]),
        Spacer(1, 14),
        Paragraph(_text_to_markup(result), styles["body"]),
    ]
    if image is not None:
        story.extend(_image_page(image, doc, image_box))

    try:
        doc.build(story)
    except OSError as exc:
        discard(path)
        logger.error("Error writing PDF report %s: %s", path, exc)
        raise StorageError("An error occurred while generating the PDF report.") from exc
    except Exception:
        discard(path)
        raise

    logger.info("Wrote PDF report %s (%d bytes).", path.name, path.stat().st_size)
    return path
