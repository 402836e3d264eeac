"""
Markdown and PDF renderings of a stored blueprint.
"""

import json
import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

FEATURE_PHASES = (("mvp", "MVP (Phase 1)"), ("phase2", "Phase 2"), ("phase3", "Phase 3"))
TECH_STACK_KEYS = ("frontend", "backend", "database", "auth", "hosting")
ROADMAP_MONTHS = (("month1", "Month 1"), ("month2", "Month 2"), ("month3", "Month 3"))
FOOTER_LABEL = "Generated by AI Blueprint Generator"

ACCENT = (0 / 255, 102 / 255, 204 / 255)
MUTED = (128 / 255, 128 / 255, 128 / 255)

# Built-in CID font; used for text outside the WinAnsi range of the standard fonts.
CJK_FONT = "STSong-Light"
pdfmetrics.registerFont(UnicodeCIDFont(CJK_FONT))


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def export_filename(project_name: Optional[str], extension: str) -> str:
    base = re.sub(r"\s+", "-", str(project_name or "").strip())
    # Header-safe: ASCII letters, digits, dash, underscore and dot only.
    base = "".join(ch if ch.isascii() and (ch.isalnum() or ch in "-_.") else "_" for ch in base)
    return f"{base or 'project'}-blueprint.{extension}"


def render_markdown(blueprint: Dict[str, Any]) -> str:
    """Render the blueprint document as Markdown."""
    features = _as_dict(blueprint.get("features"))
    tech_stack = _as_dict(blueprint.get("techStack"))
    roadmap = _as_dict(blueprint.get("roadmap"))

    def bullets(items: Any) -> str:
        return "\n".join(f"- {item}" for item in _as_list(items))

    lines = [
        f"# {blueprint.get('projectName', '')}",
        "",
        "## Original Idea",
        str(blueprint.get("idea", "")),
        "",
        "## Features",
    ]
    for key, label in FEATURE_PHASES:
        lines += ["", f"### {label}", bullets(features.get(key))]

    lines += ["", "## Tech Stack"]
    for key in TECH_STACK_KEYS:
        lines.append(f"- **{key.capitalize()}:** {tech_stack.get(key, '')}")

    lines += [
        "",
        "## Database Schema",
        json.dumps(blueprint.get("database"), indent=2, ensure_ascii=False),
        "",
        "## Development Roadmap",
    ]
    for key, label in ROADMAP_MONTHS:
        lines += ["", f"### {label}", bullets(roadmap.get(key))]

    return "\n".join(lines) + "\n"


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so every footer can show the page total."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_pages: List[Dict[str, Any]] = []

    def showPage(self):
        self._saved_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_pages)
        for state in self._saved_pages:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _height = self._pagesize
        self.setFont("Helvetica-Oblique", 8)
        self.setFillColorRGB(*MUTED)
        self.drawCentredString(width / 2, 10 * mm, f"Page {self._pageNumber} of {total} | {FOOTER_LABEL}")


def _font_for(text: str, font: str) -> str:
    try:
        text.encode("cp1252")
        return font
    except UnicodeEncodeError:
        # Astral-plane characters (emoji) are not covered by the CID font either.
        if any(ord(ch) > 0xFFFF for ch in text):
            return font
        return CJK_FONT


def _wrap_lines(text: str, font: str, size: float, width: float) -> List[str]:
    """Split on whitespace, then break any still-too-wide line by character."""
    lines: List[str] = []
    for line in simpleSplit(text, font, size, width) or [""]:
        while len(line) > 1 and pdfmetrics.stringWidth(line, font, size) > width:
            cut = len(line) - 1
            while cut > 1 and pdfmetrics.stringWidth(line[:cut], font, size) > width:
                cut -= 1
            lines.append(line[:cut])
            line = line[cut:]
        lines.append(line)
    return lines


class _PdfLayout:
    """Top-down cursor over a canvas; starts a new page when content would pass the bottom margin."""

    margin = 20 * mm
    line_height = 7 * mm

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.page_width, self.page_height = A4
        self.max_width = self.page_width - 2 * self.margin
        self.y = self.page_height - self.margin

    def check_new_page(self, space_needed: float) -> None:
        if self.y - space_needed < self.margin:
            self.pdf.showPage()
            self.y = self.page_height - self.margin

    def draw(self, x: float, text: str, font: str, size: float) -> None:
        self.pdf.setFont(_font_for(text, font), size)
        self.pdf.drawString(x, self.y, text)

    def wrapped(
        self,
        text: str,
        font: str,
        size: float,
        *,
        indent: float = 0,
        step: Optional[float] = None,
    ) -> None:
        step = step or self.line_height
        font = _font_for(text, font)
        for index, line in enumerate(_wrap_lines(text, font, size, self.max_width - indent)):
            if index:
                self.check_new_page(step)
            self.pdf.setFont(font, size)
            self.pdf.drawString(self.margin + indent, self.y, line)
            self.y -= step

    def text(self, text: str, size: float, bold: bool = False) -> None:
        self.pdf.setFillColorRGB(0, 0, 0)
        self.check_new_page(self.line_height)
        self.wrapped(str(text), "Helvetica-Bold" if bold else "Helvetica", size)

    def heading(self, title: str) -> None:
        self.check_new_page(30 * mm)
        self.pdf.setFillColorRGB(*ACCENT)
        self.draw(self.margin, title, "Helvetica-Bold", 14)
        self.y -= 8 * mm

    def subheading(self, title: str) -> None:
        self.check_new_page(15 * mm)
        self.pdf.setFillColorRGB(0, 0, 0)
        self.draw(self.margin, title, "Helvetica-Bold", 11)
        self.y -= 6 * mm

    def labelled(self, label: str, value: str, size: float, indent: float) -> None:
        """Bold label in the left column, value wrapped within the right column."""
        self.check_new_page(6 * mm)
        self.pdf.setFillColorRGB(0, 0, 0)
        self.draw(self.margin, label, "Helvetica-Bold", size)
        self.wrapped(value, "Helvetica", size, indent=indent, step=6 * mm)

    def bullets(self, items: Any) -> None:
        for item in _as_list(items):
            self.text(f"• {item}", 9)

    def gap(self, amount: float) -> None:
        self.y -= amount


def _format_created(value: Any) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(str(value)).strftime("%Y-%m-%d")
    except ValueError:
        return str(value)


def render_pdf(blueprint: Dict[str, Any]) -> bytes:
    """Render the blueprint document as a paginated A4 PDF."""
    buffer = BytesIO()
    pdf = _NumberedCanvas(buffer, pagesize=A4)
    project_name = str(blueprint.get("projectName", ""))
    pdf.setTitle(f"{project_name} Blueprint")
    layout = _PdfLayout(pdf)

    # Title block
    pdf.setFillColorRGB(*ACCENT)
    layout.wrapped(project_name, "Helvetica-Bold", 22, step=9 * mm)
    layout.gap(-3 * mm)
    pdf.setStrokeColorRGB(*ACCENT)
    pdf.line(layout.margin, layout.y, layout.page_width - layout.margin, layout.y)
    layout.gap(10 * mm)

    pdf.setFillColorRGB(0, 0, 0)
    layout.draw(layout.margin, f"Created: {_format_created(blueprint.get('createdAt'))}", "Helvetica-Oblique", 9)
    layout.gap(12 * mm)

    layout.heading("Original Idea")
    layout.text(str(blueprint.get("idea", "")), 10)
    layout.gap(8 * mm)

    features = _as_dict(blueprint.get("features"))
    layout.heading("Features")
    for key, label in FEATURE_PHASES:
        layout.subheading(label)
        layout.bullets(features.get(key))
        layout.gap(4 * mm)
    layout.gap(4 * mm)

    tech_stack = _as_dict(blueprint.get("techStack"))
    layout.heading("Tech Stack")
    for key in TECH_STACK_KEYS:
        layout.labelled(f"{key.capitalize()}:", str(tech_stack.get(key, "")), 10, indent=35 * mm)
    layout.gap(8 * mm)

    tables = _as_list(_as_dict(blueprint.get("database")).get("tables"))
    layout.heading("Database Schema")
    for table in tables:
        table = _as_dict(table)
        layout.check_new_page(20 * mm)
        pdf.setFillColorRGB(0, 0, 0)
        layout.draw(layout.margin, f"Table: {table.get('name', '')}", "Helvetica-Bold", 9)
        layout.gap(6 * mm)
        fields = ", ".join(str(field) for field in _as_list(table.get("fields")))
        layout.text(f"Fields: {fields}", 9)
        layout.text(f"Relations: {table.get('relations', '')}", 9)
        layout.gap(4 * mm)
    layout.gap(8 * mm)

    roadmap = _as_dict(blueprint.get("roadmap"))
    layout.heading("Development Roadmap")
    for key, label in ROADMAP_MONTHS:
        layout.subheading(label)
        layout.bullets(roadmap.get(key))
        layout.gap(4 * mm)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
