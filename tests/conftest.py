import io
from collections.abc import Callable
from pathlib import Path

import pytest
from docx import Document
from openpyxl import Workbook
from pptx import Presentation
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Lecture notes on linear algebra")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_docx_bytes() -> bytes:
    document = Document()
    document.add_paragraph("Chapter 1: Thermodynamics")
    document.add_paragraph("")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Entropy"
    table.rows[0].cells[1].text = "Enthalpy"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture()
def sample_xlsx_bytes() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Student", "Grade"])
    sheet.append(["Alice", 9.5])
    sheet.append([None, None])
    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


@pytest.fixture()
def sample_pptx_bytes() -> bytes:
    presentation = Presentation()
    slide = presentation.slides.add_slide(presentation.slide_layouts[1])
    slide.shapes.title.text = "Organic Chemistry"
    slide.placeholders[1].text = "Alkanes and alkenes"
    buf = io.BytesIO()
    presentation.save(buf)
    return buf.getvalue()


@pytest.fixture()
def write_file(tmp_path: Path) -> Callable[[str, bytes | str], Path]:
    """Write content under tmp_path and return the path."""

    def _write(name: str, content: bytes | str) -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
        return path

    return _write
