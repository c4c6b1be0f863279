import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

STATEMENT_LINES = [
    "01/03/2024  Opening balance                 1,000.00",
    "02/03/2024  Coffee Roasters                    -3.20",
    "05/03/2024  Salary ACME Ltd                 2,500.00",
]


@pytest.fixture()
def statement_pdf_bytes() -> bytes:
    """Single-page statement PDF with a few transaction lines."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for offset, line in enumerate(STATEMENT_LINES):
        c.drawString(72, 720 - offset * 16, line)
    c.save()
    return buf.getvalue()


@pytest.fixture()
def two_page_pdf_bytes() -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Statement page one")
    c.showPage()
    c.drawString(72, 720, "Statement page two")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    """A valid PDF with one blank page (e.g. a scanned statement without a text layer)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()
