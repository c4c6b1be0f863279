import pytest

from statement_worker.config.settings import Settings
from statement_worker.documents.factory import PdfExtractorFactory
from statement_worker.documents.pdfplumber_adapter import PdfPlumberAdapter
from statement_worker.documents.pymupdf_adapter import PyMuPdfAdapter


class TestPdfExtractorFactory:
    def test_creates_pdfplumber_adapter(self) -> None:
        adapter = PdfExtractorFactory.create(Settings(pdf_engine="pdfplumber"))
        assert isinstance(adapter, PdfPlumberAdapter)

    def test_creates_pymupdf_adapter(self) -> None:
        adapter = PdfExtractorFactory.create(Settings(pdf_engine="pymupdf"))
        assert isinstance(adapter, PyMuPdfAdapter)

    def test_is_case_insensitive(self) -> None:
        assert isinstance(PdfExtractorFactory.for_engine(" PyMuPDF "), PyMuPdfAdapter)

    def test_raises_for_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unsupported PDF engine"):
            PdfExtractorFactory.for_engine("tesseract")
