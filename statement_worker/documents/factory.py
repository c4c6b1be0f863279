from statement_worker.config.settings import Settings
from statement_worker.documents.base import BasePdfExtractor
from statement_worker.documents.pdfplumber_adapter import PdfPlumberAdapter
from statement_worker.documents.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the PDF text engine named by ``Settings.pdf_engine``."""

    ENGINES: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        return cls.for_engine(settings.pdf_engine)

    @classmethod
    def for_engine(cls, engine: str) -> BasePdfExtractor:
        try:
            return cls.ENGINES[engine.strip().lower()]()
        except KeyError:
            raise ValueError(
                f"Unsupported PDF engine {engine!r}, expected one of {sorted(cls.ENGINES)}"
            ) from None
