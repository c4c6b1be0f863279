from abc import ABC, abstractmethod
from typing import ClassVar

from statement_worker.documents.exceptions import PdfExtractionError

PAGE_SEPARATOR = "\n\n"


class BaseDocumentReader(ABC):
    """Turns the bytes of one uploaded statement file into plain text."""

    file_type: ClassVar[str]

    @abstractmethod
    def read(self, raw: bytes) -> str:
        """Return the document text.

        Raises:
            DocumentReadError: if the bytes cannot be turned into text.
        """


class BasePdfExtractor(BaseDocumentReader):
    """PDF reader: an engine supplies per-page text, the base cleans and joins it.

    Trailing whitespace is stripped from every line and blank pages are
    dropped. Pages are joined with a blank line so page breaks survive
    chunking.
    """

    file_type = "pdf"
    engine: ClassVar[str]

    def read(self, raw: bytes) -> str:
        return self.extract(raw)

    def extract(self, pdf_bytes: bytes) -> str:
        try:
            pages = self._extract_pages(pdf_bytes)
        except Exception as exc:
            raise PdfExtractionError(f"{self.engine} extraction failed: {exc}") from exc
        cleaned = ("\n".join(line.rstrip() for line in page.splitlines()) for page in pages)
        return PAGE_SEPARATOR.join(page.strip() for page in cleaned if page.strip())

    @abstractmethod
    def _extract_pages(self, pdf_bytes: bytes) -> list[str]:
        """Return the raw text of each page, in page order."""
