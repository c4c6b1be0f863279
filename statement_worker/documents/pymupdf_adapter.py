import pymupdf

from statement_worker.documents.base import BasePdfExtractor


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads text blocks top-to-bottom, left-to-right, so statement columns stay on one line."""

    engine = "pymupdf"

    def _extract_pages(self, pdf_bytes: bytes) -> list[str]:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            return [page.get_text("text", sort=True) for page in doc]
