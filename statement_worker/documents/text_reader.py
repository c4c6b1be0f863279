from statement_worker.documents.base import BaseDocumentReader
from statement_worker.documents.exceptions import DocumentReadError


class PlainTextReader(BaseDocumentReader):
    """Plain text statements, decoded as UTF-8 (a BOM is dropped)."""

    file_type = "txt"

    def read(self, raw: bytes) -> str:
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DocumentReadError(f"{self.file_type} file is not valid UTF-8: {exc}") from exc


class CsvReader(PlainTextReader):
    file_type = "csv"
