from pathlib import Path

from statement_worker.documents.base import BaseDocumentReader, BasePdfExtractor
from statement_worker.documents.exceptions import DocumentReadError, UnsupportedDocumentTypeError
from statement_worker.documents.spreadsheet_reader import XlsxReader
from statement_worker.documents.text_reader import CsvReader, PlainTextReader
from statement_worker.logging.logger import Log


def build_readers(pdf_extractor: BasePdfExtractor) -> dict[str, BaseDocumentReader]:
    """Map lower-case file suffixes to the reader that handles them."""
    return {
        ".pdf": pdf_extractor,
        ".csv": CsvReader(),
        ".txt": PlainTextReader(),
        ".xlsx": XlsxReader(),
    }


def load_document_text(path: Path, pdf_extractor: BasePdfExtractor) -> tuple[str, str]:
    """Read an uploaded statement file and return ``(text, file_type)``.

    Legacy ``.xls`` workbooks are rejected along with every other unknown
    suffix; they have to be saved as ``.xlsx`` first.
    """
    suffix = path.suffix.lower()
    reader = build_readers(pdf_extractor).get(suffix)
    if reader is None:
        hint = ", save it as .xlsx" if suffix == ".xls" else ""
        raise UnsupportedDocumentTypeError(
            f"Unsupported document type '{suffix or path.name}'{hint}"
        )

    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DocumentReadError(f"Failed to read {path}: {exc}") from exc

    try:
        text = reader.read(raw)
    except DocumentReadError as exc:
        Log.warning(f"Could not read {path.name}: {exc}")
        raise

    Log.debug(f"Loaded {path.name}", file_type=reader.file_type, chars=len(text))
    return text, reader.file_type
