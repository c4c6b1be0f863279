class DocumentReadError(Exception):
    """Raised when an uploaded document's text cannot be read."""


class PdfExtractionError(DocumentReadError):
    """Raised when text extraction from a PDF fails."""


class UnsupportedDocumentTypeError(DocumentReadError):
    """Raised for file types the worker cannot turn into text."""
