import csv
import io
from datetime import datetime, time
from typing import Any

from openpyxl import load_workbook

from statement_worker.documents.base import BaseDocumentReader
from statement_worker.documents.exceptions import DocumentReadError


class XlsxReader(BaseDocumentReader):
    """Renders the first worksheet of an .xlsx workbook as CSV text.

    Formula cells contribute their cached values. Empty rows are skipped and
    trailing empty cells trimmed, so exported statements with wide blank
    margins do not inflate the chunk count.
    """

    file_type = "xlsx"

    def read(self, raw: bytes) -> str:
        try:
            workbook = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
        except Exception as exc:
            raise DocumentReadError(f"Failed to open workbook: {exc}") from exc

        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        try:
            sheet = workbook.worksheets[0]
            for row in sheet.iter_rows(values_only=True):
                cells = [_format_cell(value) for value in row]
                while cells and cells[-1] == "":
                    cells.pop()
                if cells:
                    writer.writerow(cells)
        finally:
            workbook.close()
        return out.getvalue().strip()


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time.min:
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    return str(value).strip()
