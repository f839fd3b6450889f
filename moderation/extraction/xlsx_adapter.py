import io

from openpyxl import load_workbook

from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class XlsxAdapter(BaseTextExtractor):
    """Extracts non-empty cell values from XLSX using openpyxl, row by row."""

    def extract(self, data: bytes) -> str:
        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
            rows: list[str] = []
            try:
                for sheet in workbook.worksheets:
                    for row in sheet.iter_rows(values_only=True):
                        values = [str(v).strip() for v in row if v is not None and str(v).strip()]
                        if values:
                            rows.append(" ".join(values))
            finally:
                workbook.close()
            return "\n".join(rows).strip()
        except Exception as exc:
            raise ExtractionFailed(f"xlsx extraction failed: {exc}") from exc
