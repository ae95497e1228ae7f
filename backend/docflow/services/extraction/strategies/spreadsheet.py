import asyncio

from docflow.core.exceptions import NoExtractableTextError
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.progress import ProgressTracker
from docflow.services.extraction.readers.spreadsheet_reader import read_workbook, sheet_to_csv

SPREADSHEET_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}


class SpreadsheetStrategy(ExtractionStrategy):
    """Renders every sheet as CSV under a `--- SHEET: name ---` header."""

    name = "spreadsheet"

    def can_handle(self, file: UploadedFile) -> bool:
        return file.extension in ("xlsx", "xls") or file.content_type in SPREADSHEET_MIME_TYPES

    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        progress = ProgressTracker(on_progress)
        progress.report(20)

        sheets = await asyncio.to_thread(read_workbook, file.data, file.filename)

        blocks = []
        for index, (sheet_name, df) in enumerate(sheets.items()):
            blocks.append(f"--- SHEET: {sheet_name} ---\n{sheet_to_csv(df)}")
            progress.report(20 + (index + 1) / len(sheets) * 80)

        progress.complete()

        text = "\n\n".join(blocks).strip()
        if not text:
            raise NoExtractableTextError("spreadsheet")

        return ExtractionResult(
            text=text,
            confidence=100,
            processing_time_ms=progress.elapsed_ms(),
            source_kind="Excel",
            strategy_label="pandas read_excel",
        )
