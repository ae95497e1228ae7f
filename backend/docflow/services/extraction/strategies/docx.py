import asyncio

from docflow.core.exceptions import NoExtractableTextError
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.progress import ProgressTracker
from docflow.services.extraction.readers.docx_reader import docx_to_text

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocxStrategy(ExtractionStrategy):
    name = "docx"

    def can_handle(self, file: UploadedFile) -> bool:
        return file.extension == "docx" or file.content_type == DOCX_MIME_TYPE

    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        progress = ProgressTracker(on_progress)
        progress.report(30)

        text = await asyncio.to_thread(docx_to_text, file.data)
        progress.complete()

        if not text:
            raise NoExtractableTextError("DOCX")

        return ExtractionResult(
            text=text,
            confidence=100,
            processing_time_ms=progress.elapsed_ms(),
            source_kind="DOCX",
            strategy_label="python-docx",
        )
