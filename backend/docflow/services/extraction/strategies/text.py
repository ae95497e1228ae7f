import asyncio

from charset_normalizer import from_bytes

from docflow.core.exceptions import NoExtractableTextError
from docflow.core.logging import get_logger
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.progress import ProgressTracker

logger = get_logger(__name__)

TEXT_MIME_TYPES = {"text/plain", "text/csv", "text/markdown"}
TEXT_EXTENSIONS = {"txt", "md", "markdown", "csv"}


def decode_text(data: bytes) -> tuple[str, str]:
    """Decode raw bytes, detecting the encoding. Returns (text, encoding)."""
    if not data:
        return "", "utf-8"
    detection = from_bytes(data).best()
    if detection:
        return str(detection), detection.encoding
    logger.debug("Encoding detection failed, decoding as utf-8")
    return data.decode("utf-8", errors="replace"), "utf-8"


class TextStrategy(ExtractionStrategy):
    name = "text"

    def can_handle(self, file: UploadedFile) -> bool:
        return file.content_type in TEXT_MIME_TYPES or file.extension in TEXT_EXTENSIONS

    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        progress = ProgressTracker(on_progress)

        text, encoding = await asyncio.to_thread(decode_text, file.data)
        progress.complete()

        text = text.strip()
        if not text:
            raise NoExtractableTextError(file.filename or "text file")

        return ExtractionResult(
            text=text,
            confidence=100,
            processing_time_ms=progress.elapsed_ms(),
            source_kind="CSV" if file.extension == "csv" else "Text",
            strategy_label=f"Plain text ({encoding})",
        )
