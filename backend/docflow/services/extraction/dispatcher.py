"""
Strategy dispatch for text extraction.

Candidates are tried in a fixed priority order. Encryption signals abort the
whole dispatch so the caller can prompt for a password; every other failure
falls through to the next candidate.
"""

from typing import Sequence

from docflow.config import settings
from docflow.core.exceptions import (
    AllStrategiesFailedError,
    EncryptedDocumentError,
    FileTooLargeError,
    IncorrectPasswordError,
    PasswordRequiredError,
    UnsupportedFileTypeError,
)
from docflow.core.logging import get_logger
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.strategies.docx import DocxStrategy
from docflow.services.extraction.strategies.image import ImageStrategy
from docflow.services.extraction.strategies.pdf import PdfStrategy
from docflow.services.extraction.strategies.spreadsheet import SpreadsheetStrategy
from docflow.services.extraction.strategies.text import TextStrategy

logger = get_logger(__name__)


def default_strategies() -> list[ExtractionStrategy]:
    # Most specific first
    return [
        PdfStrategy(),
        DocxStrategy(),
        SpreadsheetStrategy(),
        TextStrategy(),
        ImageStrategy(),
    ]


def validate_file(file: UploadedFile) -> None:
    if file.size > settings.max_file_size_mb * 1024 * 1024:
        raise FileTooLargeError(size_bytes=file.size, max_mb=settings.max_file_size_mb)


class ExtractionDispatcher:
    def __init__(self, strategies: Sequence[ExtractionStrategy] | None = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def candidates(self, file: UploadedFile) -> list[ExtractionStrategy]:
        return [s for s in self.strategies if s.can_handle(file)]

    async def extract(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        validate_file(file)

        candidates = self.candidates(file)
        if not candidates:
            raise UnsupportedFileTypeError(file.content_type or "unknown")

        last_error: Exception | None = None
        for strategy in candidates:
            logger.info(f"Extracting {file.filename} with {type(strategy).__name__}")
            try:
                return await strategy.execute(file, on_progress, password)
            except FileTooLargeError:
                # Size ceilings are not retried
                raise
            except EncryptedDocumentError as e:
                if password:
                    raise IncorrectPasswordError() from e
                raise PasswordRequiredError() from e
            except Exception as e:
                logger.warning(f"{type(strategy).__name__} failed for {file.filename}: {e}")
                last_error = e

        logger.error(f"All extraction strategies failed for {file.filename}")
        message = str(last_error) if last_error else "Unknown error"
        raise AllStrategiesFailedError(message) from last_error


_default_dispatcher: ExtractionDispatcher | None = None


async def extract_text(
    file: UploadedFile,
    on_progress: ProgressCallback | None = None,
    password: str | None = None,
) -> ExtractionResult:
    """Extract text from an uploaded file with the default strategy table."""
    global _default_dispatcher
    if _default_dispatcher is None:
        _default_dispatcher = ExtractionDispatcher()
    return await _default_dispatcher.extract(file, on_progress, password)
