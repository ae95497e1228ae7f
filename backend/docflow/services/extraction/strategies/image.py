import asyncio

from docflow.config import settings
from docflow.core.exceptions import FileTooLargeError, NoExtractableTextError
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.preprocessing import ImagePreprocessor, bytes_to_data_url
from docflow.services.extraction.progress import ProgressTracker
from docflow.services.extraction.recognition import EngineFactory, TesseractEngine

IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/bmp"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "bmp", "webp"}

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}


class ImageStrategy(ExtractionStrategy):
    name = "image"

    def __init__(
        self,
        engine_factory: EngineFactory = TesseractEngine,
        preprocessor: ImagePreprocessor | None = None,
    ):
        self.engine_factory = engine_factory
        self.preprocessor = preprocessor or ImagePreprocessor()

    def can_handle(self, file: UploadedFile) -> bool:
        return file.content_type in IMAGE_MIME_TYPES or file.extension in IMAGE_EXTENSIONS

    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        if file.size > settings.max_image_size_mb * 1024 * 1024:
            raise FileTooLargeError(size_bytes=file.size, max_mb=settings.max_image_size_mb)

        progress = ProgressTracker(on_progress)
        progress.report(10)

        prepared = await asyncio.to_thread(self.preprocessor.process_bytes, file.data)
        mime_type = file.content_type or EXTENSION_MIME_TYPES.get(file.extension, "image/png")
        preview = bytes_to_data_url(file.data, mime_type)
        progress.report(30)

        with self.engine_factory() as engine:
            recognition = await asyncio.to_thread(
                engine.recognize, prepared, progress.scaled(30, 100)
            )

        progress.complete()

        text = recognition.text.strip()
        if not text:
            raise NoExtractableTextError("image")

        return ExtractionResult(
            text=text,
            confidence=round(recognition.confidence),
            processing_time_ms=progress.elapsed_ms(),
            source_kind="Image",
            strategy_label=TesseractEngine.label,
            preview_image_data=preview,
        )
