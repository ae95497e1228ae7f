import asyncio

from docflow.config import settings
from docflow.core.exceptions import NoExtractableTextError
from docflow.core.logging import get_logger
from docflow.services.extraction.base import (
    ExtractionResult,
    ExtractionStrategy,
    ProgressCallback,
    UploadedFile,
)
from docflow.services.extraction.preprocessing import ImagePreprocessor, image_to_data_url
from docflow.services.extraction.progress import ProgressTracker
from docflow.services.extraction.readers.pdf_reader import PdfReader
from docflow.services.extraction.recognition import EngineFactory, TesseractEngine

logger = get_logger(__name__)

LARGE_SCANNED_PLACEHOLDER = (
    "DOCUMENT IS SCANNED. In-process OCR of large scanned documents is not supported."
)

# Share of the progress bar used by the text-layer pass; OCR gets the rest
TEXT_LAYER_PROGRESS = 80


class PdfStrategy(ExtractionStrategy):
    """Digital text layer first, OCR only when the document looks scanned."""

    name = "pdf"

    def __init__(
        self,
        engine_factory: EngineFactory = TesseractEngine,
        preprocessor: ImagePreprocessor | None = None,
        reader_class: type[PdfReader] = PdfReader,
    ):
        self.engine_factory = engine_factory
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.reader_class = reader_class

    def can_handle(self, file: UploadedFile) -> bool:
        return file.content_type == "application/pdf" or file.extension == "pdf"

    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        progress = ProgressTracker(on_progress)
        reader = self.reader_class(file.data, password=password)

        # Encryption errors propagate untouched to the dispatcher
        page_count = await asyncio.to_thread(reader.open)
        logger.info(f"Processing {page_count} pages of {file.filename}")

        preview = await self._render_preview(reader, file.filename)

        page_texts = await self._extract_text_layer(reader, page_count, progress)
        full_text = "\n\n".join(page_texts).strip()

        has_digital_text = any(
            len(text.strip()) > settings.scanned_text_threshold for text in page_texts
        )
        is_scanned = not has_digital_text
        confidence = 100.0
        strategy_label = f"pdfplumber parallel (batch size {settings.pdf_batch_size})"

        if is_scanned and 0 < page_count <= settings.ocr_max_document_pages:
            logger.info(f"No digital text in {file.filename}, running OCR")
            ocr_text, ocr_confidence, recognized = await self._run_ocr(
                reader, page_count, progress
            )
            if recognized:
                full_text = ocr_text or full_text
                confidence = ocr_confidence
                strategy_label = f"pdfplumber + {TesseractEngine.label}"
        elif is_scanned and page_count > settings.ocr_max_document_pages:
            logger.warning(
                f"{file.filename} is a large scanned document ({page_count} pages), skipping OCR"
            )
            full_text = LARGE_SCANNED_PLACEHOLDER
            strategy_label = "pdfplumber (OCR skipped)"

        progress.complete()

        if not full_text.strip():
            raise NoExtractableTextError("PDF")

        return ExtractionResult(
            text=full_text.strip(),
            confidence=round(confidence),
            page_count=page_count,
            processing_time_ms=progress.elapsed_ms(),
            source_kind="PDF (Scanned)" if is_scanned else "PDF (Digital)",
            strategy_label=strategy_label,
            preview_image_data=preview,
        )

    async def _render_preview(self, reader: PdfReader, filename: str) -> str | None:
        try:
            image = await asyncio.to_thread(reader.render_page, 1, settings.preview_scale)
            return image_to_data_url(image)
        except Exception as e:
            logger.warning(f"Failed to render first page of {filename} for preview: {e}")
            return None

    async def _extract_text_layer(
        self, reader: PdfReader, page_count: int, progress: ProgressTracker
    ) -> list[str]:
        # Indexed by page so a late page never lands out of order
        page_texts = [""] * page_count
        batch_size = max(1, settings.pdf_batch_size)

        for start in range(0, page_count, batch_size):
            batch = range(start + 1, min(start + batch_size, page_count) + 1)
            results = await asyncio.gather(
                *(self._page_text(reader, num) for num in batch)
            )
            for num, text in results:
                page_texts[num - 1] = text
            done = batch.stop - 1
            progress.report(done / page_count * TEXT_LAYER_PROGRESS)

        return page_texts

    async def _page_text(self, reader: PdfReader, page_number: int) -> tuple[int, str]:
        try:
            text = await asyncio.to_thread(reader.page_text, page_number)
        except Exception as e:
            logger.warning(f"Failed to extract text from page {page_number}: {e}")
            text = ""
        return page_number, text

    async def _run_ocr(
        self, reader: PdfReader, page_count: int, progress: ProgressTracker
    ) -> tuple[str, float, int]:
        pages_to_ocr = min(page_count, settings.ocr_max_pages)
        confidence = 100.0
        recognized = 0
        chunks = []

        try:
            with self.engine_factory() as engine:
                for page_number in range(1, pages_to_ocr + 1):
                    try:
                        image = await asyncio.to_thread(
                            reader.render_page, page_number, settings.ocr_render_scale
                        )
                        prepared = self.preprocessor.process(image)
                        recognition = await asyncio.to_thread(engine.recognize, prepared)
                        chunks.append(recognition.text)
                        recognized += 1
                        confidence = (confidence + recognition.confidence) / 2
                    except Exception as e:
                        logger.warning(f"OCR failed for page {page_number}: {e}")
                    progress.report(
                        TEXT_LAYER_PROGRESS
                        + page_number / pages_to_ocr * (100 - TEXT_LAYER_PROGRESS)
                    )
        except Exception as e:
            logger.warning(f"OCR engine unavailable: {e}")

        text = "\n\n".join(chunk for chunk in chunks if chunk).strip()
        return text, confidence, recognized
