"""
Scoped wrapper around Tesseract OCR.

One engine is created per strategy call and closed when the call ends,
successfully or not. Use it as a context manager:

    with TesseractEngine() as engine:
        result = engine.recognize(image)
"""

from dataclasses import dataclass
from typing import Callable

import pytesseract
from PIL import Image

from docflow.config import settings
from docflow.core.logging import get_logger

logger = get_logger(__name__)

FractionCallback = Callable[[float], None]


@dataclass
class Recognition:
    text: str
    confidence: float  # 0-100


class TesseractEngine:
    label = "Tesseract OCR"

    def __init__(self, language: str | None = None, tesseract_cmd: str | None = None):
        self.language = language or settings.ocr_language
        self._closed = False

        cmd = tesseract_cmd or settings.tesseract_cmd
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd

    def __enter__(self) -> "TesseractEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            logger.debug("Terminating OCR engine (%s)", self.language)
        self._closed = True

    def recognize(self, image: Image.Image, on_progress: FractionCallback | None = None) -> Recognition:
        if self._closed:
            raise RuntimeError("OCR engine has been terminated")

        if on_progress:
            on_progress(0.0)

        text = pytesseract.image_to_string(image, lang=self.language)
        if on_progress:
            on_progress(0.5)

        data = pytesseract.image_to_data(
            image, lang=self.language, output_type=pytesseract.Output.DICT
        )
        confidences = []
        for value in data.get("conf", []):
            try:
                conf = float(value)
            except (TypeError, ValueError):
                continue
            # -1 marks layout boxes without recognized text
            if conf >= 0:
                confidences.append(conf)

        if on_progress:
            on_progress(1.0)

        avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return Recognition(text=text.strip(), confidence=avg_confidence)


EngineFactory = Callable[[], TesseractEngine]
