import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

ProgressCallback = Callable[[int], None]

# Callers treat anything shorter than this as a failed extraction
MIN_USABLE_TEXT_LENGTH = 10


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    data: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)

    @property
    def extension(self) -> str:
        name = self.filename.lower()
        return name.rsplit(".", 1)[-1] if "." in name else ""

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "UploadedFile":
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(filename=path.name, data=path.read_bytes(), content_type=content_type)


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    confidence: int
    source_kind: str
    strategy_label: str
    page_count: int | None = None
    processing_time_ms: int | None = None
    preview_image_data: str | None = None

    @property
    def is_usable(self) -> bool:
        return len(self.text.strip()) >= MIN_USABLE_TEXT_LENGTH

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "pageCount": self.page_count,
            "processingTimeMs": self.processing_time_ms,
            "sourceKind": self.source_kind,
            "strategyLabel": self.strategy_label,
            "previewImageData": self.preview_image_data,
        }


class ExtractionStrategy(ABC):
    name: str = "base"

    @abstractmethod
    def can_handle(self, file: UploadedFile) -> bool:
        """Cheap, side-effect free check on MIME type and/or extension."""
        ...

    @abstractmethod
    async def execute(
        self,
        file: UploadedFile,
        on_progress: ProgressCallback | None = None,
        password: str | None = None,
    ) -> ExtractionResult:
        """Extract text from the file or raise."""
        ...
