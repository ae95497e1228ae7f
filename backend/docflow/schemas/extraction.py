from pydantic import BaseModel, ConfigDict, Field

from docflow.services.extraction.base import ExtractionResult


class ExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    confidence: int = Field(ge=0, le=100)
    page_count: int | None = Field(default=None, alias="pageCount")
    processing_time_ms: int | None = Field(default=None, alias="processingTimeMs")
    source_kind: str = Field(alias="sourceKind")
    strategy_label: str = Field(alias="strategyLabel")
    preview_image_data: str | None = Field(default=None, alias="previewImageData")

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractionResponse":
        return cls(**result.to_dict())


class FileTypeInfoResponse(BaseModel):
    filename: str
    label: str
    icon: str
    color: str


class ErrorResponse(BaseModel):
    detail: str
    code: str
    status_code: int = 500
