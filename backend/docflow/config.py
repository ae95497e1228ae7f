from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "DocFlow Extraction Service"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Size limits
    max_file_size_mb: int = 50
    max_image_size_mb: int = 20

    # PDF text layer
    pdf_batch_size: int = 8
    # A page with more stripped characters than this counts as digital text
    scanned_text_threshold: int = 20

    # OCR
    ocr_language: str = "eng"
    tesseract_cmd: str | None = None
    ocr_max_document_pages: int = 50
    ocr_max_pages: int = 10
    ocr_render_scale: float = 2.0

    # Preview thumbnail for vision models
    preview_scale: float = 1.5
    preview_jpeg_quality: int = 80

    # Image preprocessing
    image_max_dimension: int = 2500
    binarize_threshold: int = 128

    # Frontend
    frontend_url: str = "http://localhost:3000"


settings = Settings()
