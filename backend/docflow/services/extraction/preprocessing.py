"""
Image preparation for OCR.

Bounds the longest side, converts to grayscale and binarizes at a fixed
luminance threshold. Tesseract reads clean black-on-white far better than
mixed-quality phone photos or scans.
"""

import base64
import io

from PIL import Image, ImageOps

from docflow.config import settings


class ImagePreprocessor:
    def __init__(
        self,
        max_dimension: int | None = None,
        threshold: int | None = None,
    ):
        self.max_dimension = max_dimension or settings.image_max_dimension
        self.threshold = settings.binarize_threshold if threshold is None else threshold

    def process(self, image: Image.Image) -> Image.Image:
        image = self.resize(image)
        # Palette and RGBA images need a plain RGB frame first
        gray = ImageOps.grayscale(image.convert("RGB"))
        return gray.point(lambda v: 255 if v > self.threshold else 0)

    def process_bytes(self, data: bytes) -> Image.Image:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return self.process(ImageOps.exif_transpose(image))

    def resize(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        if width <= self.max_dimension and height <= self.max_dimension:
            return image
        ratio = min(self.max_dimension / width, self.max_dimension / height)
        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
        return image.resize(new_size, Image.Resampling.LANCZOS)


def bytes_to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def image_to_data_url(image: Image.Image, quality: int | None = None) -> str:
    """Encode a rendered page as a JPEG data URL for vision models."""
    buffer = io.BytesIO()
    image.convert("RGB").save(
        buffer,
        format="JPEG",
        quality=quality or settings.preview_jpeg_quality,
    )
    return bytes_to_data_url(buffer.getvalue(), "image/jpeg")
