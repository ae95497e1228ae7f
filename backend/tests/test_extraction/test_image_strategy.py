import base64
import io
from unittest.mock import patch

import pytest
from PIL import Image

from conftest import FakeEngine
from docflow.config import settings
from docflow.core.exceptions import FileTooLargeError, NoExtractableTextError
from docflow.services.extraction.base import UploadedFile
from docflow.services.extraction.preprocessing import ImagePreprocessor, image_to_data_url
from docflow.services.extraction.recognition import TesseractEngine
from docflow.services.extraction.strategies.image import ImageStrategy


class TestImagePreprocessor:
    def test_bounds_longest_side(self):
        image = Image.new("RGB", (5000, 1000), "white")
        processed = ImagePreprocessor(max_dimension=2500).process(image)
        assert processed.size == (2500, 500)

    def test_small_images_are_not_resized(self):
        image = Image.new("RGB", (300, 200), "white")
        assert ImagePreprocessor().process(image).size == (300, 200)

    def test_grayscale_and_binarized(self):
        image = Image.new("RGB", (4, 1))
        image.putpixel((0, 0), (250, 250, 250))
        image.putpixel((1, 0), (10, 10, 10))
        image.putpixel((2, 0), (129, 129, 129))
        image.putpixel((3, 0), (128, 128, 128))

        processed = ImagePreprocessor(threshold=128).process(image)

        assert processed.mode == "L"
        assert list(processed.getdata()) == [255, 0, 255, 0]

    def test_palette_and_alpha_images(self, sample_png_bytes):
        rgba = Image.open(io.BytesIO(sample_png_bytes)).convert("RGBA")
        buffer = io.BytesIO()
        rgba.save(buffer, format="PNG")

        processed = ImagePreprocessor().process_bytes(buffer.getvalue())
        assert set(processed.getdata()) <= {0, 255}

    def test_data_url_is_jpeg(self):
        url = image_to_data_url(Image.new("RGB", (10, 10), "white"))
        header, payload = url.split(",", 1)
        assert header == "data:image/jpeg;base64"
        assert base64.b64decode(payload)[:2] == b"\xff\xd8"


class TestTesseractEngine:
    def test_confidence_ignores_layout_boxes(self):
        data = {"conf": ["-1", "90", "70", -1, "80.5"]}
        with patch("docflow.services.extraction.recognition.pytesseract.image_to_string", return_value=" Invoice total \n"), \
                patch("docflow.services.extraction.recognition.pytesseract.image_to_data", return_value=data):
            with TesseractEngine(language="eng") as engine:
                result = engine.recognize(Image.new("L", (10, 10)))

        assert result.text == "Invoice total"
        assert result.confidence == pytest.approx((90 + 70 + 80.5) / 3)

    def test_progress_fractions(self):
        fractions = []
        with patch("docflow.services.extraction.recognition.pytesseract.image_to_string", return_value="x"), \
                patch("docflow.services.extraction.recognition.pytesseract.image_to_data", return_value={"conf": []}):
            with TesseractEngine() as engine:
                result = engine.recognize(Image.new("L", (10, 10)), fractions.append)

        assert fractions == [0.0, 0.5, 1.0]
        assert result.confidence == 0.0

    def test_closed_engine_refuses_work(self):
        engine = TesseractEngine()
        with engine:
            pass
        assert engine.closed
        with pytest.raises(RuntimeError):
            engine.recognize(Image.new("L", (10, 10)))


class TestImageStrategy:
    def test_can_handle(self):
        strategy = ImageStrategy(engine_factory=FakeEngine)
        assert strategy.can_handle(UploadedFile("scan.webp", b"", ""))
        assert strategy.can_handle(UploadedFile("upload", b"", "image/png"))
        assert strategy.can_handle(UploadedFile("anim.GIF", b"", ""))
        assert not strategy.can_handle(UploadedFile("doc.pdf", b"", "application/pdf"))

    @pytest.mark.asyncio
    async def test_extracts_text(self, sample_png_bytes, progress_log):
        strategy = ImageStrategy(engine_factory=lambda: FakeEngine(text="  Call the plumber  ", confidence=91.6))
        file = UploadedFile("note.png", sample_png_bytes, "image/png")

        result = await strategy.execute(file, progress_log.append)

        assert result.text == "Call the plumber"
        assert result.confidence == 92
        assert result.source_kind == "Image"
        assert result.page_count is None
        assert progress_log == [10, 30, 30, 65, 100, 100]
        assert FakeEngine.instances[0].closed

    @pytest.mark.asyncio
    async def test_preview_is_original_image(self, sample_png_bytes):
        strategy = ImageStrategy(engine_factory=FakeEngine)
        result = await strategy.execute(UploadedFile("note.png", sample_png_bytes, ""))

        header, payload = result.preview_image_data.split(",", 1)
        assert header == "data:image/png;base64"
        assert base64.b64decode(payload) == sample_png_bytes

    @pytest.mark.asyncio
    async def test_rejects_oversized_image(self, monkeypatch):
        monkeypatch.setattr(settings, "max_image_size_mb", 1)
        strategy = ImageStrategy(engine_factory=FakeEngine)
        file = UploadedFile("huge.png", b"\0" * (1024 * 1024 + 1), "image/png")

        with pytest.raises(FileTooLargeError):
            await strategy.execute(file)
        assert FakeEngine.instances == []

    @pytest.mark.asyncio
    async def test_blank_image_raises(self, sample_png_bytes):
        strategy = ImageStrategy(engine_factory=lambda: FakeEngine(text="   "))

        with pytest.raises(NoExtractableTextError):
            await strategy.execute(UploadedFile("blank.png", sample_png_bytes, "image/png"))

    @pytest.mark.asyncio
    async def test_engine_closed_on_failure(self, sample_png_bytes):
        strategy = ImageStrategy(engine_factory=lambda: FakeEngine(fail=True))

        with pytest.raises(RuntimeError):
            await strategy.execute(UploadedFile("note.png", sample_png_bytes, "image/png"))
        assert FakeEngine.instances[0].closed
