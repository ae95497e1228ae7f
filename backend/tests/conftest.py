import io

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from docflow.services.extraction.recognition import Recognition


def build_pdf(page_texts: list[str]) -> bytes:
    """Build a small valid PDF with one line of Helvetica text per page.

    An empty string produces a page with no text layer, which is how a
    scanned page looks to the text extractor.
    """
    count = len(page_texts)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {count} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(page_texts):
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1") if text else b""
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {5 + 2 * i} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_offset,
    )
    return bytes(out)


class FakeEngine:
    """Stands in for Tesseract; records what it was asked to do."""

    instances: list["FakeEngine"] = []

    def __init__(self, text: str = "Recognized text from scan", confidence: float = 80.0, fail: bool = False):
        self.text = text
        self.confidence = confidence
        self.fail = fail
        self.closed = False
        self.calls = 0
        FakeEngine.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def recognize(self, image, on_progress=None):
        if self.closed:
            raise RuntimeError("OCR engine has been terminated")
        self.calls += 1
        if self.fail:
            raise RuntimeError("recognizer crashed")
        if on_progress:
            on_progress(0.0)
            on_progress(0.5)
            on_progress(1.0)
        return Recognition(text=self.text, confidence=self.confidence)


@pytest.fixture(autouse=True)
def reset_fake_engines():
    FakeEngine.instances = []
    yield
    FakeEngine.instances = []


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    return build_pdf(["Hello World, this is a digital PDF with a real text layer."])


@pytest.fixture
def sample_txt_bytes() -> bytes:
    return b"This is a sample text document for testing purposes. It contains some content."


@pytest.fixture
def sample_csv_bytes() -> bytes:
    return b"name,email,phone\nJohn Doe,john@example.com,555-1234\nJane Smith,jane@example.com,555-5678"


@pytest.fixture
def sample_png_bytes() -> bytes:
    image = Image.new("RGB", (400, 120), "white")
    for x in range(40, 360):
        for y in range(50, 70):
            image.putpixel((x, y), (20, 20, 20))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def progress_log() -> list[int]:
    return []


@pytest_asyncio.fixture
async def client():
    from docflow.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
