import io

import pdfplumber
from pdf2image import convert_from_bytes
from pdfminer.pdfdocument import PDFPasswordIncorrect
from PIL import Image

from docflow.core.exceptions import EncryptedDocumentError
from docflow.core.logging import get_logger

logger = get_logger(__name__)

# pdf2image renders at DPI; scale 1.0 is the PDF's native 72 DPI
BASE_DPI = 72


def _is_password_error(exc: BaseException) -> bool:
    """pdfplumber wraps pdfminer errors, so look through args and the chain."""
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, PDFPasswordIncorrect):
            return True
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
        pending.append(current.__cause__)
        pending.append(current.__context__)
    return False


class PdfReader:
    """Reads the text layer and page rasters of a PDF held in memory.

    Every call opens its own pdfplumber handle, so pages can be read from
    several threads at once without sharing parser state. The cost is that
    each page reparses the cross-reference table and, for encrypted files,
    re-derives the key; pdf_batch_size bounds how many of those run at once.
    """

    def __init__(self, data: bytes, password: str | None = None):
        self.data = data
        self.password = password
        self.page_count = 0

    def _open(self, pages: list[int] | None = None):
        try:
            return pdfplumber.open(io.BytesIO(self.data), pages=pages, password=self.password or "")
        except Exception as e:
            if _is_password_error(e):
                raise EncryptedDocumentError(password_supplied=bool(self.password)) from e
            raise

    def open(self) -> int:
        """Validate the document (and password) and return its page count."""
        with self._open() as pdf:
            self.page_count = len(pdf.pages)
        return self.page_count

    def page_text(self, page_number: int) -> str:
        with self._open(pages=[page_number]) as pdf:
            if not pdf.pages:
                return ""
            return pdf.pages[0].extract_text() or ""

    def render_page(self, page_number: int, scale: float = 1.0) -> Image.Image:
        images = convert_from_bytes(
            self.data,
            dpi=int(BASE_DPI * scale),
            first_page=page_number,
            last_page=page_number,
            userpw=self.password,
        )
        if not images:
            raise ValueError(f"Page {page_number} could not be rendered")
        return images[0]
