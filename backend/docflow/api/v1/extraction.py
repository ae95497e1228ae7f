import asyncio
import json
from typing import Awaitable, Callable

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse

from docflow.core.exceptions import DocFlowError
from docflow.core.logging import get_logger
from docflow.schemas.extraction import ExtractionResponse, FileTypeInfoResponse
from docflow.services.extraction.base import ExtractionResult, ProgressCallback, UploadedFile
from docflow.services.extraction.dispatcher import extract_text
from docflow.services.extraction.file_info import describe_file_type

router = APIRouter(prefix="/extract", tags=["Extraction"])
logger = get_logger(__name__)

ExtractFunc = Callable[[UploadedFile, ProgressCallback | None, str | None], Awaitable[ExtractionResult]]


async def _read_upload(file: UploadFile) -> UploadedFile:
    content = await file.read()
    return UploadedFile(
        filename=file.filename or "unnamed",
        data=content,
        content_type=file.content_type or "",
    )


@router.post("", response_model=ExtractionResponse, response_model_by_alias=True)
async def extract_document(
    file: UploadFile = File(...),
    password: str | None = Form(default=None),
):
    upload = await _read_upload(file)
    result = await extract_text(upload, password=password or None)
    logger.info(
        f"Extracted {len(result.text)} chars from {upload.filename} "
        f"({result.source_kind}, {result.processing_time_ms}ms)"
    )
    return ExtractionResponse.from_result(result)


def _event(kind: str, content) -> str:
    return f"data: {json.dumps({'type': kind, 'content': content})}\n\n"


async def stream_extraction(
    upload: UploadedFile,
    password: str | None = None,
    extract: ExtractFunc = extract_text,
):
    """Yield SSE progress events, then the result or an error.

    Closing the generator early (client disconnect) cancels the extraction.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_progress(percent: int) -> None:
        # OCR progress may arrive from a worker thread
        loop.call_soon_threadsafe(queue.put_nowait, percent)

    task = asyncio.create_task(extract(upload, on_progress, password))
    getter = None
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                yield _event("progress", getter.result())
                continue
            getter.cancel()
            break

        while not queue.empty():
            yield _event("progress", queue.get_nowait())

        try:
            result = task.result()
        except DocFlowError as e:
            yield _event("error", {"detail": e.message, "code": e.code, "status_code": e.status_code})
            return
        except Exception as e:
            logger.error(f"Streaming extraction failed for {upload.filename}: {e}", exc_info=True)
            yield _event("error", {"detail": str(e), "code": DocFlowError.code, "status_code": 500})
            return

        yield _event("result", result.to_dict())
    finally:
        if getter is not None and not getter.done():
            getter.cancel()
        if not task.done():
            logger.info(f"Stream for {upload.filename} closed early, cancelling extraction")
            task.cancel()


@router.post("/stream")
async def extract_document_stream(
    file: UploadFile = File(...),
    password: str | None = Form(default=None),
):
    """Stream progress as Server-Sent Events, then the result or an error."""
    upload = await _read_upload(file)
    return StreamingResponse(
        stream_extraction(upload, password or None),
        media_type="text/event-stream",
    )


@router.get("/file-info", response_model=FileTypeInfoResponse)
async def file_info(filename: str = Query(..., min_length=1)):
    info = describe_file_type(filename)
    return FileTypeInfoResponse(filename=filename, label=info.label, icon=info.icon, color=info.color)
