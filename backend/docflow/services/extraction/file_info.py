from dataclasses import dataclass

from docflow.services.extraction.base import UploadedFile


@dataclass(frozen=True)
class FileTypeInfo:
    label: str
    icon: str
    color: str


FILE_TYPES: dict[str, FileTypeInfo] = {
    "pdf": FileTypeInfo("PDF Document", "FileText", "red"),
    "docx": FileTypeInfo("Word Document", "FileText", "blue"),
    "txt": FileTypeInfo("Text File", "FileCode", "green"),
    "md": FileTypeInfo("Text File", "FileCode", "green"),
    "markdown": FileTypeInfo("Text File", "FileCode", "green"),
    "csv": FileTypeInfo("CSV Data", "Database", "teal"),
    "xlsx": FileTypeInfo("Excel Spreadsheet", "Table", "emerald"),
    "xls": FileTypeInfo("Excel Spreadsheet", "Table", "emerald"),
    "jpg": FileTypeInfo("Image File", "FileImage", "purple"),
    "jpeg": FileTypeInfo("Image File", "FileImage", "purple"),
    "png": FileTypeInfo("Image File", "FileImage", "purple"),
    "gif": FileTypeInfo("Image File", "FileImage", "purple"),
    "bmp": FileTypeInfo("Image File", "FileImage", "purple"),
    "webp": FileTypeInfo("Image File", "FileImage", "purple"),
}

UNKNOWN_FILE_TYPE = FileTypeInfo("Unknown", "File", "gray")


def describe_file_type(filename: str) -> FileTypeInfo:
    ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    return FILE_TYPES.get(ext, UNKNOWN_FILE_TYPE)


def estimate_processing_seconds(file: UploadedFile) -> float:
    """Rough wall-clock estimate used to pace the progress UI."""
    if file.extension == "pdf":
        return max(5.0, file.size_mb * 5)
    if file.extension in ("jpg", "jpeg", "png"):
        return max(4.0, file.size_mb * 4)
    return 2.0
