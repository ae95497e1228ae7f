class DocFlowError(Exception):
    """Base exception for the application."""

    code = "EXTRACTION_ERROR"

    def __init__(self, message: str = "An error occurred", status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class FileTooLargeError(DocFlowError):
    code = "FILE_TOO_LARGE"

    def __init__(self, size_bytes: int, max_mb: int):
        self.size_bytes = size_bytes
        self.max_bytes = max_mb * 1024 * 1024
        self.size_mb = size_bytes / (1024 * 1024)
        self.max_mb = max_mb
        super().__init__(
            f"File size {self.size_mb:.2f}MB ({size_bytes} bytes) exceeds maximum "
            f"{max_mb}MB ({self.max_bytes} bytes)",
            status_code=413,
        )


class UnsupportedFileTypeError(DocFlowError):
    code = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}", status_code=400)


class PasswordRequiredError(DocFlowError):
    code = "PASSWORD_REQUIRED"

    def __init__(self, message: str = "This document is password protected"):
        super().__init__(message, status_code=401)


class IncorrectPasswordError(DocFlowError):
    code = "INCORRECT_PASSWORD"

    def __init__(self, message: str = "The supplied password is incorrect"):
        super().__init__(message, status_code=401)


class NoExtractableTextError(DocFlowError):
    code = "NO_EXTRACTABLE_TEXT"

    def __init__(self, source: str):
        super().__init__(f"Could not extract any text from {source}", status_code=422)


class AllStrategiesFailedError(DocFlowError):
    code = "ALL_STRATEGIES_FAILED"

    def __init__(self, last_error: str):
        self.last_error = last_error
        super().__init__(f"Extraction failed: {last_error}", status_code=422)


class EncryptedDocumentError(Exception):
    """Raised by a reader when a document cannot be opened with the given password.

    The dispatcher turns this into PasswordRequiredError or IncorrectPasswordError
    depending on whether the caller supplied a password.
    """

    def __init__(self, password_supplied: bool):
        self.password_supplied = password_supplied
        super().__init__("Document is encrypted" if not password_supplied else "Password rejected")
