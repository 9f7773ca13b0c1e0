"""Exception taxonomy for the resume pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for every error the pipeline surfaces to its callers."""

    error_code = "PIPELINE_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.correlation_id = correlation_id

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "kind": self.kind,
            "message": self.message,
            "correlation_id": self.correlation_id,
        }


class ValidationError(PipelineError):
    """Bad or missing input: identity, payload or request fields."""

    error_code = "VALIDATION_ERROR"


class UnsupportedFileTypeError(PipelineError):
    error_code = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, extension: str):
        super().__init__(
            f"File extension '{extension}' is not supported. Only .pdf and .docx files are allowed."
        )
        self.extension = extension


class FileSizeExceededError(PipelineError):
    error_code = "FILE_TOO_LARGE"

    def __init__(self, file_size: int, max_size: int):
        super().__init__(f"File size {file_size} bytes exceeds maximum {max_size} bytes")
        self.file_size = file_size
        self.max_size = max_size


class TextExtractionError(PipelineError):
    error_code = "EXTRACTION_FAILED"

    def __init__(self, message: str):
        super().__init__(f"Text extraction failed: {message}")


class StorageError(PipelineError):
    error_code = "STORAGE_ERROR"


class DocumentNotFoundError(StorageError):
    error_code = "DOCUMENT_NOT_FOUND"


class OcrServiceError(PipelineError):
    """OCR call failure; ``transient`` marks errors worth retrying."""

    error_code = "OCR_FAILED"

    def __init__(self, message: str, transient: bool = False, service_code: Optional[str] = None):
        super().__init__(message)
        self.transient = transient
        self.service_code = service_code


class StageRejectedError(PipelineError):
    """The receiving stage answered but did not accept the hand-off."""

    error_code = "STAGE_REJECTED"


class InvocationFailureError(PipelineError):
    error_code = "INVOCATION_FAILED"

    def __init__(self, message: str, correlation_id: Optional[str], attempts: int,
                 cause: Optional[BaseException] = None):
        super().__init__(message, correlation_id=correlation_id)
        self.attempts = attempts
        self.cause = cause


class PartialFailureError(PipelineError):
    """One of two dependent persisted writes succeeded and the other failed."""

    error_code = "PARTIAL_FAILURE"

    def __init__(self, message: str, resume_id: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.resume_id = resume_id
        self.cause = cause


class ProfileNotFoundError(PipelineError):
    error_code = "PROFILE_NOT_FOUND"


class OperationCancelledError(PipelineError):
    error_code = "CANCELLED"
