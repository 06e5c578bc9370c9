from typing import Optional


class MediaStudioError(Exception):
    """Base class for every error raised by the media studio core."""
    pass


class ConfigurationError(MediaStudioError):
    """Raised when the server is missing required configuration."""
    pass


class InputResolutionError(MediaStudioError):
    """Raised when an image reference cannot be turned into bytes."""

    FETCH_FAILED = "FetchFailed"
    READ_FAILED = "ReadFailed"
    INVALID_ENCODING = "InvalidEncoding"

    def __init__(
        self,
        message: str,
        kind: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.cause = cause


class GenerationAPIError(MediaStudioError):
    """Raised when the provider returns no usable result or rejects a request."""

    EMPTY_RESULT = "EmptyResult"
    MISSING_PAYLOAD = "MissingPayload"
    SUBMISSION_FAILED = "SubmissionFailed"
    OPERATION_FAILED = "OperationFailed"
    DOWNLOAD_FAILED = "DownloadFailed"

    def __init__(self, message: str, kind: str, detail: object = None):
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class PollingTimeoutError(MediaStudioError):
    """Raised when a long-running operation does not finish in time."""

    def __init__(self, message: str, waited_seconds: float):
        super().__init__(message)
        self.waited_seconds = waited_seconds


class PollingCancelledError(MediaStudioError):
    """Raised when a caller cancels a poll before the operation finishes."""
    pass


class StorageWriteError(MediaStudioError):
    """Raised when an artifact or its metadata sidecar cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class MetadataNotFoundError(MediaStudioError):
    """Raised when no readable sidecar exists for an artifact id."""

    def __init__(self, kind: str, artifact_id: str):
        super().__init__(f"{kind.capitalize()} metadata not found: {artifact_id}")
        self.kind = kind
        self.artifact_id = artifact_id
