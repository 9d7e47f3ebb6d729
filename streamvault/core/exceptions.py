"""
Upload error taxonomy.

Every failure the upload core can report is an ``UploadError`` subclass.
Errors carry a stable ``error_code`` so that the HTTP layer and the logs can
refer to them without string matching.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorLevel(Enum):
    """Error level definitions"""
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class UploadError(Exception):
    """Base class for upload failures."""

    error_code = "UPLOAD_ERROR"
    level = ErrorLevel.ERROR
    retryable = False

    def __init__(self, message: str, upload_id: Optional[str] = None,
                 part_number: Optional[int] = None):
        self.message = message
        self.upload_id = upload_id
        self.part_number = part_number
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a serializable dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "upload_id": self.upload_id,
            "part_number": self.part_number,
            "retryable": self.retryable,
        }


class BackendUnavailable(UploadError):
    """Network or storage service failure."""
    error_code = "BACKEND_UNAVAILABLE"
    retryable = True


class PartTooSmall(UploadError):
    """Backend rejected a non-final part under the minimum part size."""
    error_code = "PART_TOO_SMALL"
    level = ErrorLevel.CRITICAL


class SessionExpired(UploadError):
    """Backend no longer knows the multipart upload session."""
    error_code = "SESSION_EXPIRED"


class IncompleteUpload(UploadError):
    """Recorded parts are not contiguous from part 1."""
    error_code = "INCOMPLETE_UPLOAD"
    level = ErrorLevel.CRITICAL


class StreamAborted(UploadError):
    """Inbound stream failed before it was fully received."""
    error_code = "STREAM_ABORTED"
    level = ErrorLevel.WARNING


class UploadAborted(UploadError):
    """The coordinator already failed and accepts no further events."""
    error_code = "UPLOAD_ABORTED"
    level = ErrorLevel.WARNING


class InvalidSessionState(UploadError):
    """Operation is not allowed in the session's current state."""
    error_code = "INVALID_SESSION_STATE"
    level = ErrorLevel.CRITICAL


class PartOrderError(UploadError):
    """A part was recorded out of order or twice."""
    error_code = "PART_ORDER_VIOLATION"
    level = ErrorLevel.CRITICAL


class MalformedRequest(UploadError):
    """Request body is not a well-formed multipart form."""
    error_code = "MALFORMED_REQUEST"
    level = ErrorLevel.WARNING


class BackendRejected(UploadError):
    """Backend refused the request; repeating it cannot succeed."""
    error_code = "BACKEND_REJECTED"
