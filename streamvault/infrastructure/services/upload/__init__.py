"""
Upload services.
"""

from .audit import UploadAuditLog
from .form import FormStreamSource
from .service import UploadService

__all__ = [
    "FormStreamSource",
    "UploadAuditLog",
    "UploadService",
]
