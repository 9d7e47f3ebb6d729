"""
S3-compatible multipart storage backend.

Wraps the boto3 S3 client. boto3 is blocking, so every call runs in the
default executor; the client itself is thread-safe and shared by all
uploads. botocore errors are mapped onto the upload error taxonomy.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.domain.upload import DEFAULT_MIN_PART_SIZE, CompletedPart, ObjectRef
from ...core.exceptions import (
    BackendRejected, BackendUnavailable, IncompleteUpload, PartTooSmall, SessionExpired,
    UploadError
)
from ...core.interfaces.storage import IStorageBackend
from ..config.models import S3Config

logger = logging.getLogger(__name__)

SESSION_EXPIRED_CODES = {"NoSuchUpload"}
PART_TOO_SMALL_CODES = {"EntityTooSmall"}
INCOMPLETE_CODES = {"InvalidPart", "InvalidPartOrder", "MalformedXML"}
TRANSIENT_CODES = {
    "InternalError", "ServiceUnavailable", "SlowDown", "Throttling",
    "ThrottlingException", "RequestTimeout",
}


def map_client_error(error: Exception, operation: str) -> UploadError:
    """
    Translate a botocore exception into an ``UploadError``.

    Connection failures, 5xx responses and throttling are transient and map
    to ``BackendUnavailable``. Any other refusal is permanent and maps to
    ``BackendRejected``.

    Args:
        error: Exception raised by the boto3 client
        operation: Name of the S3 operation, used in the message

    Returns:
        Matching upload error
    """
    if not isinstance(error, ClientError):
        return BackendUnavailable(f"{operation} failed: {error}")

    code = error.response.get("Error", {}).get("Code", "Unknown")
    message = error.response.get("Error", {}).get("Message", str(error))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    text = f"{operation} failed: {code}: {message}"

    if code in SESSION_EXPIRED_CODES:
        return SessionExpired(text)
    if code in PART_TOO_SMALL_CODES:
        return PartTooSmall(text)
    if code in INCOMPLETE_CODES:
        return IncompleteUpload(text)
    if code in TRANSIENT_CODES or status == 429 or (status is not None and status >= 500):
        return BackendUnavailable(text)
    return BackendRejected(text)


class S3StorageBackend(IStorageBackend):
    """Multipart uploads against an S3-compatible object store."""

    def __init__(self, config: S3Config, min_part_size: int = DEFAULT_MIN_PART_SIZE,
                 client: Optional[Any] = None) -> None:
        """
        Initialize the S3 backend.

        Args:
            config: S3 connection settings
            min_part_size: Minimum size of non-final parts
            client: Preconfigured boto3 S3 client (created on start if omitted)
        """
        if not config.bucket:
            raise ValueError("An S3 bucket name is required")
        self._config = config
        self._min_part_size = min_part_size
        self._client = client
        self._running = False

    @property
    def name(self) -> str:
        return "S3StorageBackend"

    @property
    def min_part_size(self) -> int:
        return self._min_part_size

    @property
    def bucket(self) -> str:
        return self._config.bucket  # type: ignore[return-value]

    async def start(self) -> None:
        if self._running:
            return
        if self._client is None:
            self._client = self._create_client()
        self._running = True
        logger.info(f"S3 storage ready: bucket={self.bucket} endpoint={self._config.endpoint_url or 'aws'}")

    async def stop(self) -> None:
        self._running = False

    async def check_health(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {
            "bucket": self.bucket,
            "endpoint_url": self._config.endpoint_url,
            "region": self._config.region,
        }
        if self._client is None:
            return {"healthy": False, "status": "stopped", "details": details}

        try:
            await self._call("HeadBucket", self._client.head_bucket, Bucket=self.bucket)
        except UploadError as e:
            details["error"] = e.message
            return {"healthy": False, "status": "unreachable", "details": details}

        return {"healthy": True, "status": "running", "details": details}

    async def initiate_upload(self, key: str) -> str:
        response = await self._call(
            "CreateMultipartUpload", self._require_client().create_multipart_upload,
            Bucket=self.bucket, Key=key
        )
        return response["UploadId"]  # type: ignore[no-any-return]

    async def upload_part(self, session_id: str, key: str,
                          part_number: int, body: bytes) -> str:
        response = await self._call(
            "UploadPart", self._require_client().upload_part,
            Bucket=self.bucket, Key=key, UploadId=session_id,
            PartNumber=part_number, Body=body
        )
        return response["ETag"]  # type: ignore[no-any-return]

    async def complete_upload(self, session_id: str, key: str,
                              parts: List[CompletedPart]) -> ObjectRef:
        response = await self._call(
            "CompleteMultipartUpload", self._require_client().complete_multipart_upload,
            Bucket=self.bucket, Key=key, UploadId=session_id,
            MultipartUpload={
                "Parts": [
                    {"PartNumber": part.part_number, "ETag": part.token}
                    for part in parts
                ]
            }
        )
        return ObjectRef(
            key=response.get("Key", key),
            size=sum(part.size for part in parts),
            parts=len(parts),
            etag=response.get("ETag"),
            location=response.get("Location"),
            metadata={"bucket": response.get("Bucket", self.bucket)}
        )

    async def abort_upload(self, session_id: str, key: str) -> None:
        await self._call(
            "AbortMultipartUpload", self._require_client().abort_multipart_upload,
            Bucket=self.bucket, Key=key, UploadId=session_id
        )

    def _create_client(self) -> Any:
        boto_config = Config(
            connect_timeout=self._config.connect_timeout,
            read_timeout=self._config.read_timeout,
            retries={"max_attempts": self._config.max_attempts, "mode": "standard"},
            max_pool_connections=self._config.max_pool_connections,
        )
        return boto3.client(
            "s3",
            region_name=self._config.region,
            endpoint_url=self._config.endpoint_url,
            aws_access_key_id=self._config.access_key_id,
            aws_secret_access_key=self._config.secret_access_key,
            config=boto_config,
        )

    def _require_client(self) -> Any:
        if self._client is None:
            raise BackendUnavailable("S3 backend has not been started")
        return self._client

    async def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, **kwargs))
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, operation) from e
