"""
Upload reporting API endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ....core.domain.upload import CoordinatorState
from ....core.interfaces.upload import IUploadService
from ..dependencies import get_upload_service


class StoredObject(BaseModel):
    """Object written by a completed upload."""
    key: str = Field(..., description="Destination key")
    size: int = Field(..., description="Object size in bytes")
    parts: int = Field(..., description="Number of parts the object was assembled from")
    etag: Optional[str] = Field(None, description="Backend entity tag")
    location: Optional[str] = Field(None, description="Backend location")


class UploadInfo(BaseModel):
    """State of a single upload."""
    upload_id: str = Field(..., description="Upload identifier")
    filename: Optional[str] = Field(None, description="Client supplied file name")
    destination_key: str = Field(..., description="Destination key in storage")
    state: CoordinatorState = Field(..., description="Upload state")
    bytes_received: int = Field(..., description="Bytes received from the client")
    buffered_bytes: int = Field(..., description="Bytes waiting for the next part")
    parts_uploaded: int = Field(..., description="Parts accepted by the backend")
    min_part_size: int = Field(..., description="Minimum size of non-final parts")
    result: Optional[StoredObject] = Field(None, description="Stored object on success")
    error: Optional[Dict[str, Any]] = Field(None, description="Failure details")
    started_at: float = Field(..., description="Start timestamp")
    finished_at: Optional[float] = Field(None, description="Finish timestamp")


class UploadList(BaseModel):
    uploads: List[UploadInfo]
    count: int


class UploadStatistics(BaseModel):
    """Aggregate upload counters."""
    total_uploads: int
    initiate_failures: int
    completed_uploads: int
    failed_uploads: int
    active_uploads: int
    tracked_uploads: int
    total_bytes_stored: int
    bytes_in_flight: int
    timestamp: float


router = APIRouter(
    prefix="/api/v1/uploads",
    tags=["uploads"],
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {
            "description": "Upload service not available"}
    }
)


@router.get("", response_model=UploadList)
async def list_uploads(
    state: Optional[str] = Query(None, description="Only uploads in this state"),
    service: IUploadService = Depends(get_upload_service)
) -> Dict[str, Any]:
    """List tracked uploads, newest last."""
    state_filter = None
    if state is not None:
        try:
            state_filter = CoordinatorState(state)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown upload state: {state}"
            )

    uploads = [upload.to_dict() for upload in service.list_uploads(state_filter)]
    return {"uploads": uploads, "count": len(uploads)}


@router.get("/stats", response_model=UploadStatistics)
async def upload_statistics(
    service: IUploadService = Depends(get_upload_service)
) -> Dict[str, Any]:
    return service.get_upload_statistics()


@router.get("/{upload_id}", response_model=UploadInfo)
async def get_upload(
    upload_id: str,
    service: IUploadService = Depends(get_upload_service)
) -> Dict[str, Any]:
    upload = service.get_upload(upload_id)
    if upload is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Upload {upload_id} not found"
        )
    return upload.to_dict()
