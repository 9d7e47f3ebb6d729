"""
Upload form pages.

``POST /`` streams every file field of the submitted form into storage and
redirects to the completion page.
"""

import logging
from functools import lru_cache
from importlib import resources

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ....core.interfaces.upload import IUploadService
from ....infrastructure.services.upload.form import FormStreamSource
from ..dependencies import get_upload_service

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=None)
def load_page(name: str) -> str:
    """Read a bundled HTML page."""
    page = resources.files("streamvault.presentation") / "static" / name
    return page.read_text(encoding="utf-8")


@router.get("/", response_class=HTMLResponse)
async def upload_page() -> HTMLResponse:
    return HTMLResponse(load_page("index.html"))


@router.post("/")
async def upload_files(
    request: Request,
    service: IUploadService = Depends(get_upload_service)
) -> RedirectResponse:
    """Store the files of a multipart form and redirect to ``/complete``."""
    source = FormStreamSource(service, request.headers.get("content-type"))
    results = await source.consume(request.stream())

    if not results:
        logger.info("Form submitted without any file")
    for result in results:
        logger.info(f"Stored {result.key} ({result.size} bytes)")

    return RedirectResponse("/complete", status_code=302)


@router.get("/complete", response_class=HTMLResponse)
async def complete_page() -> HTMLResponse:
    return HTMLResponse(load_page("complete.html"))


@router.post("/complete")
async def back_to_upload() -> RedirectResponse:
    return RedirectResponse("/", status_code=302)
