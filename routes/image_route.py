"""FastAPI routes for label intake, extraction, and session state."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, Request, UploadFile, status
from pydantic import BaseModel

from controllers.image_controller import (
    clear_session,
    delete_image,
    get_session,
    get_thumbnail,
    start_extraction,
    upload_images,
)

router = APIRouter(prefix="/api", tags=["images"])


class ExtractionRequest(BaseModel):
    custom_prompt: Optional[str] = None


@router.get("/session")
async def get_session_route(request: Request):
    """Return images, records, columns, progress, and notices."""
    try:
        return get_session(request).snapshot()
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/session")
async def clear_session_route(request: Request):
    try:
        return await clear_session(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/images", summary="Queue uploaded label images")
async def upload_images_route(request: Request, files: List[UploadFile] = File(...)):
    try:
        return await upload_images(request, files)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/images/{image_id}")
async def delete_image_route(request: Request, image_id: str):
    try:
        return await delete_image(request, image_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/images/{image_id}/thumbnail")
async def get_image_thumbnail(request: Request, image_id: str):
    """Return a PNG preview for the specified image id."""
    try:
        return await get_thumbnail(request, image_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/extractions", status_code=status.HTTP_202_ACCEPTED, summary="Extract all queued labels")
async def start_extraction_route(
    request: Request, background_tasks: BackgroundTasks, payload: Optional[ExtractionRequest] = None
):
    """Start a batch over every image that has not been extracted yet.

    Progress and per-image failures are reported through GET /api/session.
    """
    custom_prompt = payload.custom_prompt if payload else None
    try:
        return await start_extraction(request, background_tasks, custom_prompt)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
