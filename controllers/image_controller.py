from fastapi import BackgroundTasks, HTTPException, Request, UploadFile
from fastapi.responses import Response
from typing import Any, Dict, List, Optional

from services.inventory_session import InventorySession, SessionBusyError, image_payload
from services.thumbnail_generator import ThumbnailGenerator
from utils.media_validation import read_image_upload


def get_session(request: Request) -> InventorySession:
    """Retrieve the shared inventory session from the app state."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=500, detail="Inventory session not initialized.")
    return session


async def upload_images(request: Request, files: List[UploadFile]) -> Dict[str, Any]:
    """Validate uploaded label images and queue them for extraction.

    Args:
        request: FastAPI Request object (used to access app.state for the session).
        files: One or more uploaded images.

    Returns:
        A dict containing the newly queued images.

    Raises:
        HTTPException(400/415) if any upload is empty or not a supported image.
    """
    session = get_session(request)

    # Read everything first so a bad file rejects the whole upload.
    uploads = [await read_image_upload(file) for file in files]
    items = session.intake(uploads)

    offset = len(session.queue) - len(items)
    return {"images": [image_payload(item, offset + i) for i, item in enumerate(items)]}


async def delete_image(request: Request, image_id: str) -> Dict[str, Any]:
    """Remove an image and the records extracted from it."""
    session = get_session(request)
    try:
        removed = session.remove_image(image_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc
    return {"id": image_id, "records_removed": removed}


async def get_thumbnail(request: Request, image_id: str) -> Response:
    """Controller to render a PNG preview of a queued image.

    Raises:
        HTTPException(404) if the image is not found.
        HTTPException(422) if the stored bytes cannot be read as an image.
    """
    session = get_session(request)
    try:
        item = session.queue.get(image_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc

    try:
        png_bytes = ThumbnailGenerator().create_thumbnail(item.data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(content=png_bytes, media_type="image/png")


async def start_extraction(
    request: Request, background_tasks: BackgroundTasks, custom_prompt: Optional[str] = None
) -> Dict[str, Any]:
    """Reserve the session and run the extraction batch in the background.

    Returns:
        A dict with the number of images scheduled.

    Raises:
        HTTPException(409) if an extraction or lookup is already running.
        HTTPException(400) if there is nothing to extract.
    """
    session = get_session(request)
    try:
        items = session.begin_batch()
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    background_tasks.add_task(session.run_batch, items, custom_prompt)
    return {"accepted": True, "total": len(items), "image_ids": [item.id for item in items]}


async def clear_session(request: Request) -> Dict[str, Any]:
    """Drop every image and record."""
    session = get_session(request)
    try:
        session.clear_all()
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"cleared": True}
