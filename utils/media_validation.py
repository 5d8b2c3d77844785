"""Validation helpers for uploaded label images."""

from typing import Optional, Tuple

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
}

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def resolve_image_type(image_file: UploadFile) -> str:
    """Return the media type for an uploaded image, rejecting unsupported uploads.

    The declared content type wins when present. Browsers occasionally send
    uploads without one, in which case the filename extension is used.
    """
    if image_file.content_type and image_file.content_type != "application/octet-stream":
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
        return "image/jpeg" if content_type == "image/jpg" else content_type

    filename = (image_file.filename or "").lower()
    for ext, media_type in _EXTENSION_TYPES.items():
        if filename.endswith(ext):
            return media_type
    raise HTTPException(status_code=415, detail="Unsupported or missing image content type.")


async def read_image_upload(image_file: UploadFile) -> Tuple[bytes, str, Optional[str]]:
    """Read a validated image upload as (bytes, media type, filename)."""
    media_type = resolve_image_type(image_file)
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    return image_bytes, media_type, image_file.filename
