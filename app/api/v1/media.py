"""
Media endpoints: upload, download and delete of tenant objects.

Handlers are plain ``def`` functions; FastAPI runs them on its threadpool,
so each request gets its own worker thread for the blocking backend calls.
"""

import logging
import os

from fastapi import APIRouter, File, Response, UploadFile

from app.auth.dependencies import CurrentContext
from app.config import get_settings
from app.core.exceptions import PayloadTooLargeException, ValidationException
from app.dependencies import Gateway
from app.schemas.error import ErrorResponse
from app.schemas.media import MediaUploadResponse

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _upload_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


@router.post(
    "",
    status_code=201,
    response_model=MediaUploadResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def upload_media(
    gateway: Gateway,
    context: CurrentContext,
    file: UploadFile = File(..., description="Media file to store"),
):
    """
    Upload a media file into the caller's tenant container.

    The object is stored under a new random key that keeps the file
    extension. Format, dimensions, capture time and GPS position are
    extracted from the bytes when the file is a supported image.
    """
    size = _upload_size(file)

    if size == 0:
        logger.warning(f"Empty file upload rejected: {file.filename}")
        raise ValidationException("Uploaded file is empty", details={"filename": file.filename})

    if size > settings.MAX_UPLOAD_SIZE:
        raise PayloadTooLargeException(settings.MAX_UPLOAD_SIZE)

    result = gateway.upload(file.file, file.content_type, file.filename, context)

    return MediaUploadResponse(
        key=result.key,
        filename=file.filename,
        **result.attributes.model_dump(),
    )


@router.get(
    "/{key}",
    response_class=Response,
    responses={
        200: {"content": {"application/octet-stream": {}}},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def download_media(key: str, gateway: Gateway, context: CurrentContext):
    """
    Download a media file.

    The permission service decides the read before storage is touched.
    """
    media = gateway.download(key, context)

    return Response(
        content=media.data,
        media_type=media.content_type,
        headers={"Content-Disposition": f'attachment; filename="{key}"'},
    )


@router.delete(
    "/{key}",
    status_code=204,
    response_class=Response,
    responses={500: {"model": ErrorResponse}},
)
def delete_media(key: str, gateway: Gateway, context: CurrentContext):
    """
    Delete a media file. Deleting a missing file also succeeds.
    """
    gateway.delete(key, context)
    return Response(status_code=204)
