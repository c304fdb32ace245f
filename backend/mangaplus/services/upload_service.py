"""
MangaPlus Backend — File Upload Adapter
=========================================

What:  Sends one uploaded multipart file to the image host.
How:   Reads the whole file into memory, base64-encodes it and hands it to
       ImageKitService.upload() under the given file name and folder.
Who:   Called by ChapterService once per file, in submission order.

Failures abort only this file; the caller decides whether to abort the batch.
"""

import base64
import logging

from fastapi import UploadFile

from mangaplus.exceptions import ImageUploadError
from mangaplus.schemas.imagekit import UploadResult
from mangaplus.services.imagekit_service import ImageKitService

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "/MangaPlus"


async def upload_file(
    file: UploadFile,
    file_name: str,
    imagekit: ImageKitService,
    folder: str = DEFAULT_FOLDER,
) -> UploadResult:
    """
    Upload a single multipart file to ImageKit.

    Args:
        file: The incoming upload (fully buffered, no streaming)
        file_name: Name to store the file under (e.g. "0.jpg")
        imagekit: The process-wide ImageKit client
        folder: Destination folder on the image host

    Returns:
        UploadResult with at least url, height and width.

    Raises:
        ImageUploadError: The file could not be read, or the host rejected it.
    """
    try:
        content = await file.read()
    except OSError as e:
        logger.error("Could not read upload %s: %s", file.filename, str(e))
        raise ImageUploadError(error=str(e), file_name=file_name) from e

    logger.debug(
        "Uploading %s as %s (%d bytes)", file.filename or "unnamed", file_name, len(content)
    )
    encoded = base64.b64encode(content).decode("ascii")
    return await imagekit.upload(encoded, file_name=file_name, folder=folder)
