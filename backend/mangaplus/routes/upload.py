"""
MangaPlus Backend — Chapter Upload Route
==========================================

What:  Handles POST /upload: stores chapter images on ImageKit and inserts one
       chapter record pointing at them.
How:   Receives the multipart form, checks the identifier fields, delegates
       to ChapterService, returns the insert result.
Who:   Called by the chapter upload tooling / admin frontend.

Request Flow:
    1. Client sends multipart/form-data:
         files           repeated file field, in page order
         chapter_number  text
         volume_number   text
    2. FastAPI parses the form (malformed body → 400)
    3. Missing chapter_number / volume_number → 400
    4. ChapterService uploads 0.jpg, 1.jpg, ... one at a time, then inserts
    5. Return 200 {"message": "success", "responses": {"InsertedID": "..."}}

Error responses (handled by global exception handlers):
    HTTP 400: FormValidationError, ImageUploadError
    HTTP 500: DatabaseError
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pymongo.asynchronous.collection import AsyncCollection

from mangaplus.config import settings
from mangaplus.database import get_manga_collection
from mangaplus.exceptions import FormValidationError
from mangaplus.schemas.chapter import ErrorResponse, UploadResponse
from mangaplus.services.chapter_service import chapter_service
from mangaplus.services.imagekit_service import ImageKitService, get_imagekit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        200: {"description": "Images uploaded and chapter stored", "model": UploadResponse},
        400: {"description": "Form could not be parsed or an upload failed", "model": ErrorResponse},
        500: {"description": "Chapter record could not be inserted", "model": ErrorResponse},
    },
    summary="Upload chapter images and create the chapter record",
)
async def upload_chapter(
    files: Optional[List[UploadFile]] = File(
        default=None,
        description="Chapter pages, in reading order",
    ),
    chapter_number: Optional[str] = Form(default=None),
    volume_number: Optional[str] = Form(default=None),
    collection: AsyncCollection = Depends(get_manga_collection),
    imagekit: ImageKitService = Depends(get_imagekit),
) -> UploadResponse:
    missing = [
        name
        for name, value in (("chapter_number", chapter_number), ("volume_number", volume_number))
        if value is None
    ]
    if missing:
        raise FormValidationError(
            error=f"missing form field(s): {', '.join(missing)}",
            fields=missing,
        )

    files = files or []
    logger.info(
        "Received upload: volume %s chapter %s, %d file(s)",
        volume_number,
        chapter_number,
        len(files),
    )

    try:
        result = await chapter_service.upload_chapter(
            collection=collection,
            imagekit=imagekit,
            files=files,
            volume_number=volume_number,
            chapter_number=chapter_number,
            folder=settings.imagekit_folder,
        )
    finally:
        for file in files:
            await file.close()

    return UploadResponse(message="success", responses=result)
