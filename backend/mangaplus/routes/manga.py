"""
MangaPlus Backend — Chapter Read Route
========================================

What:  GET /manga/{slug}/volumes/{volume_number}/chapters/{chapter_number}
How:   Looks the chapter up by (chapter_number, volume_number) through
       ChapterService and returns the stored document, unchanged, under `chapter`.

The slug is part of the public URL only; it does not take part in the query.
Volume and chapter numbers are passed through as raw text.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pymongo.asynchronous.collection import AsyncCollection

from mangaplus.database import get_manga_collection
from mangaplus.schemas.chapter import ChapterResponse, ErrorResponse
from mangaplus.services.chapter_service import chapter_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manga", tags=["Manga"])


@router.get(
    "/{slug}/volumes/{volume_number}/chapters/{chapter_number}",
    response_model=None,
    responses={
        200: {"description": "The stored chapter record", "model": ChapterResponse},
        404: {"description": "No chapter for this volume/chapter", "model": ErrorResponse},
        500: {"description": "Database error", "model": ErrorResponse},
    },
    summary="Fetch a chapter by volume and chapter number",
)
async def get_chapter(
    slug: str,
    volume_number: str,
    chapter_number: str,
    collection: AsyncCollection = Depends(get_manga_collection),
) -> Dict[str, Any]:
    """
    Error responses (handled by global exception handlers):
        HTTP 404: ChapterNotFoundError
        HTTP 500: DatabaseError
    """
    logger.debug("Fetching %s volume %s chapter %s", slug, volume_number, chapter_number)
    chapter = await chapter_service.get_chapter(
        collection=collection,
        volume_number=volume_number,
        chapter_number=chapter_number,
    )
    return {"chapter": chapter}
