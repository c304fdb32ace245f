"""
MangaPlus Backend — Chapter Service (Business Logic Orchestrator)
===================================================================

What:  Chapter lookup and the upload → persist workflow behind POST /upload.
How:   Uses the chapter collection and the upload adapter handed in by the
       route handler; holds no state of its own.
Who:   Called by route handlers; calls the upload adapter and the database.

Orchestration Flow (POST /upload):
    ┌──────────┐    ┌──────────────────┐    ┌─────────────┐
    │  Files   │───▶│  ImageKit upload │───▶│  insert_one │
    │  (Route) │    │  0.jpg, 1.jpg …  │    │  (mangas)   │
    └──────────┘    └──────────────────┘    └─────────────┘

    On upload failure at file k:
    - The request aborts with ImageUploadError, nothing is inserted
    - Files 0..k-1 stay on the image host (orphaned, logged, not deleted)
"""

import logging
from typing import Any, Dict, List

from fastapi import UploadFile
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from mangaplus.exceptions import ChapterNotFoundError, DatabaseError, ImageUploadError
from mangaplus.schemas.chapter import ChapterRecord, ImageEntry, InsertResult, render_document
from mangaplus.services.imagekit_service import ImageKitService
from mangaplus.services.upload_service import DEFAULT_FOLDER, upload_file

logger = logging.getLogger(__name__)


def image_file_name(index: int) -> str:
    """Position-derived name; always .jpg regardless of the actual content type."""
    return f"{index}.jpg"


class ChapterService:
    """
    Business logic layer for chapter records.

    Responsibilities:
        - get_chapter(): single record lookup by volume/chapter
        - upload_chapter(): sequential uploads, then one insert

    Records are always inserted, never upserted: posting the same
    volume/chapter twice stores two documents.
    """

    async def get_chapter(
        self,
        collection: AsyncCollection,
        volume_number: str,
        chapter_number: str,
    ) -> Dict[str, Any]:
        """
        Retrieve the chapter record matching both identifiers.

        The stored document is returned whole: every key, nested keys inside
        `data` included, with BSON values rendered as JSON.

        Query:
            {"chapter_number": chapter_number, "volume_number": volume_number}

        Raises:
            ChapterNotFoundError: No record matches (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        query = {"chapter_number": chapter_number, "volume_number": volume_number}
        try:
            document = await collection.find_one(query)
        except PyMongoError as e:
            logger.error(
                "Database error fetching volume %s chapter %s: %s",
                volume_number,
                chapter_number,
                str(e),
            )
            raise DatabaseError(
                message="Could not retrieve the chapter",
                error=str(e),
                context=query,
            ) from e

        if document is None:
            raise ChapterNotFoundError(volume_number=volume_number, chapter_number=chapter_number)

        return render_document(document)

    async def upload_chapter(
        self,
        collection: AsyncCollection,
        imagekit: ImageKitService,
        files: List[UploadFile],
        volume_number: str,
        chapter_number: str,
        folder: str = DEFAULT_FOLDER,
    ) -> InsertResult:
        """
        Upload every file in order, then insert one chapter record.

        Args:
            collection: Chapter record collection
            imagekit: Process-wide image host client
            files: Uploaded files in submission order
            volume_number: Opaque volume identifier
            chapter_number: Opaque chapter identifier
            folder: Destination folder on the image host

        Returns:
            InsertResult with the new document's id.

        Raises:
            ImageUploadError: A file failed; nothing was inserted (→ 400)
            DatabaseError: insert_one failed (→ 500)
        """
        entries: List[ImageEntry] = []

        for index, file in enumerate(files):
            file_name = image_file_name(index)
            try:
                result = await upload_file(file, file_name, imagekit, folder=folder)
            except ImageUploadError as e:
                orphaned = [entry.url for entry in entries]
                if orphaned:
                    logger.warning(
                        "Upload of %s failed; %d file(s) already stored for volume %s "
                        "chapter %s are left on the image host",
                        file_name,
                        len(orphaned),
                        volume_number,
                        chapter_number,
                    )
                e.context["uploaded_urls"] = orphaned
                raise
            entries.append(result.to_image_entry())

        record = ChapterRecord(
            data=entries,
            volume_number=volume_number,
            chapter_number=chapter_number,
        )

        try:
            insert = await collection.insert_one(record.to_document())
        except PyMongoError as e:
            logger.error(
                "Could not insert volume %s chapter %s (%d images): %s",
                volume_number,
                chapter_number,
                len(entries),
                str(e),
            )
            raise DatabaseError(
                message="Could not save the chapter",
                error=str(e),
                context={"uploaded_urls": [entry.url for entry in entries]},
            ) from e

        logger.info(
            "Chapter stored: volume %s chapter %s, %d images (id=%s)",
            volume_number,
            chapter_number,
            len(entries),
            insert.inserted_id,
        )
        return InsertResult(inserted_id=str(insert.inserted_id))


# ── Singleton Instance ────────────────────────────────────────────────────
chapter_service = ChapterService()
