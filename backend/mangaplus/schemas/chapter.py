"""
MangaPlus Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models for chapter records and the HTTP API contract.
How:   ChapterRecord builds the document inserted into MongoDB; the response
       models shape what FastAPI serializes (and documents in OpenAPI).
Who:   Used by ChapterService and the route handlers.

Stored document (collection `mangas`):
    {
        "_id": ObjectId("..."),
        "data": [{"url": "...", "height": 1600, "width": 1100}, ...],
        "volume_number": "1",
        "chapter_number": "5"
    }
"""

from typing import Any, Dict, List, Optional

from bson import Decimal128, ObjectId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, field_validator

# BSON types jsonable_encoder has no rule for
BSON_ENCODERS = {
    ObjectId: str,
    Decimal128: lambda value: str(value.to_decimal()),
}


def render_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Stored document as JSON-ready data; keys and nesting are left as stored."""
    return jsonable_encoder(document, custom_encoder=BSON_ENCODERS)


# ══════════════════════════════════════════════════════════════════════════
# Stored Data
# ══════════════════════════════════════════════════════════════════════════


class ImageEntry(BaseModel):
    """One hosted image inside a chapter record. Never updated after creation."""
    url: str = Field(description="Hosted URL of the uploaded image")
    height: int = Field(default=0, description="Image height in pixels")
    width: int = Field(default=0, description="Image width in pixels")


class ChapterRecord(BaseModel):
    """
    What:  A new chapter record, built after every file of an upload succeeded.
    Field order matches the stored document: data, volume_number, chapter_number.
    Volume and chapter numbers are opaque text; they are never parsed as numbers.
    """
    data: List[ImageEntry] = Field(default_factory=list)
    volume_number: str
    chapter_number: str

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ChapterDocument(BaseModel):
    """
    What:  OpenAPI shape of a stored chapter record.
    How:   The read route returns the stored document itself (see
           render_document); this model only documents the usual fields.
    """
    id: str = Field(alias="_id", description="Document id (hex ObjectId)")
    data: List[ImageEntry] = Field(default_factory=list)
    volume_number: str
    chapter_number: str

    model_config = {"populate_by_name": True, "extra": "allow"}

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, v: Any) -> str:
        return str(v)


class ChapterResponse(BaseModel):
    """Returned by GET /manga/{slug}/volumes/{volume_number}/chapters/{chapter_number}."""
    chapter: ChapterDocument


class InsertResult(BaseModel):
    """Identifier of the inserted chapter record."""
    inserted_id: str = Field(alias="InsertedID")

    model_config = {"populate_by_name": True}


class UploadResponse(BaseModel):
    """Returned by POST /upload once the chapter record has been inserted."""
    message: str = Field(default="success")
    responses: InsertResult


class PingResponse(BaseModel):
    """
    What:  Liveness response.
    errors: Non-fatal startup warnings (e.g. missing .env file), null when none.
    """
    message: str = Field(default="You reached the server")
    errors: Optional[List[str]] = None


class ErrorResponse(BaseModel):
    """
    What:  Error format shared by every failing endpoint.

    Fields:
        error: Underlying error text (driver or image host message)
        message: Short summary ("Error uploading file", "Chapter not found", ...)
        code: Stable machine-readable code ("upload_error", "not_found", ...)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str
    message: Optional[str] = None
    code: Optional[str] = None
    request_id: Optional[str] = None
