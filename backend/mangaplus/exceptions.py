"""
MangaPlus Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message, the underlying error text and an
       optional context dict. Global exception handlers (registered in main.py)
       catch these and return structured JSON error responses.
Who:   Raised by the lifespan, the services and the routes; caught by global handlers.
When:  During startup (fatal) or request processing (translated to HTTP).

Exception Hierarchy:
    MangaPlusError (base)
    ├── ConfigurationError       → fatal at startup (never served)
    ├── FormValidationError      → 400 Bad Request
    ├── ImageUploadError         → 400 Bad Request (image host rejected the file)
    ├── ChapterNotFoundError     → 404 Not Found
    └── DatabaseError            → 500 Internal Server Error

Error body produced by the handlers:
    {
        "error": "<underlying error text>",
        "message": "<short summary>",
        "code": "<stable machine-readable code>",
        "request_id": "a1b2c3d4"
    }
"""

from typing import Any, Dict, Optional


class MangaPlusError(Exception):
    """
    Base exception for all MangaPlus application errors.

    Attributes:
        message:  Short summary, returned as `message`
        error:    Underlying error text, returned as `error` (defaults to message)
        context:  Additional debug info (logged, not returned to the client)
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error = error or message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(MangaPlusError):
    """
    Raised when the process cannot be configured or its clients cannot be built.

    What:    Missing credentials, malformed URLs, unreachable database at startup.
    When:    Only during the lifespan startup phase; the server must not begin
             serving when this is raised.
    """

    code = "configuration_error"

    def __init__(
        self,
        message: str = "Service is not configured",
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, error=error, context=context)


class FormValidationError(MangaPlusError):
    """
    Raised when the multipart upload form cannot be used.

    What:    Malformed multipart body, or a missing chapter_number/volume_number.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "missing form field(s): chapter_number",
            "message": "Error parsing form",
            "code": "form_error"
        }
    """

    status_code = 400
    code = "form_error"

    def __init__(
        self,
        error: Optional[str] = None,
        fields: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = fields
        super().__init__(message="Error parsing form", error=error, context=ctx)
        self.fields = fields or []


class ImageUploadError(MangaPlusError):
    """
    Raised when a single file could not be read or stored on the image host.

    What:    Auth failure, quota exceeded, network error, unreadable upload.
    HTTP:    400 Bad Request
    Context: file_name of the failing file; uploaded_urls of files that were
             already stored for the same request (left on the host).
    """

    status_code = 400
    code = "upload_error"

    def __init__(
        self,
        error: Optional[str] = None,
        file_name: Optional[str] = None,
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if file_name:
            ctx["file_name"] = file_name
        if status is not None:
            ctx["status"] = status
        super().__init__(message="Error uploading file", error=error, context=ctx)
        self.file_name = file_name
        self.status = status


class ChapterNotFoundError(MangaPlusError):
    """
    Raised when no chapter record matches the requested volume/chapter pair.

    HTTP:    404 Not Found
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        volume_number: str,
        chapter_number: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"volume_number": volume_number, "chapter_number": chapter_number})
        super().__init__(
            message="Chapter not found",
            error=f"no chapter {chapter_number!r} in volume {volume_number!r}",
            context=ctx,
        )


class DatabaseError(MangaPlusError):
    """
    Raised when a document store operation fails.

    What:    find_one, insert_one or the startup ping failed.
    HTTP:    500 Internal Server Error
    The driver's message is carried in `error`.
    """

    code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred",
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, error=error, context=context)
