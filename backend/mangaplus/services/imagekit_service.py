"""
MangaPlus Backend — ImageKit Upload Client
============================================

What:  Client for the ImageKit upload API (the external image host).
How:   One httpx.AsyncClient per process, authenticated with HTTP Basic auth
       (private key as username, empty password). Each upload is a single
       multipart POST; the JSON response is parsed into an UploadResult.
Who:   Built once in the lifespan; used by the upload adapter for every file.
When:  For each file of a POST /upload request, one call at a time.

Upload request (multipart/form-data):
    file       base64-encoded file content
    fileName   target file name ("0.jpg", "1.jpg", ...)
    folder     destination folder ("/MangaPlus")

No retries: any non-2xx status, malformed body or transport error is raised
as ImageUploadError with the host's message text.
"""

import logging
from typing import Optional

import httpx
from fastapi import Request

from mangaplus.config import Settings
from mangaplus.exceptions import ConfigurationError, ImageUploadError
from mangaplus.schemas.imagekit import UploadResult

logger = logging.getLogger(__name__)


class ImageKitService:
    """
    Thin async client for ImageKit's server-side upload endpoint.

    All three credentials are required at construction time, matching the
    ImageKit SDKs: a client that cannot authenticate is a startup failure,
    not a per-request one.
    """

    def __init__(
        self,
        private_key: str,
        public_key: str,
        url_endpoint: str,
        upload_url: str = "https://upload.imagekit.io/api/v1/files/upload",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            private_key: IMAGEKIT_PRIVATE_KEY, used for Basic auth
            public_key: IMAGEKIT_PUBLIC_KEY
            url_endpoint: IMAGEKIT_ENDPOINT_URL (https://ik.imagekit.io/<id>)
            upload_url: Upload API URL
            timeout: Per-request timeout in seconds
            transport: Override the HTTP transport (used in tests)
        """
        missing = [
            name
            for name, value in (
                ("private_key", private_key),
                ("public_key", public_key),
                ("url_endpoint", url_endpoint),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                message="ImageKit client could not be initialized",
                error=f"missing ImageKit credentials: {', '.join(missing)}",
                context={"missing": missing},
            )
        if not url_endpoint.startswith(("http://", "https://")):
            raise ConfigurationError(
                message="ImageKit client could not be initialized",
                error=f"invalid ImageKit URL endpoint: {url_endpoint!r}",
            )

        self.public_key = public_key
        self.url_endpoint = url_endpoint.rstrip("/")
        self.upload_url = upload_url
        self._client = httpx.AsyncClient(
            auth=httpx.BasicAuth(private_key, ""),
            timeout=timeout,
            transport=transport,
        )
        logger.info("ImageKitService initialized (endpoint=%s)", self.url_endpoint)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ImageKitService":
        return cls(
            private_key=settings.imagekit_private_key,
            public_key=settings.imagekit_public_key,
            url_endpoint=settings.imagekit_endpoint_url,
            upload_url=settings.imagekit_upload_url,
            timeout=settings.imagekit_timeout,
            transport=transport,
        )

    async def upload(self, file: str, file_name: str, folder: str) -> UploadResult:
        """
        Upload base64 content to ImageKit.

        Args:
            file: Base64-encoded file content
            file_name: Name to store the file under
            folder: Destination folder on the image host

        Returns:
            UploadResult with the hosted URL and image dimensions.

        Raises:
            ImageUploadError: Non-2xx response, transport failure, or a body
                without a URL.
        """
        # (None, value) tuples force multipart/form-data without filenames
        form = {
            "file": (None, file),
            "fileName": (None, file_name),
            "folder": (None, folder),
        }

        try:
            response = await self._client.post(self.upload_url, files=form)
        except httpx.HTTPError as e:
            logger.error("ImageKit upload of %s failed: %s", file_name, str(e))
            raise ImageUploadError(
                error=str(e) or type(e).__name__,
                file_name=file_name,
            ) from e

        if response.is_error:
            error = _error_message(response)
            logger.warning(
                "ImageKit rejected %s with HTTP %d: %s",
                file_name,
                response.status_code,
                error,
            )
            raise ImageUploadError(
                error=error,
                file_name=file_name,
                status=response.status_code,
            )

        try:
            result = UploadResult.model_validate(response.json())
        except ValueError as e:
            raise ImageUploadError(
                error=f"unexpected ImageKit response: {e}",
                file_name=file_name,
                status=response.status_code,
            ) from e

        logger.info("Uploaded %s to %s", file_name, result.url)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    """ImageKit error bodies look like {"message": "...", "help": "..."}."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}: {response.text or response.reason_phrase}"


# ── Request Dependency ────────────────────────────────────────────────────
def get_imagekit(request: Request) -> ImageKitService:
    """FastAPI dependency returning the process-wide ImageKit client."""
    return request.app.state.imagekit
