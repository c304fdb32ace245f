"""
MangaPlus Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── fake_collection: In-memory stand-in for the `mangas` collection
    ├── fake_imagekit: Records uploads, optionally fails at a given call
    ├── sample_image_bytes: Fake image content for upload tests
    └── test_client: HTTPX AsyncClient wired to the app with the fakes above

The ASGI transport does not run the lifespan, so no real MongoDB or ImageKit
client is ever built; the fakes are attached to app.state instead.
"""

import os
from typing import Any, Dict, List, Optional

# Override settings for testing BEFORE any app imports
os.environ["MONGO_URI"] = "mongodb://localhost:27017/?serverSelectionTimeoutMS=100"
os.environ["IMAGEKIT_PRIVATE_KEY"] = "private_test_key"
os.environ["IMAGEKIT_PUBLIC_KEY"] = "public_test_key"
os.environ["IMAGEKIT_ENDPOINT_URL"] = "https://ik.imagekit.io/test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.results import InsertOneResult

from mangaplus.exceptions import ImageUploadError
from mangaplus.schemas.imagekit import UploadResult


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════


class FakeCollection:
    """
    Minimal async collection: equality find_one and insert_one.

    Stored documents get an ObjectId `_id` like the real driver assigns.
    """

    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.queries: List[Dict[str, Any]] = []

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.queries.append(query)
        for document in self.documents:
            if all(document.get(key) == value for key, value in query.items()):
                return dict(document)
        return None

    async def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        stored = dict(document)
        stored["_id"] = ObjectId()
        self.documents.append(stored)
        return InsertOneResult(stored["_id"], True)


class FakeImageKit:
    """Records every upload; raises ImageUploadError on the `fail_at`-th call (0-based)."""

    def __init__(self, fail_at: Optional[int] = None) -> None:
        self.fail_at = fail_at
        self.calls: List[Dict[str, str]] = []
        self.stored: List[str] = []

    async def upload(self, file: str, file_name: str, folder: str) -> UploadResult:
        index = len(self.calls)
        self.calls.append({"file": file, "file_name": file_name, "folder": folder})
        if self.fail_at is not None and index == self.fail_at:
            raise ImageUploadError(
                error="Your account has exceeded the upload quota",
                file_name=file_name,
                status=403,
            )
        url = f"https://ik.imagekit.io/test{folder}/{file_name}"
        self.stored.append(url)
        return UploadResult(
            fileId=f"file-{index}",
            name=file_name,
            url=url,
            filePath=f"{folder}/{file_name}",
            height=1600 + index,
            width=1100 + index,
        )


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_collection():
    """A fresh, empty chapter collection."""
    return FakeCollection()


@pytest.fixture
def fake_imagekit():
    """An image host that accepts every upload."""
    return FakeImageKit()


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).
    Not a real picture; the fakes never decode it.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest_asyncio.fixture
async def test_client(fake_collection, fake_imagekit):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Usage:
        async def test_ping(test_client):
            response = await test_client.get("/ping")
            assert response.status_code == 200
    """
    from mangaplus.main import app

    app.state.manga_collection = fake_collection
    app.state.imagekit = fake_imagekit
    app.state.startup_warnings = []

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
