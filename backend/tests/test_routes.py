"""
MangaPlus Backend — HTTP Endpoint Tests
=========================================

What:  End-to-end tests of /ping, the chapter read route and /upload.
How:   HTTPX AsyncClient over ASGITransport with the in-memory collection and
       the fake image host from conftest.py (no network, no database).

What we test:
    ✅ Upload of N files stores N entries in submission order
    ✅ Upload then read returns the stored record
    ✅ Failure at file k: 400, nothing inserted, earlier uploads kept on the host
    ✅ Same upload twice creates two records
    ✅ Missing form fields return 400 instead of crashing
    ✅ Not found → 404, database failure → 500
    ✅ Stored records are returned whole, extra fields and BSON values included
    ✅ Malformed multipart body returns the form error
    ✅ Unexpected errors still carry the request ID
"""

from unittest.mock import AsyncMock

import pytest
from bson import Decimal128, ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import ServerSelectionTimeoutError, WriteError


def upload_form(count, content=b"page", chapter_number="5", volume_number="1"):
    """Builds httpx multipart arguments for `count` files."""
    files = [("files", (f"page-{i}.png", content + bytes([i]), "image/png")) for i in range(count)]
    data = {}
    if chapter_number is not None:
        data["chapter_number"] = chapter_number
    if volume_number is not None:
        data["volume_number"] = volume_number
    return {"files": files, "data": data}


class TestPing:

    @pytest.mark.asyncio
    async def test_ping(self, test_client):
        response = await test_client.get("/ping")
        assert response.status_code == 200
        assert response.json() == {"message": "You reached the server", "errors": None}

    @pytest.mark.asyncio
    async def test_ping_reports_startup_warnings(self, test_client):
        from mangaplus.main import app
        app.state.startup_warnings = [".env file not found; using process environment only"]

        response = await test_client.get("/ping")
        assert response.json()["errors"] == [".env file not found; using process environment only"]

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/ping", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"


class TestGetChapter:

    @pytest.mark.asyncio
    async def test_returns_stored_record(self, test_client, fake_collection):
        oid = ObjectId()
        fake_collection.documents.append({
            "_id": oid,
            "data": [{"url": "https://ik.imagekit.io/test/MangaPlus/0.jpg", "height": 10, "width": 20}],
            "volume_number": "3",
            "chapter_number": "12",
        })

        response = await test_client.get("/manga/one-piece/volumes/3/chapters/12")

        assert response.status_code == 200
        assert response.json() == {
            "chapter": {
                "_id": str(oid),
                "data": [{"url": "https://ik.imagekit.io/test/MangaPlus/0.jpg", "height": 10, "width": 20}],
                "volume_number": "3",
                "chapter_number": "12",
            }
        }

    @pytest.mark.asyncio
    async def test_returns_fields_it_does_not_model(self, test_client, fake_collection):
        oid = ObjectId()
        series_id = ObjectId()
        fake_collection.documents.append({
            "_id": oid,
            "data": [{"url": "u", "height": 1, "width": 2, "fileId": "abc"}],
            "volume_number": "3",
            "chapter_number": "12",
            "series_id": series_id,
            "rating": Decimal128("8.5"),
        })

        response = await test_client.get("/manga/one-piece/volumes/3/chapters/12")

        assert response.status_code == 200
        assert response.json()["chapter"] == {
            "_id": str(oid),
            "data": [{"url": "u", "height": 1, "width": 2, "fileId": "abc"}],
            "volume_number": "3",
            "chapter_number": "12",
            "series_id": str(series_id),
            "rating": "8.5",
        }

    @pytest.mark.asyncio
    async def test_slug_is_not_part_of_query(self, test_client, fake_collection):
        await test_client.get("/manga/anything/volumes/3/chapters/12")
        assert fake_collection.queries == [{"chapter_number": "12", "volume_number": "3"}]

    @pytest.mark.asyncio
    async def test_numbers_are_opaque_text(self, test_client, fake_collection):
        fake_collection.documents.append(
            {"_id": ObjectId(), "data": [], "volume_number": "01", "chapter_number": "5.5"}
        )
        assert (await test_client.get("/manga/x/volumes/1/chapters/5.5")).status_code == 404
        assert (await test_client.get("/manga/x/volumes/01/chapters/5.5")).status_code == 200

    @pytest.mark.asyncio
    async def test_missing_chapter_returns_404(self, test_client):
        response = await test_client.get("/manga/one-piece/volumes/9/chapters/99")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "not_found"
        assert "99" in body["error"]

    @pytest.mark.asyncio
    async def test_database_failure_returns_500(self, test_client, fake_collection):
        fake_collection.find_one = AsyncMock(
            side_effect=ServerSelectionTimeoutError("cluster0: timed out")
        )

        response = await test_client.get("/manga/one-piece/volumes/1/chapters/1")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "cluster0: timed out"
        assert body["code"] == "database_error"


class TestUpload:

    @pytest.mark.asyncio
    async def test_upload_then_read(self, test_client, fake_collection):
        response = await test_client.post("/upload", **upload_form(2))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "success"
        inserted_id = body["responses"]["InsertedID"]
        assert ObjectId.is_valid(inserted_id)

        chapter = (await test_client.get("/manga/one-piece/volumes/1/chapters/5")).json()["chapter"]
        assert chapter["_id"] == inserted_id
        assert len(chapter["data"]) == 2

    @pytest.mark.asyncio
    async def test_entries_keep_submission_order(self, test_client, fake_collection, fake_imagekit):
        response = await test_client.post("/upload", **upload_form(4))
        assert response.status_code == 200

        assert [call["file_name"] for call in fake_imagekit.calls] == ["0.jpg", "1.jpg", "2.jpg", "3.jpg"]
        assert all(call["folder"] == "/MangaPlus" for call in fake_imagekit.calls)

        stored = fake_collection.documents[0]
        assert [entry["url"] for entry in stored["data"]] == fake_imagekit.stored
        assert stored["data"][2] == {
            "url": "https://ik.imagekit.io/test/MangaPlus/2.jpg",
            "height": 1602,
            "width": 1102,
        }
        assert stored["volume_number"] == "1"
        assert stored["chapter_number"] == "5"

    @pytest.mark.asyncio
    async def test_failed_upload_inserts_nothing(self, test_client, fake_collection, fake_imagekit):
        fake_imagekit.fail_at = 2

        response = await test_client.post("/upload", **upload_form(4))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Error uploading file"
        assert body["error"] == "Your account has exceeded the upload quota"
        assert fake_collection.documents == []
        # Files 0 and 1 stay on the host; file 3 is never attempted
        assert len(fake_imagekit.stored) == 2
        assert len(fake_imagekit.calls) == 3

    @pytest.mark.asyncio
    async def test_same_upload_twice_creates_two_records(self, test_client, fake_collection):
        first = await test_client.post("/upload", **upload_form(1))
        second = await test_client.post("/upload", **upload_form(1))

        assert first.status_code == second.status_code == 200
        assert len(fake_collection.documents) == 2
        assert first.json()["responses"]["InsertedID"] != second.json()["responses"]["InsertedID"]

    @pytest.mark.asyncio
    async def test_upload_without_files_stores_empty_chapter(self, test_client, fake_collection):
        response = await test_client.post(
            "/upload", data={"chapter_number": "5", "volume_number": "1"}
        )

        assert response.status_code == 200
        assert fake_collection.documents[0]["data"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "chapter_number, volume_number, missing",
        [
            (None, "1", ["chapter_number"]),
            ("5", None, ["volume_number"]),
            (None, None, ["chapter_number", "volume_number"]),
        ],
    )
    async def test_missing_fields_return_400(
        self, test_client, fake_collection, fake_imagekit, chapter_number, volume_number, missing
    ):
        response = await test_client.post(
            "/upload",
            **upload_form(1, chapter_number=chapter_number, volume_number=volume_number),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Error parsing form"
        assert body["code"] == "form_error"
        for field in missing:
            assert field in body["error"]
        assert fake_imagekit.calls == []
        assert fake_collection.documents == []

    @pytest.mark.asyncio
    async def test_insert_failure_returns_500(self, test_client, fake_collection):
        fake_collection.insert_one = AsyncMock(side_effect=WriteError("not authorized on mangaplus_dev"))

        response = await test_client.post("/upload", **upload_form(1))

        assert response.status_code == 500
        assert response.json()["error"] == "not authorized on mangaplus_dev"

    @pytest.mark.asyncio
    async def test_malformed_multipart_returns_form_error(self, test_client, fake_collection, fake_imagekit):
        response = await test_client.post(
            "/upload",
            content=b"--xx\r\ngarbage",
            headers={"Content-Type": "multipart/form-data"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Error parsing form"
        assert body["code"] == "form_error"
        assert body["error"]
        assert fake_imagekit.calls == []
        assert fake_collection.documents == []


class TestUnexpectedErrors:

    @pytest.mark.asyncio
    async def test_500_keeps_request_id(self, test_client, fake_collection):
        from mangaplus.main import app
        fake_collection.find_one = AsyncMock(side_effect=RuntimeError("cursor exploded"))

        # ServerErrorMiddleware re-raises after responding
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(
                "/manga/one-piece/volumes/1/chapters/1",
                headers={"X-Request-ID": "req500ab"},
            )

        assert response.status_code == 500
        assert response.headers["X-Request-ID"] == "req500ab"
        body = response.json()
        assert body["code"] == "internal_server_error"
        assert body["request_id"] == "req500ab"
        assert "cursor exploded" not in body["error"]
