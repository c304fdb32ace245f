"""
MangaPlus Backend — Document Store Connection
===============================================

What:  Async MongoDB client construction, collection accessors and the
       FastAPI dependency that hands the shared collection to route handlers.
How:   One AsyncMongoClient per process (the driver pools connections
       internally and is safe for concurrent use). The lifespan builds it,
       pings it, and stores the client and the `mangas` collection on
       app.state; handlers receive the collection through Depends().
Who:   Used by main.py (lifespan) and the route handlers.
When:  Client is created once at startup; the collection is resolved per request.

Layout:
    <MONGO_URI>
    └── mangaplus_dev          (settings.mongo_database)
        └── mangas             (settings.mongo_collection)
"""

import logging

from fastapi import Request
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from mangaplus.config import Settings
from mangaplus.exceptions import DatabaseError

logger = logging.getLogger(__name__)


async def connect_to_mongodb(settings: Settings) -> AsyncMongoClient:
    """
    Create the process-wide Mongo client and confirm the cluster is reachable.

    What:    Builds an AsyncMongoClient pinned to Stable API version 1 and
             sends a ping so bad credentials or an unreachable host fail the
             startup instead of the first request.
    Raises:  DatabaseError if the URI is invalid or the ping fails.
    """
    try:
        client: AsyncMongoClient = AsyncMongoClient(
            settings.mongo_uri,
            server_api=ServerApi("1"),
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
        )
    except PyMongoError as e:
        raise DatabaseError(
            message="Could not create the MongoDB client",
            error=str(e),
        ) from e

    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        await client.close()
        raise DatabaseError(
            message="Could not reach MongoDB",
            error=str(e),
        ) from e

    logger.info("Connected to MongoDB (database=%s)", settings.mongo_database)
    return client


def mongo_collection(
    client: AsyncMongoClient, database_name: str, collection_name: str
) -> AsyncCollection:
    """Returns a handle to `collection_name` inside `database_name`."""
    return client[database_name][collection_name]


def manga_collection(client: AsyncMongoClient, settings: Settings) -> AsyncCollection:
    """Returns the chapter record collection (mangaplus_dev.mangas by default)."""
    return mongo_collection(client, settings.mongo_database, settings.mongo_collection)


async def close_mongodb(client: AsyncMongoClient) -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await client.close()
    logger.info("MongoDB client closed")


# ── Request Dependency ────────────────────────────────────────────────────
def get_manga_collection(request: Request) -> AsyncCollection:
    """
    FastAPI dependency returning the shared chapter collection.

    Example usage in a route:
        @router.get("/chapters")
        async def read(collection: AsyncCollection = Depends(get_manga_collection)):
            return await collection.find_one({})
    """
    return request.app.state.manga_collection
