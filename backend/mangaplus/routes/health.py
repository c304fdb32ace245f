"""
MangaPlus Backend — Liveness Route
====================================

What:  GET /ping, a liveness check that touches no dependency.
Who:   Called by load balancers, uptime monitors and humans with curl.

`errors` lists the non-fatal startup warnings recorded by the lifespan
(e.g. a missing .env file); it is null when there are none.
"""

from fastapi import APIRouter, Request

from mangaplus.schemas.chapter import PingResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/ping",
    response_model=PingResponse,
    summary="Liveness check",
)
async def ping(request: Request) -> PingResponse:
    warnings = getattr(request.app.state, "startup_warnings", None)
    return PingResponse(errors=warnings or None)
