"""
Snippetbox: Health Check Route
==============================

GET /ping answers a literal "OK". It sits outside the session, CSRF and
authentication chain and touches no database, so it stays cheap enough for
load balancer probes.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping() -> PlainTextResponse:
    return PlainTextResponse("OK")
