from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import Headers

from dotenv import load_dotenv

from .aggregator import Aggregator
from .models import ErrorResponse, LookupRequest, Report
from .registry import DEFAULT_REGISTRY
from .scoring import score_report
from .settings import LookupSettings, cors_allow_origins, log_level
from .validation import InvalidEmailError, validate_email_shape


# Load environment variables from the project root .env for local dev.
_HERE = Path(__file__).resolve()
load_dotenv(_HERE.parents[1] / ".env", override=False)

logger = logging.getLogger(__name__)

# How often a running lookup checks whether its client is still there.
_DISCONNECT_POLL_S = 0.25


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s:%(name)s:%(message)s")
    yield


app = FastAPI(title="OSINT Email Lookup", version="0.1.0", lifespan=lifespan)

_aggregator = Aggregator(DEFAULT_REGISTRY, LookupSettings.from_env())


def get_aggregator() -> Aggregator:
    return _aggregator


class PreflightMiddleware:
    """Answers every OPTIONS request with an empty 204 and CORS headers.

    The allowed origin is ``*`` when every origin is allowed, otherwise the
    request's Origin when it is on the list, otherwise nothing.
    """

    def __init__(self, app, allow_origins: list[str]):
        self.app = app
        self.allow_origins = list(allow_origins)
        self.allow_all = "*" in self.allow_origins

    def _headers(self, origin: str | None) -> dict[str, str]:
        headers = {
            "access-control-allow-methods": "GET, OPTIONS",
            "access-control-allow-headers": "authorization, x-client-info, apikey, content-type",
            "access-control-max-age": "600",
        }
        if self.allow_all:
            headers["access-control-allow-origin"] = "*"
        elif origin and origin in self.allow_origins:
            headers["access-control-allow-origin"] = origin
            headers["vary"] = "Origin"
        return headers

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "OPTIONS":
            await self.app(scope, receive, send)
            return
        origin = Headers(scope=scope).get("origin")
        response = Response(status_code=204, headers=self._headers(origin))
        await response(scope, receive, send)


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins(),
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)
# Added last so it wraps CORSMiddleware and sees OPTIONS first.
app.add_middleware(PreflightMiddleware, allow_origins=cors_allow_origins())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def _run_unless_disconnected(request: Request, aw):
    """Await ``aw`` as a task; cancel it if the client goes away first.

    Returns None when the client disconnected.
    """
    task = asyncio.ensure_future(aw)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_S)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                return None
    finally:
        if not task.done():
            task.cancel()


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get(
    "/lookup",
    response_model=Report,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def lookup_endpoint(
    request: Request,
    email: str | None = Query(None),
    aggregator: Aggregator = Depends(get_aggregator),
):
    try:
        req = LookupRequest(email=validate_email_shape(email))
    except InvalidEmailError as e:
        return _error(400, str(e))

    try:
        logger.info("lookup started for %s", req.email.split("@", 1)[1])
        evidence = await _run_unless_disconnected(request, aggregator.gather_evidence(req.email))
        if evidence is None:
            logger.info("client disconnected, lookup for %s cancelled", req.email.split("@", 1)[1])
            # Nobody is listening; 499 is the conventional "client closed request".
            return Response(status_code=499)
        report = score_report(evidence)
        return JSONResponse(content=report.model_dump(mode="json"))
    except Exception:
        logger.exception("lookup failed")
        return _error(500, "Internal server error")
