"""
Arrival Attest HTTP API

FastAPI transport for:
- Liveness probe (GET /api)
- Arrival verification (POST /api/verify, x-api-key required)

The gate owns no business rules: it decodes the request, hands it to the
AttestationAuthority and maps the resulting Verdict to a status code.

Run:
    uvicorn api.server:create_app --factory --port 3001

Or via the CLI:
    arrival-attest serve --env-file .env
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from arrival_attest import __version__
from arrival_attest.authority import AttestationAuthority
from arrival_attest.ip_check import client_ip
from arrival_attest.settings import Settings
from arrival_attest.verdict import INTERNAL_ERROR, Outcome, Verdict

logger = logging.getLogger(__name__)

STATUS_BY_OUTCOME = {
    Outcome.SIGNED: 200,
    Outcome.BAD_REQUEST: 400,
    Outcome.UNAUTHORIZED: 401,
    Outcome.FORBIDDEN: 403,
    Outcome.NOT_FOUND: 404,
    Outcome.INTERNAL_ERROR: 500,
}


def to_response(verdict: Verdict) -> JSONResponse:
    """Map a terminal Verdict to its HTTP response."""
    status = STATUS_BY_OUTCOME[verdict.outcome]
    if verdict.accepted:
        return JSONResponse({"signature": verdict.signature}, status_code=status)
    return JSONResponse({"error": verdict.message}, status_code=status)


def create_app(
    settings: Optional[Settings] = None,
    authority: Optional[AttestationAuthority] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        authority: Pre-built authority (tests inject one with fake keys)

    Raises:
        RuntimeError: If required configuration is missing
    """
    if settings is None and authority is None:
        settings = Settings.load()
    if authority is None:
        authority = AttestationAuthority.from_settings(settings)

    app = FastAPI(
        title="Arrival Attest API",
        description="Geofenced proof-of-arrival attestations",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.CORS_ORIGINS) if settings else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.authority = authority

    @app.get("/api", response_class=PlainTextResponse)
    def hello() -> str:
        """Liveness probe."""
        return "Hello World"

    @app.post("/api/verify")
    async def verify(request: Request) -> JSONResponse:
        """
        Verify an arrival claim and return a signature.

        Request body:
        {
            "walletAddress": "0x...",
            "destinationId": 1,
            "userLat": 19.076,
            "userLon": 72.8777
        }
        """
        try:
            try:
                payload = await request.json()
            except ValueError:
                payload = None

            ip = client_ip(
                request.headers.get("x-forwarded-for"),
                request.client.host if request.client else None,
            )
            verdict = await run_in_threadpool(
                authority.verify,
                request.headers.get("x-api-key"),
                payload,
                ip,
            )
        except Exception:
            logger.exception("Error during verification")
            verdict = Verdict.reject(Outcome.INTERNAL_ERROR, INTERNAL_ERROR)
        return to_response(verdict)

    return app
