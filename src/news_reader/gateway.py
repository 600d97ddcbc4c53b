"""HTTP gateway in front of TheNewsAPI.

Holds the API token server-side, forwards only whitelisted query keys and
maps upstream failures onto a small set of JSON error bodies.

Endpoints:
  GET /api/health
  GET /api/news/all
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import (
    REQUEST_HEADERS,
    UPSTREAM_LANGUAGE,
    GatewaySettings,
    load_gateway_settings,
    setup_server_logging,
)
from .datamodels import PAGE_SIZE

logger = logging.getLogger("news")

UPSTREAM_PATH = "/v1/news/all"
FORWARDED_PARAMS = ("page", "categories", "search")
REDACTED = "[REDACTED]"


class UpstreamError(Exception):
    """A failure to be returned to the caller as ``{error, message}``."""

    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(f"{status_code} {error}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message


def missing_token_error() -> UpstreamError:
    return UpstreamError(500, "Server configuration error", "API token not configured")


def translate_upstream_error(status_code: int, body: Any) -> UpstreamError:
    if status_code == 429:
        return UpstreamError(
            429,
            "Rate limit exceeded",
            "Daily request limit reached. Please try again tomorrow.",
        )
    if status_code in (401, 403):
        return UpstreamError(
            status_code,
            "Authentication failed",
            "TheNewsApi authentication failed. Please check your API token.",
        )
    body = body if isinstance(body, dict) else {}
    error = body.get("error")
    message = body.get("message")
    # TheNewsAPI nests its details: {"error": {"code": ..., "message": ...}}
    if isinstance(error, dict):
        message = message or error.get("message")
        error = error.get("code")
    return UpstreamError(
        status_code,
        str(error or "API request failed"),
        str(message or "An error occurred while fetching news"),
    )


def build_upstream_params(api_token: str, query: Dict[str, str]) -> Dict[str, str]:
    params = {
        "api_token": api_token,
        "language": UPSTREAM_LANGUAGE,
        "limit": str(PAGE_SIZE),
    }
    for key in FORWARDED_PARAMS:
        if key in query:
            params[key] = query[key]
    return params


def redact(params: Dict[str, str]) -> str:
    safe = dict(params)
    if "api_token" in safe:
        safe["api_token"] = REDACTED
    return urlencode(safe, safe="[]")


class NewsProxy:
    """Calls the upstream news API on behalf of the gateway."""

    def __init__(self, settings: GatewaySettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session if session is not None else self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        return s

    def fetch_all(self, query: Dict[str, str]) -> Any:
        if not self.settings.api_token:
            logger.error("[PROXY] Missing THENEWSAPI_TOKEN in environment")
            raise missing_token_error()

        params = build_upstream_params(self.settings.api_token, query)
        logger.info("[PROXY] GET %s?%s", UPSTREAM_PATH, redact(params))

        url = f"{self.settings.upstream_base_url}{UPSTREAM_PATH}"
        try:
            resp = self.session.get(url, params=params, timeout=self.settings.timeout)
        except requests.RequestException as e:
            # Exception text can embed the full URL, token included.
            logger.error("[PROXY] Network error: %s", type(e).__name__)
            raise UpstreamError(500, "Network error", "Failed to connect to news API") from None

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.ok:
            logger.error("[PROXY] API error %d: %s", resp.status_code, body)
            raise translate_upstream_error(resp.status_code, body)

        if body is None:
            logger.error("[PROXY] Upstream returned a non-JSON body (status %d)", resp.status_code)
            raise UpstreamError(502, "Bad gateway", "Invalid response from news API")
        return body


def create_app(settings: Optional[GatewaySettings] = None, proxy: Optional[NewsProxy] = None) -> FastAPI:
    settings = settings or load_gateway_settings()
    proxy = proxy if proxy is not None else NewsProxy(settings)

    app = FastAPI(title="News Reader Gateway", version="0.1.0")
    app.state.settings = settings
    app.state.proxy = proxy

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(UpstreamError)
    async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "hasToken": settings.has_token,
        }

    @app.get("/api/news/all")
    def news_all(request: Request) -> JSONResponse:
        logger.info("[PROXY] inbound %s?%s", request.url.path, request.url.query)
        return JSONResponse(content=proxy.fetch_all(dict(request.query_params)))

    return app


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="News Reader gateway")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, help="Port to listen on (default: $PORT or 5177)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_server_logging(args.debug)
    settings = load_gateway_settings()
    port = args.port or settings.port

    logger.info("[SERVER] Running on http://%s:%d", args.host, port)
    logger.info("[SERVER] API token configured: %s", settings.has_token)
    if not settings.has_token:
        logger.warning("[SERVER] THENEWSAPI_TOKEN not set in environment or .env")

    uvicorn.run(create_app(settings), host=args.host, port=port, log_level="debug" if args.debug else "info")


if __name__ == "__main__":
    main()
