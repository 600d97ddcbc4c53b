from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .config import DEFAULT_GATEWAY_URL, HTTP_TIMEOUT, REQUEST_HEADERS
from .datamodels import DEFAULT_CATEGORY, NewsResponse

logger = logging.getLogger("news")

NEWS_PATH = "/api/news/all"
HEALTH_PATH = "/api/health"


class NewsClientError(Exception):
    """Base class for failures talking to the news gateway."""


class NewsAPIError(NewsClientError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NewsParseError(NewsClientError):
    """The gateway answered, but not with a usable news payload."""


def build_params(
    page: int, category: Optional[str] = None, search: Optional[str] = None
) -> Dict[str, str]:
    """Query parameters for one page; a search term supersedes the category."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    params = {"page": str(page)}
    term = (search or "").strip()
    if term:
        params["search"] = term
    else:
        params["categories"] = category or DEFAULT_CATEGORY
    return params


class NewsClient:
    def __init__(self, base_url: str = DEFAULT_GATEWAY_URL, timeout: float = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        return s

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise NewsAPIError("Failed to connect to news gateway") from e

    def fetch_news(
        self, page: int, category: Optional[str] = None, search: Optional[str] = None
    ) -> NewsResponse:
        params = build_params(page, category, search)
        if "search" in params:
            logger.debug('Fetching news with search: "%s", page %d', params["search"], page)
        else:
            logger.debug("Fetching news for category: %s, page %d", params["categories"], page)

        resp = self._get(NEWS_PATH, params)
        if not resp.ok:
            message = _error_message(resp)
            logger.error("Gateway error %d: %s", resp.status_code, message)
            raise NewsAPIError(message, resp.status_code)

        try:
            return NewsResponse.from_dict(resp.json())
        except ValueError as e:
            logger.error("Malformed news payload for page %d: %s", page, e)
            raise NewsParseError(f"Malformed news response: {e}") from e

    def health(self) -> Dict[str, Any]:
        resp = self._get(HEALTH_PATH)
        if not resp.ok:
            raise NewsAPIError(_error_message(resp), resp.status_code)
        try:
            payload = resp.json()
        except ValueError as e:
            raise NewsParseError("Malformed health response") from e
        if not isinstance(payload, dict):
            raise NewsParseError("Malformed health response")
        return payload


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return "Failed to fetch news"
