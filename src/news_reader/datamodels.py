from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

CATEGORIES = (
    "tech",
    "general",
    "science",
    "sports",
    "business",
    "health",
    "entertainment",
    "politics",
    "food",
    "travel",
)
DEFAULT_CATEGORY = "tech"
PAGE_SIZE = 3


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _int(data: Dict[str, Any], key: str) -> int:
    try:
        return int(data.get(key) or 0)
    except (TypeError, ValueError):
        raise ValueError(f"meta.{key} is not an integer: {data.get(key)!r}") from None


# --- Data models ---
@dataclass(frozen=True)
class Article:
    uuid: str
    title: str
    url: str
    description: str = ""
    snippet: str = ""
    image_url: Optional[str] = None
    published_at: str = ""
    source: str = ""
    categories: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Article:
        if not isinstance(data, dict):
            raise ValueError(f"article is not an object: {data!r}")
        for key in ("uuid", "title", "url"):
            if not data.get(key):
                raise ValueError(f"article is missing '{key}'")
        categories = data.get("categories") or []
        if not isinstance(categories, list):
            categories = [categories]
        return cls(
            uuid=str(data["uuid"]),
            title=str(data["title"]),
            url=str(data["url"]),
            description=_text(data, "description"),
            snippet=_text(data, "snippet"),
            image_url=data.get("image_url") or None,
            published_at=_text(data, "published_at"),
            source=_text(data, "source"),
            categories=[str(c) for c in categories],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def summary(self) -> str:
        return self.description or self.snippet

    @property
    def published_date(self) -> str:
        return self.published_at.split("T", 1)[0]


@dataclass(frozen=True)
class NewsMeta:
    found: int = 0
    returned: int = 0
    limit: int = PAGE_SIZE
    page: int = 1


@dataclass(frozen=True)
class NewsResponse:
    data: List[Article]
    meta: NewsMeta

    @classmethod
    def from_dict(cls, payload: Any) -> NewsResponse:
        """Validate a gateway payload of the form ``{data: [...], meta: {...}}``."""
        if not isinstance(payload, dict):
            raise ValueError("response is not an object")
        data = payload.get("data")
        if not isinstance(data, list):
            raise ValueError("response 'data' is not a list")
        meta = payload.get("meta") or {}
        if not isinstance(meta, dict):
            raise ValueError("response 'meta' is not an object")
        return cls(
            data=[Article.from_dict(item) for item in data],
            meta=NewsMeta(
                found=_int(meta, "found"),
                returned=_int(meta, "returned"),
                limit=_int(meta, "limit") or PAGE_SIZE,
                page=_int(meta, "page") or 1,
            ),
        )
