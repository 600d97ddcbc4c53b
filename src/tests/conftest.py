from __future__ import annotations

import pytest

from news_reader.datamodels import Article, NewsMeta, NewsResponse


def make_article(uuid: str, **overrides) -> Article:
    data = {
        "uuid": uuid,
        "title": f"Story {uuid}",
        "url": f"https://example.com/{uuid}",
        "description": f"Description {uuid}",
        "snippet": f"Snippet {uuid}",
        "image_url": None,
        "published_at": "2024-05-01T12:00:00.000000Z",
        "source": "example.com",
        "categories": ["tech"],
    }
    data.update(overrides)
    return Article.from_dict(data)


def make_response(page: int, count: int = 3, prefix: str = "a") -> NewsResponse:
    articles = [make_article(f"{prefix}{page}-{i}") for i in range(count)]
    return NewsResponse(
        data=articles,
        meta=NewsMeta(found=100, returned=count, limit=3, page=page),
    )


@pytest.fixture
def article_factory():
    return make_article


@pytest.fixture
def response_factory():
    return make_response
