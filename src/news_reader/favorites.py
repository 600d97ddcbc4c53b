from __future__ import annotations

import json
import logging
from typing import List, Optional

from .config import FAVORITES_KEY
from .datamodels import Article
from .storage import LocalStorage

logger = logging.getLogger("news")


class FavoritesStore:
    """Favorited article ids plus the stored article for each id.

    State is loaded once from ``storage`` and the whole record
    ``{"ids": [...], "articles": [...]}`` is rewritten on every mutation.
    """

    def __init__(self, storage: LocalStorage, key: str = FAVORITES_KEY):
        self.storage = storage
        self.key = key
        self._ids: List[str] = []
        self._articles: List[Article] = []
        self.load()

    def load(self) -> None:
        self._ids = []
        self._articles = []
        stored = self.storage.get_item(self.key)
        if not stored:
            return
        try:
            parsed = json.loads(stored)
            ids = [str(i) for i in parsed.get("ids") or []]
            articles = [Article.from_dict(a) for a in parsed.get("articles") or []]
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to parse favorites: %s", e)
            return
        self._ids = list(dict.fromkeys(ids))
        kept = set(self._ids)
        self._articles = [a for a in articles if a.uuid in kept]
        logger.info("Loaded %d favorites", len(self._ids))

    def save(self) -> None:
        self.storage.set_item(
            self.key,
            json.dumps(
                {
                    "ids": list(self._ids),
                    "articles": [a.to_dict() for a in self._articles],
                }
            ),
        )

    def toggle(self, uuid: str, article: Optional[Article] = None) -> bool:
        """Flip membership of ``uuid`` and return whether it is now a favorite."""
        if uuid in self._ids:
            self._ids.remove(uuid)
            self._articles = [a for a in self._articles if a.uuid != uuid]
            favorited = False
        else:
            self._ids.append(uuid)
            # Without a payload only the id is recorded.
            if article is not None and not any(a.uuid == uuid for a in self._articles):
                self._articles.append(article)
            favorited = True
        self.save()
        logger.debug("Favorite %s -> %s", uuid, favorited)
        return favorited

    def is_favorite(self, uuid: str) -> bool:
        return uuid in self._ids

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    @property
    def articles(self) -> List[Article]:
        return list(self._articles)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, uuid: object) -> bool:
        return uuid in self._ids
