from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from .datamodels import CATEGORIES, DEFAULT_CATEGORY, PAGE_SIZE, Article, NewsResponse
from .favorites import FavoritesStore

logger = logging.getLogger("news")

NO_ARTICLES = "No articles found"


@dataclass(frozen=True)
class CacheKey:
    mode: str  # "category" or "search"
    term: str
    page: int

    def __str__(self) -> str:
        prefix = "search" if self.mode == "search" else "cat"
        return f"{prefix}:{self.term}:{self.page}"


@dataclass(frozen=True)
class PageRequest:
    """A fetch the caller must run and hand back via ``resolve``/``fail``."""

    key: CacheKey
    category: str
    search: str
    token: int
    generation: int
    prefetch: bool = False

    @property
    def page(self) -> int:
        return self.key.page


class ReaderController:
    """Navigation, page cache and prefetch state for one reader.

    The controller never touches the network. Operations that need data
    return ``PageRequest`` objects; the caller runs them (on a worker) and
    delivers the outcome back through ``resolve`` or ``fail``. Each filter
    change starts a new generation, and results from an older generation or
    a superseded explicit load are dropped.
    """

    def __init__(self, favorites: Optional[FavoritesStore] = None, category: str = DEFAULT_CATEGORY):
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        self.favorites = favorites
        self.category = category
        self.search = ""
        self.page = 1
        self.index = 0
        self.loading = False
        self.error: Optional[str] = None
        self.articles: List[Article] = []
        self.cache: Dict[CacheKey, List[Article]] = {}
        self.prefetched: Set[int] = set()
        self.prefetching: Set[int] = set()
        self.show_favorites = False
        self.favorites_index = 0
        self._generation = 0
        self._token = 0

    # --- Filters ---
    @property
    def search_term(self) -> str:
        return self.search.strip()

    def cache_key(self, page: int) -> CacheKey:
        if self.search_term:
            return CacheKey("search", self.search_term, page)
        return CacheKey("category", self.category, page)

    def start(self) -> PageRequest:
        """Begin the first filter session."""
        return self._reset_filter_session()

    def set_category(self, category: str) -> PageRequest:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        self.category = category
        self.search = ""
        return self._reset_filter_session()

    def set_search(self, text: str) -> PageRequest:
        self.search = text
        return self._reset_filter_session()

    def _reset_filter_session(self) -> PageRequest:
        self._generation += 1
        self.page = 1
        self.index = 0
        self.articles = []
        self.error = None
        self.cache.clear()
        self.prefetched.clear()
        self.prefetching.clear()
        logger.debug("Filter session %d: %s", self._generation, self.cache_key(1))
        self.loading = True
        return self._request(1)

    # --- Loading ---
    def _request(self, page: int, prefetch: bool = False) -> PageRequest:
        if not prefetch:
            self._token += 1
        return PageRequest(
            key=self.cache_key(page),
            category=self.category,
            search=self.search_term,
            token=self._token,
            generation=self._generation,
            prefetch=prefetch,
        )

    def load_page(self, page: int, use_cache: bool = True) -> Optional[PageRequest]:
        """Show ``page``; returns ``None`` when it was served from the cache."""
        key = self.cache_key(page)
        if use_cache and key in self.cache:
            logger.debug("Using cached data for %s", key)
            # Any load still in flight is now superseded.
            self._token += 1
            self.articles = self.cache[key]
            self.error = None
            self.loading = False
            return None
        self.loading = True
        return self._request(page)

    def is_current(self, request: PageRequest) -> bool:
        if request.generation != self._generation:
            return False
        return request.prefetch or request.token == self._token

    def resolve(self, request: PageRequest, response: NewsResponse) -> None:
        if request.generation != self._generation:
            logger.debug("Discarding stale result for %s", request.key)
            return

        if request.prefetch:
            self.prefetching.discard(request.page)
            if response.data:
                self.cache[request.key] = response.data
                self.prefetched.add(request.page)
                logger.debug("Prefetched %s", request.key)
            return

        if request.token != self._token:
            logger.debug("Discarding superseded result for %s", request.key)
            return

        self.loading = False
        if not response.data:
            self.articles = []
            self.error = NO_ARTICLES
            return
        self.error = None
        self.articles = response.data
        self.cache[request.key] = response.data

    def fail(self, request: PageRequest, exc: BaseException) -> None:
        if request.prefetch:
            if request.generation == self._generation:
                self.prefetching.discard(request.page)
            logger.error("Prefetch of %s failed: %s", request.key, exc)
            return
        if not self.is_current(request):
            logger.debug("Ignoring failure of stale request %s: %s", request.key, exc)
            return
        logger.error("Loading %s failed: %s", request.key, exc)
        self.loading = False
        self.articles = []
        self.error = str(exc) or "Failed to load news"

    def prefetch_requests(self) -> List[PageRequest]:
        """Adjacent pages worth fetching for the current read position."""
        if self.show_favorites or self.loading or not self.articles:
            return []
        pages = []
        if self.index == 1:
            pages.append(self.page + 1)
        if self.index == 0 and self.page > 1:
            pages.append(self.page - 1)
        requests = []
        for p in pages:
            if self.cache_key(p) in self.cache or p in self.prefetched or p in self.prefetching:
                continue
            self.prefetching.add(p)
            requests.append(self._request(p, prefetch=True))
        return requests

    # --- Page navigation ---
    def _go_to_page(self, page: int) -> Optional[PageRequest]:
        self.page = page
        self.index = 0
        return self.load_page(page)

    def first_page(self) -> Optional[PageRequest]:
        return self._go_to_page(1)

    def prev_page(self) -> Optional[PageRequest]:
        if self.page <= 1:
            return None
        return self._go_to_page(self.page - 1)

    def next_page(self) -> Optional[PageRequest]:
        return self._go_to_page(self.page + 1)

    def reload(self) -> Optional[PageRequest]:
        self.index = 0
        return self.load_page(self.page, use_cache=False)

    # --- Article navigation ---
    def next_article(self) -> Optional[PageRequest]:
        if self.show_favorites:
            count = len(self.displayed_articles)
            self.favorites_index = min(max(count - 1, 0), self.favorites_index + 1)
            return None
        if self.index < min(len(self.articles), PAGE_SIZE) - 1:
            self.index += 1
            return None
        return self.next_page()

    def prev_article(self) -> Optional[PageRequest]:
        if self.show_favorites:
            self.favorites_index = max(0, self.favorites_index - 1)
            return None
        if self.index > 0:
            self.index -= 1
            return None
        return self.prev_page()

    @property
    def position(self) -> int:
        return (self.page - 1) * PAGE_SIZE + self.index + 1

    # --- Favorites overlay ---
    def toggle_favorites_view(self) -> None:
        self.show_favorites = not self.show_favorites
        self.favorites_index = 0

    @property
    def displayed_articles(self) -> List[Article]:
        if self.show_favorites:
            return self.favorites.articles if self.favorites else []
        return self.articles

    @property
    def current_article(self) -> Optional[Article]:
        articles = self.displayed_articles
        i = self.favorites_index if self.show_favorites else self.index
        if 0 <= i < len(articles):
            return articles[i]
        return None

    def toggle_current_favorite(self) -> Optional[bool]:
        article = self.current_article
        if article is None or self.favorites is None:
            return None
        favorited = self.favorites.toggle(article.uuid, article)
        if self.show_favorites:
            count = len(self.displayed_articles)
            self.favorites_index = min(self.favorites_index, max(count - 1, 0))
        return favorited
