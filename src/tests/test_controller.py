from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from news_reader.controller import NO_ARTICLES, CacheKey, ReaderController
from news_reader.datamodels import NewsMeta, NewsResponse
from news_reader.client import NewsAPIError


@pytest.fixture
def controller():
    return ReaderController()


def _loaded(controller, response_factory, page=1):
    """Start a session and deliver ``page`` 1, then walk to ``page``."""
    request = controller.start()
    controller.resolve(request, response_factory(1))
    for p in range(2, page + 1):
        request = controller.next_page()
        controller.resolve(request, response_factory(p))
    return controller


def test_start_requests_first_page_of_default_category(controller):
    request = controller.start()
    assert request.key == CacheKey("category", "tech", 1)
    assert request.search == ""
    assert controller.loading


def test_resolve_displays_and_caches(controller, response_factory):
    request = controller.start()
    response = response_factory(1)
    controller.resolve(request, response)
    assert not controller.loading
    assert controller.error is None
    assert controller.articles == response.data
    assert controller.cache[CacheKey("category", "tech", 1)] == response.data


def test_second_load_of_same_page_is_served_from_cache(controller, response_factory):
    _loaded(controller, response_factory, page=2)
    assert controller.first_page() is None
    assert controller.page == 1
    assert not controller.loading
    assert controller.articles[0].uuid == "a1-0"
    assert controller.next_page() is None
    assert controller.articles[0].uuid == "a2-0"


def test_empty_result_is_an_error_and_not_cached(controller):
    request = controller.start()
    controller.resolve(request, NewsResponse(data=[], meta=NewsMeta()))
    assert controller.error == NO_ARTICLES
    assert controller.articles == []
    assert controller.cache == {}


def test_failure_surfaces_message(controller):
    request = controller.start()
    controller.fail(request, NewsAPIError("Daily request limit reached.", 429))
    assert controller.error == "Daily request limit reached."
    assert not controller.loading


@pytest.mark.parametrize("change", ["category", "search"])
def test_filter_change_resets_session(controller, response_factory, change):
    _loaded(controller, response_factory, page=2)
    controller.index = 2
    controller.prefetched.add(3)

    if change == "category":
        request = controller.set_category("science")
        assert request.key == CacheKey("category", "science", 1)
    else:
        request = controller.set_search("  ai ")
        assert request.key == CacheKey("search", "ai", 1)

    assert controller.page == 1
    assert controller.index == 0
    assert controller.cache == {}
    assert controller.prefetched == set()
    assert controller.loading


def test_category_switch_clears_search(controller):
    controller.set_search("ai")
    request = controller.set_category("sports")
    assert controller.search == ""
    assert request.key.mode == "category"


def test_unknown_category_is_rejected(controller):
    with pytest.raises(ValueError):
        controller.set_category("weather")


def test_filter_change_does_not_reuse_old_cache(controller, response_factory):
    _loaded(controller, response_factory)
    controller.set_category("science")
    request = controller.set_category("tech")
    assert request is not None
    assert controller.load_page(1) is not None


def test_result_from_previous_filter_session_is_discarded(controller, response_factory):
    old = controller.start()
    new = controller.set_search("ai")
    controller.resolve(old, response_factory(1, prefix="old"))
    assert controller.articles == []
    assert controller.loading
    controller.resolve(new, response_factory(1, prefix="new"))
    assert controller.articles[0].uuid.startswith("new")


def test_superseded_page_load_is_discarded(controller, response_factory):
    _loaded(controller, response_factory)
    slow = controller.next_page()
    fast = controller.next_page()
    controller.resolve(fast, response_factory(3))
    controller.resolve(slow, response_factory(2))
    assert controller.page == 3
    assert controller.articles[0].uuid.startswith("a3")


def test_next_article_walks_page_then_advances(controller, response_factory):
    _loaded(controller, response_factory)
    assert controller.next_article() is None
    assert controller.next_article() is None
    assert controller.index == 2
    request = controller.next_article()
    assert request is not None and request.page == 2
    assert (controller.page, controller.index) == (2, 0)


def test_prev_article_on_first_article_of_first_page_stays(controller, response_factory):
    _loaded(controller, response_factory)
    assert controller.prev_article() is None
    assert (controller.page, controller.index) == (1, 0)


def test_prev_article_moves_to_previous_page(controller, response_factory):
    _loaded(controller, response_factory, page=2)
    controller.prev_article()
    assert (controller.page, controller.index) == (1, 0)
    # page 1 was cached on the way forward
    assert not controller.loading


def test_navigation_stays_in_bounds(controller, response_factory):
    _loaded(controller, response_factory)
    moves = ["next"] * 7 + ["prev"] * 12 + ["next"] * 2
    for move in moves:
        request = controller.next_article() if move == "next" else controller.prev_article()
        if request is not None:
            controller.resolve(request, response_factory(request.page))
        assert 0 <= controller.index < 3
        assert controller.page >= 1


def test_position_is_derived(controller, response_factory):
    _loaded(controller, response_factory, page=2)
    controller.next_article()
    assert controller.position == 5


def test_prefetch_next_page_on_second_article(controller, response_factory):
    _loaded(controller, response_factory, page=2)
    controller.next_article()
    displayed = list(controller.articles)

    requests = controller.prefetch_requests()
    assert [r.page for r in requests] == [3]
    assert requests[0].prefetch

    controller.resolve(requests[0], response_factory(3))
    assert controller.articles == displayed
    assert controller.cache[CacheKey("category", "tech", 3)][0].uuid.startswith("a3")
    assert 3 in controller.prefetched
    assert controller.prefetch_requests() == []


def test_prefetch_previous_page_on_first_article(controller, response_factory):
    _loaded(controller, response_factory, page=3)
    del controller.cache[CacheKey("category", "tech", 2)]
    assert [r.page for r in controller.prefetch_requests()] == [2]


def test_prefetch_skips_cached_and_in_flight_pages(controller, response_factory):
    _loaded(controller, response_factory, page=2)
    assert controller.prefetch_requests() == []  # page 1 cached
    controller.next_article()
    assert len(controller.prefetch_requests()) == 1
    assert controller.prefetch_requests() == []


def test_prefetch_not_issued_while_loading(controller):
    controller.start()
    assert controller.prefetch_requests() == []


def test_prefetch_failure_is_silent(controller, response_factory):
    _loaded(controller, response_factory)
    controller.next_article()
    request = controller.prefetch_requests()[0]
    controller.fail(request, NewsAPIError("boom"))
    assert controller.error is None
    assert controller.articles
    assert len(controller.prefetch_requests()) == 1


def test_favorites_overlay_navigation(response_factory, article_factory):
    favorites = MagicMock()
    favorites.articles = [article_factory("f1"), article_factory("f2")]
    controller = ReaderController(favorites=favorites)
    _loaded(controller, response_factory)

    controller.toggle_favorites_view()
    assert controller.current_article.uuid == "f1"
    controller.next_article()
    controller.next_article()
    assert controller.current_article.uuid == "f2"
    controller.prev_article()
    controller.prev_article()
    assert controller.favorites_index == 0
    assert controller.prefetch_requests() == []

    controller.toggle_favorites_view()
    assert controller.current_article.uuid.startswith("a1")


def test_toggle_current_favorite_passes_article(response_factory):
    favorites = MagicMock()
    favorites.toggle.return_value = True
    controller = ReaderController(favorites=favorites)
    _loaded(controller, response_factory)

    assert controller.toggle_current_favorite() is True
    article = controller.articles[0]
    favorites.toggle.assert_called_once_with(article.uuid, article)
