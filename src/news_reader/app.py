from __future__ import annotations

import logging
import webbrowser
from functools import partial
from typing import Any, Dict, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Header, Input, ListView, LoadingIndicator, Rule, Static
from textual.worker import Worker, WorkerState

from .client import NewsClient
from .config import UI_DEFAULTS
from .controller import NO_ARTICLES, PageRequest, ReaderController
from .datamodels import CATEGORIES
from .widgets import ArticleCard, CategoryListItem, PositionIndicator, StatusBar, describe_filter

logger = logging.getLogger("news")

PAGE_WORKER = "page_loader"
PREFETCH_WORKER = "prefetch"
HEALTH_WORKER = "health_check"


class NewsReaderApp(App):
    TITLE = "News Reader"
    SUB_TITLE = "Headlines, one at a time"

    CSS_PATH = "app.css"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("left", "prev_article", "Previous"),
        Binding("right", "next_article", "Next"),
        Binding("[", "prev_page", "Previous page"),
        Binding("]", "next_page", "Next page"),
        Binding("home", "first_page", "First page"),
        Binding("f", "toggle_favorite", "Save"),
        Binding("F", "toggle_favorites_view", "Favorites"),
        Binding("o", "open_in_browser", "Open"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "focus_categories", "Categories", show=False),
        Binding("ctrl+l", "toggle_left_pane", "Toggle Categories"),
    ]

    def __init__(
        self,
        client: NewsClient,
        controller: ReaderController,
        theme: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.client = client
        self.controller = controller
        self.config = config or {}
        self._theme_name = theme
        self._requests: Dict[Worker, PageRequest] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="left"):
                yield Input(placeholder="Search news...", id="search")
                yield Static("Categories", classes="pane-title")
                yield ListView(id="categories-list")
            yield Rule(orientation="vertical")
            with Vertical(id="right"):
                yield Static("", id="view-title", classes="pane-title")
                yield LoadingIndicator(id="loading")
                yield ArticleCard(id="article")
                yield PositionIndicator(id="position")
        yield StatusBar()

    def on_mount(self) -> None:
        if self._theme_name:
            self.theme = self._theme_name

        view = self.query_one("#categories-list", ListView)
        for category in CATEGORIES:
            view.append(CategoryListItem(category))
        view.focus()

        keybindings_text = self.config.get("ui", {}).get(
            "statusbar_keybindings", UI_DEFAULTS["statusbar_keybindings"]
        )
        self.query_one(StatusBar).keybinding_hint = keybindings_text.format(color="$accent")

        self.run_worker(self.client.health, name=HEALTH_WORKER, thread=True, exit_on_error=False)
        self._dispatch(self.controller.start())

    # --- Workers ---
    def _dispatch(self, request: Optional[PageRequest]) -> None:
        """Run ``request`` if there is one, then redraw and look for prefetches."""
        if request is not None:
            self._run(request)
        self._refresh_view()
        self._schedule_prefetch()

    def _run(self, request: PageRequest) -> None:
        worker = self.run_worker(
            partial(
                self.client.fetch_news,
                request.page,
                request.category,
                request.search or None,
            ),
            name=PREFETCH_WORKER if request.prefetch else PAGE_WORKER,
            group=PREFETCH_WORKER if request.prefetch else PAGE_WORKER,
            thread=True,
            exit_on_error=False,
        )
        self._requests[worker] = request

    def _schedule_prefetch(self) -> None:
        for request in self.controller.prefetch_requests():
            logger.debug("Prefetching page %d", request.page)
            self._run(request)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        name = getattr(event.worker, "name", None)
        if name == HEALTH_WORKER:
            self._handle_health(event)
            return
        if event.state in (WorkerState.PENDING, WorkerState.RUNNING):
            return
        request = self._requests.pop(event.worker, None)
        if request is None:
            return

        if event.state is WorkerState.SUCCESS:
            self.controller.resolve(request, event.worker.result)
        elif event.state is WorkerState.ERROR:
            self.controller.fail(request, event.worker.error)
        else:
            self.controller.fail(request, RuntimeError("Request cancelled"))

        if not request.prefetch:
            self._refresh_view()
            self._schedule_prefetch()

    def _handle_health(self, event: Worker.StateChanged) -> None:
        if event.state is WorkerState.SUCCESS:
            if not (event.worker.result or {}).get("hasToken"):
                self.notify("The gateway has no API token configured.", severity="warning")
        elif event.state is WorkerState.ERROR:
            logger.error("Gateway health check failed: %s", event.worker.error)
            self.notify(f"Gateway unreachable at {self.client.base_url}", severity="error")

    # --- Rendering ---
    def _refresh_view(self) -> None:
        controller = self.controller
        card = self.query_one(ArticleCard)
        position = self.query_one(PositionIndicator)
        loading = self.query_one("#loading", LoadingIndicator)
        title = self.query_one("#view-title", Static)
        status = self.query_one(StatusBar)

        if controller.show_favorites:
            title.update(f"Your Favorites ({len(controller.displayed_articles)} saved)")
            loading.display = False
            card.display = True
            status.loading = False
            status.filter_label = describe_filter(controller.category, favorites=len(controller.displayed_articles))
            articles = controller.displayed_articles
            if not articles:
                card.show_message("No favorites yet", "Start saving articles to read them later")
            else:
                card.show(controller.current_article, favorited=True)
            position.show_favorites(controller.favorites_index, len(articles))
            return

        if controller.search_term:
            title.update(f'Search: "{controller.search_term}"')
        else:
            title.update(controller.category.capitalize())

        loading.display = controller.loading
        card.display = not controller.loading
        status.loading = controller.loading
        status.filter_label = describe_filter(controller.category, controller.search, controller.page)
        position.show_live(controller.position)

        if controller.loading:
            return
        if controller.error == NO_ARTICLES or (not controller.error and not controller.articles):
            card.show_message(NO_ARTICLES, "Try a different search or category")
        elif controller.error:
            card.show_message(f"⚠ {controller.error}", error=True)
        else:
            article = controller.current_article
            favorites = controller.favorites
            card.show(article, favorited=bool(article and favorites and favorites.is_favorite(article.uuid)))

    # --- Events ---
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id == "categories-list" and isinstance(event.item, CategoryListItem):
            if self.controller.show_favorites:
                self.controller.toggle_favorites_view()
            self.query_one("#search", Input).value = ""
            self._dispatch(self.controller.set_category(event.item.category))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "search":
            return
        # Clearing the box after a category switch is not a new filter.
        if event.value == self.controller.search:
            return
        self._dispatch(self.controller.set_search(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            self.action_focus_categories()

    # --- Actions ---
    def action_next_article(self) -> None:
        self._dispatch(self.controller.next_article())

    def action_prev_article(self) -> None:
        self._dispatch(self.controller.prev_article())

    def action_first_page(self) -> None:
        if not self.controller.show_favorites:
            self._dispatch(self.controller.first_page())

    def action_prev_page(self) -> None:
        if not self.controller.show_favorites:
            self._dispatch(self.controller.prev_page())

    def action_next_page(self) -> None:
        if not self.controller.show_favorites:
            self._dispatch(self.controller.next_page())

    def action_reload(self) -> None:
        if not self.controller.show_favorites:
            self._dispatch(self.controller.reload())

    def action_toggle_favorite(self) -> None:
        favorited = self.controller.toggle_current_favorite()
        if favorited is None:
            return
        self.notify("Saved to favorites." if favorited else "Removed from favorites.")
        self._refresh_view()

    def action_toggle_favorites_view(self) -> None:
        self.controller.toggle_favorites_view()
        self.query_one("#left").display = not self.controller.show_favorites
        self._dispatch(None)

    def action_open_in_browser(self) -> None:
        article = self.controller.current_article
        if article is not None:
            webbrowser.open(article.url)

    def action_focus_search(self) -> None:
        left_pane = self.query_one("#left")
        left_pane.display = True
        self.query_one("#search", Input).focus()

    def action_focus_categories(self) -> None:
        self.query_one("#categories-list", ListView).focus()

    def action_toggle_left_pane(self) -> None:
        """Toggle the left pane."""
        left_pane = self.query_one("#left")
        left_pane.display = not left_pane.display
