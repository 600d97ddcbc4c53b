from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup
from rich.markup import escape
from rich.text import Text
from textual.reactive import reactive
from textual.widgets import ListItem, Static

from .datamodels import Article


def clean_text(text: str) -> str:
    """Strip markup that sometimes leaks into upstream descriptions."""
    if not text or "<" not in text:
        return text or ""
    return BeautifulSoup(text, "lxml").get_text(" ", strip=True)


# --- UI Widgets ---
class CategoryListItem(ListItem):
    def __init__(self, category: str):
        super().__init__()
        self.category = category

    def compose(self):
        yield Static(self.category.capitalize())


class ArticleCard(Static):
    """The article currently under the cursor."""

    def show(self, article: Optional[Article], favorited: bool = False) -> None:
        if article is None:
            self.update("")
            return
        text = Text()
        text.append(clean_text(article.title), style="bold")
        text.append("\n\n")
        text.append(clean_text(article.summary))
        text.append("\n\n")
        text.append(article.source or "unknown source", style="italic")
        if article.published_date:
            text.append(f"  ·  {article.published_date}", style="dim")
        text.append("\n")
        text.append(article.url, style="underline")
        text.append("\n\n")
        text.append("★ Saved" if favorited else "☆ Save", style="bold yellow" if favorited else "dim")
        self.update(text)

    def show_message(self, title: str, detail: str = "", error: bool = False) -> None:
        text = Text(title, style="bold red" if error else "bold")
        if detail:
            text.append(f"\n\n{detail}", style="dim")
        self.update(text)


class PositionIndicator(Static):
    def show_live(self, position: int) -> None:
        dots = "• " if position > 1 else ""
        self.update(f"{dots}[b]{position}[/b] • •")

    def show_favorites(self, index: int, total: int) -> None:
        self.update(f"[b]{index + 1}[/b] / {total}" if total else "")


def describe_filter(
    category: str, search: str = "", page: int = 1, favorites: Optional[int] = None
) -> str:
    """One-line summary of what the reader is showing."""
    if favorites is not None:
        return f"★ {favorites} saved"
    term = search.strip()
    label = f'search "{term}"' if term else category
    return f"{label} · page {page}"


def status_line(filter_label: str, loading: bool, hint: str) -> str:
    parts = [escape(filter_label)] if filter_label else []
    if loading:
        parts.append("Loading...")
    if hint:
        parts.append(hint)
    return " | ".join(parts)


class StatusBar(Static):
    filter_label = reactive("")
    loading = reactive(False)
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.refresh_status()

    def refresh_status(self) -> None:
        self.update(status_line(self.filter_label, self.loading, self.keybinding_hint))

    def watch_filter_label(self, filter_label: str) -> None:
        self.refresh_status()

    def watch_loading(self, loading: bool) -> None:
        self.refresh_status()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.refresh_status()
