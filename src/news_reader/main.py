#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys

from textual.theme import BUILTIN_THEMES

from .app import NewsReaderApp
from .client import NewsClient
from .config import DEFAULT_THEME, HTTP_TIMEOUT, STORAGE_DIR, load_config, setup_logging
from .controller import ReaderController
from .favorites import FavoritesStore
from .storage import LocalStorage

logger = logging.getLogger("news")


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="News Reader TUI Client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--theme",
        type=str,
        help=f"Set theme for this run. Available: {', '.join(sorted(BUILTIN_THEMES))}",
    )
    parser.add_argument("--gateway", type=str, help="Base URL of the news gateway")
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    theme_name = args.theme or config.get("theme") or DEFAULT_THEME

    if theme_name not in BUILTIN_THEMES:
        print(f"Theme '{theme_name}' not found, falling back to {DEFAULT_THEME}.", file=sys.stderr)
        theme_name = DEFAULT_THEME

    gateway_url = args.gateway or config["gateway_url"]
    logger.info("Using theme: %s, gateway: %s", theme_name, gateway_url)

    try:
        favorites = FavoritesStore(LocalStorage(STORAGE_DIR))
        app = NewsReaderApp(
            client=NewsClient(gateway_url, timeout=config.get("timeout", HTTP_TIMEOUT)),
            controller=ReaderController(favorites=favorites),
            theme=theme_name,
            config=config,
        )
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
