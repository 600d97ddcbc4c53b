from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# --- Configuration ---
CONFIG_PATH = os.path.expanduser("~/.config/news/config.json")
STORAGE_DIR = os.path.expanduser("~/.config/news/storage")
FAVORITES_KEY = "news-reader-favorites"

DEFAULT_GATEWAY_URL = "http://localhost:5177"
DEFAULT_THEME = "dracula"
HTTP_TIMEOUT = 15

UPSTREAM_BASE_URL = "https://api.thenewsapi.com"
UPSTREAM_LANGUAGE = "en"
DEFAULT_PORT = 5177

REQUEST_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "news-reader/0.1",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "gateway_url": DEFAULT_GATEWAY_URL,
    "theme": DEFAULT_THEME,
}

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": (
        "[b {color}]←/→[/] article  [b {color}][ ][/] page  "
        "[b {color}]f[/] save  [b {color}]F[/] favorites"
    ),
}

# --- Logging ---
logger = logging.getLogger("news")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging for the TUI.

    The terminal belongs to the app, so records only go to a file and only
    when ``debug`` is set.
    """
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/news_debug_{ts}_{pid}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def setup_server_logging(debug: bool = False) -> None:
    """Configure logging for the gateway, which logs to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )
    for name in ("urllib3", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_config_file_exists() -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(CONFIG_PATH):
        logger.info("Config file not found at %s, creating default.", CONFIG_PATH)
        try:
            os.makedirs(os.path.dirname(CONFIG_PATH), exist_ok=True)
            with open(CONFIG_PATH, "w") as f:
                json.dump(DEFAULT_CONFIG, f, indent=2)
        except OSError as e:
            logger.error("Failed to create default config file: %s", e)


def load_config() -> Dict[str, Any]:
    """Load the reader configuration file, merged over the defaults."""
    ensure_config_file_exists()
    config = dict(DEFAULT_CONFIG)
    try:
        with open(CONFIG_PATH, "r") as f:
            loaded = json.load(f)
        if isinstance(loaded, dict):
            config.update(loaded)
        logger.info("Loaded config from %s", CONFIG_PATH)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", CONFIG_PATH, e)
    return config


@dataclass(frozen=True)
class GatewaySettings:
    """Gateway settings, read from the environment (and a ``.env`` file)."""

    api_token: Optional[str] = None
    port: int = DEFAULT_PORT
    upstream_base_url: str = UPSTREAM_BASE_URL
    timeout: float = HTTP_TIMEOUT

    @property
    def has_token(self) -> bool:
        return bool(self.api_token)


def load_gateway_settings(env_file: Optional[str] = None) -> GatewaySettings:
    load_dotenv(env_file, override=False)
    try:
        port = int(os.environ.get("PORT", DEFAULT_PORT))
    except ValueError:
        logger.warning("Ignoring invalid PORT=%r", os.environ.get("PORT"))
        port = DEFAULT_PORT
    try:
        timeout = float(os.environ.get("HTTP_TIMEOUT", HTTP_TIMEOUT))
    except ValueError:
        logger.warning("Ignoring invalid HTTP_TIMEOUT=%r", os.environ.get("HTTP_TIMEOUT"))
        timeout = HTTP_TIMEOUT
    return GatewaySettings(
        api_token=os.environ.get("THENEWSAPI_TOKEN") or None,
        port=port,
        upstream_base_url=os.environ.get("NEWS_API_BASE_URL", UPSTREAM_BASE_URL).rstrip("/"),
        timeout=timeout,
    )
