from __future__ import annotations

import hashlib
import logging
import os
from typing import Optional

logger = logging.getLogger("news")


class LocalStorage:
    """Durable string key/value store, one file per key."""

    def __init__(self, storage_dir: str):
        self.storage_dir = storage_dir
        os.makedirs(self.storage_dir, exist_ok=True)

    def _get_item_path(self, key: str) -> str:
        hashed_key = hashlib.sha256(key.encode()).hexdigest()
        return os.path.join(self.storage_dir, f"{hashed_key}.json")

    def get_item(self, key: str) -> Optional[str]:
        item_path = self._get_item_path(key)
        if not os.path.exists(item_path):
            return None

        try:
            with open(item_path, "r", encoding="utf-8") as f:
                value = f.read()
            logger.debug("Storage hit for key: %s", key)
            return value
        except (IOError, UnicodeDecodeError) as e:
            logger.warning("Failed to read storage file %s: %s", item_path, e)
            return None

    def set_item(self, key: str, value: str) -> None:
        item_path = self._get_item_path(key)
        tmp_path = f"{item_path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, item_path)
            logger.debug("Storage set for key: %s", key)
        except IOError as e:
            logger.warning("Failed to write storage file %s: %s", item_path, e)

    def remove_item(self, key: str) -> None:
        item_path = self._get_item_path(key)
        try:
            os.unlink(item_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove storage file %s: %s", item_path, e)

    def clear(self) -> None:
        """Remove every stored item."""
        for filename in os.listdir(self.storage_dir):
            file_path = os.path.join(self.storage_dir, filename)
            try:
                if os.path.isfile(file_path):
                    os.unlink(file_path)
            except OSError as e:
                logger.error("Failed to delete storage file %s: %s", file_path, e)
        logger.info("Storage cleared.")
