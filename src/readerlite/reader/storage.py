"""Keyed JSON storage for subscriptions and read state."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from readerlite.utils.logging import get_logger

logger = get_logger(__name__)

FEEDS_KEY = "reader.feeds"
READ_KEY = "reader.read"


class LocalStore:
    """A small key/value store persisted as one JSON document.

    Every ``set_value`` rewrites the file atomically. A missing, unreadable or
    corrupt file behaves as an empty store.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable store", path=str(self._path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load_feeds(self) -> list[str]:
        """Subscribed feed URLs, newest first."""
        value = self.get_value(FEEDS_KEY, [])
        if not isinstance(value, list):
            return []
        return [url for url in value if isinstance(url, str)]

    def save_feeds(self, urls: list[str]) -> None:
        self.set_value(FEEDS_KEY, list(urls))

    def load_read(self) -> set[str]:
        """Ids of items marked as read."""
        value = self.get_value(READ_KEY, [])
        if not isinstance(value, list):
            return set()
        return {item_id for item_id in value if isinstance(item_id, str)}

    def save_read(self, ids: set[str]) -> None:
        self.set_value(READ_KEY, sorted(ids))
