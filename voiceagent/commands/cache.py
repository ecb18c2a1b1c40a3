"""In-memory phrase to action cache."""

import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CommandCache:
    """Normalized phrase -> action token. Entries live for the process lifetime."""

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self.lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def lookup(self, key: str) -> Optional[str]:
        with self.lock:
            token = self._entries.get(key)
            if token is None:
                self.misses += 1
            else:
                self.hits += 1
            return token

    def store(self, key: str, token: str) -> None:
        """Insert or overwrite an entry (last write wins)."""
        with self.lock:
            self._entries[key] = token
        logger.debug(f"Cached '{key}' => {token}")

    def snapshot(self) -> Dict[str, str]:
        with self.lock:
            return dict(self._entries)

    def __contains__(self, key: str) -> bool:
        with self.lock:
            return key in self._entries

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)
