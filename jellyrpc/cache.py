"""
Album art URL cache persisted to a JSON file.
"""
import json
import os
import tempfile
import threading
from typing import Dict, Optional

from .logger import get_logger

logger = get_logger()

class ArtCache:
    """Maps artwork identifiers to public image URLs, saved across restarts.

    ``data`` keeps its identity for the lifetime of the cache: ``load`` refills
    it in place, so anyone holding a reference sees the loaded entries.
    Writes go through a single lock.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.data: Dict[str, str] = {}
        self._lock = threading.RLock()

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def __len__(self) -> int:
        return len(self.data)

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        """Stores an entry in memory only. Use set_and_persist to also save it."""
        with self._lock:
            self.data[key] = value

    def set_and_persist(self, key: str, value: str):
        """Stores an entry and writes the whole cache to disk."""
        with self._lock:
            self.data[key] = value
            self.save()

    def load(self) -> Dict[str, str]:
        """Loads the cache file. Missing, empty or broken files give an empty cache."""
        loaded = self._read_file()
        with self._lock:
            self.data.clear()
            self.data.update(loaded)
        if loaded:
            logger.info(f"Loaded {len(loaded)} cached album art URL(s) from {self.file_path}")
        return self.data

    def _read_file(self) -> Dict[str, str]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read cache file {self.file_path}: {e}. Starting fresh.")
            return {}

        if not content.strip():
            return {}

        try:
            raw = json.loads(content)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Cache file {self.file_path} is not valid JSON ({e}). Starting fresh.")
            return {}

        if not isinstance(raw, dict):
            logger.warning(f"Cache file {self.file_path} does not hold a JSON object. Starting fresh.")
            return {}

        entries = {k: v for k, v in raw.items() if isinstance(v, str)}
        if len(entries) != len(raw):
            logger.warning(f"Ignored {len(raw) - len(entries)} malformed cache entries.")
        return entries

    def save(self):
        """Writes the cache to a temp file and swaps it in, so a crash never leaves a half-written file."""
        with self._lock:
            tmp_path = None
            try:
                directory = os.path.dirname(os.path.abspath(self.file_path))
                fd, tmp_path = tempfile.mkstemp(prefix=".artcache-", suffix=".tmp", dir=directory)
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.data, f, indent=2)
                os.replace(tmp_path, self.file_path)
                tmp_path = None
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Error saving cache: {e}")
            finally:
                if tmp_path and os.path.exists(tmp_path):
                    try:
                        os.remove(tmp_path)
                    except OSError:
                        pass
