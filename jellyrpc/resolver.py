import threading
from typing import Optional, Dict, Set

from .cache import ArtCache
from .publisher import ImagePublisher
from .logger import get_logger

logger = get_logger()

class ArtResolver:
    """Turns an album/track id into a public artwork URL, uploading on first sight."""

    def __init__(self, cache: ArtCache, publisher: ImagePublisher, server_url: str, placeholder: str,
                 headers: Optional[Dict[str, str]] = None):
        self.cache = cache
        self.publisher = publisher
        self.server_url = server_url.rstrip("/")
        self.placeholder = placeholder
        self.headers = headers
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    def source_url(self, key: str) -> str:
        return f"{self.server_url}/Items/{key}/Images/Primary"

    def resolve_art(self, album_id: Optional[str], track_id: Optional[str]) -> str:
        """Returns the public art URL for the album (or track), or the placeholder.

        Only successful uploads are cached; a failed upload is retried the next
        time the same artwork is resolved.
        """
        key = album_id or track_id
        if not key:
            return self.placeholder

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self._lock:
            if key in self._in_flight:
                return self.placeholder
            self._in_flight.add(key)

        try:
            logger.info(f"Uploading album art for {key}...")
            result = self.publisher.publish(self.source_url(key), headers=self.headers)
            if not result.ok:
                logger.warning(f"Album art upload failed for {key}: {result.describe()}")
                return self.placeholder

            self.cache.set_and_persist(key, result.url)
            logger.info(f"Uploaded and cached: {result.url}")
            return result.url
        finally:
            with self._lock:
                self._in_flight.discard(key)
