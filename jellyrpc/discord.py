import time
from typing import Optional, Callable, Dict, Any

from pypresence.presence import Presence
from pypresence.types import ActivityType

from .client import TrackInfo
from .logger import get_logger

logger = get_logger()

SMALL_IMAGE = "jellyfin_logo"
SMALL_TEXT = "Jellyfin"
BUTTON_LABEL = "Listen on Jellyfin"
CONNECT_TIMEOUT = 15
# A start timestamp drifting more than this (seconds) counts as a seek
SEEK_THRESHOLD = 5

# -------------------------
# Discord RPC
# -------------------------
class DiscordPresence:
    """Context manager and updater for Discord RPC."""

    def __init__(self, client_id: str, rpc_factory: Optional[Callable[..., Any]] = None,
                 connection_timeout: int = CONNECT_TIMEOUT):
        self.client_id = client_id
        self.rpc_factory = rpc_factory or Presence
        self.connection_timeout = connection_timeout
        self.rpc = None
        self.is_connected = False
        self.last_activity: Optional[Dict[str, Any]] = None

    def connect(self):
        try:
            self.rpc = self.rpc_factory(self.client_id, pipe=0, connection_timeout=self.connection_timeout)
            self.rpc.connect()
            self.is_connected = True
            logger.info("Connected to Discord RPC.")
        except Exception as e:
            logger.error(f"Failed to connect to Discord RPC: {e}")
            raise ConnectionError("Discord RPC connection failed.") from e

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self.is_connected:
            try:
                self.rpc.clear()
            except Exception:
                pass
            try:
                self.rpc.close()
            except Exception:
                pass
            self.is_connected = False

    # Discord rejects text fields shorter than 2 characters.
    def _safe_text(self, text: Optional[str], fallback: str) -> str:
        text = text or fallback
        return text if len(text.strip()) >= 2 else text + "\u200B"

    def build_activity(self, track: TrackInfo, image_key: str, button_url: str, now: Optional[float] = None) -> Dict[str, Any]:
        """Builds the keyword arguments for Presence.update."""
        now = time.time() if now is None else now
        start_ts = int(now - (track.position or 0))

        return {
            "activity_type": ActivityType.LISTENING,
            "details": self._safe_text(track.name, "Unknown Title"),
            "state": self._safe_text(f"by {track.artist_text}", "Unknown Artist"),
            "large_image": image_key,
            "large_text": self._safe_text(f"on {track.album}" if track.album else None, "Jellyfin"),
            "small_image": SMALL_IMAGE,
            "small_text": SMALL_TEXT,
            "start": start_ts,
            "buttons": [{"label": BUTTON_LABEL, "url": button_url}],
        }

    def _is_redundant(self, activity: Dict[str, Any]) -> bool:
        last = self.last_activity
        if last is None:
            return False
        same_fields = all(activity[k] == last.get(k) for k in activity if k != "start")
        return same_fields and abs(activity["start"] - last["start"]) <= SEEK_THRESHOLD

    def update(self, track: TrackInfo, image_key: str, button_url: str):
        """Publishes the listening activity, skipping updates that change nothing."""
        if not self.is_connected:
            logger.warning("RPC not connected, skipping update.")
            return

        activity = self.build_activity(track, image_key, button_url)
        if self._is_redundant(activity):
            return

        try:
            self.rpc.update(**activity)
        except Exception as e:
            logger.error(f"Failed to update Discord RPC: {e}")
            return
        logger.debug(f"RPC Updated: {activity['state']} - {activity['details']}")
        self.last_activity = activity

    def clear(self):
        """Clears the RPC status."""
        if self.is_connected:
            try:
                self.rpc.clear()
            except Exception as e:
                logger.debug(f"Failed to clear Discord RPC: {e}")
        self.last_activity = None
