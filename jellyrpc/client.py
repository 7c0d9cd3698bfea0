from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import JellyfinConfig
from .logger import get_logger

logger = get_logger()

# Jellyfin reports positions in ticks of 100 nanoseconds
TICKS_PER_SECOND = 10_000_000

# -------------------------
# Utilities
# -------------------------
_SESSION: Optional[requests.Session] = None

def get_session() -> requests.Session:
    """Create and return a cached requests.Session with retries."""
    global _SESSION
    if _SESSION is None:
        _SESSION = requests.Session()
        retry_strategy = Retry(total=3, backoff_factor=1, status_forcelist=[429, 500, 502, 503, 504])
        adapter = HTTPAdapter(max_retries=retry_strategy)
        _SESSION.mount("http://", adapter)
        _SESSION.mount("https://", adapter)
    return _SESSION

def _normalize_id(value) -> str:
    """Jellyfin GUIDs compare equal with or without dashes, in any case."""
    return str(value or "").replace("-", "").lower()

# -------------------------
# Data Model
# -------------------------
@dataclass(slots=True)
class TrackInfo:
    id: str
    name: str
    artists: List[str] = field(default_factory=list)
    album: str = ""
    album_id: Optional[str] = None
    position: Optional[float] = None
    is_paused: bool = False

    @classmethod
    def from_session(cls, session: Optional[dict], user_id: Optional[str] = None) -> Optional["TrackInfo"]:
        """Builds a track from a /Sessions entry, or None if it isn't this user's audio."""
        if not isinstance(session, dict):
            return None
        if user_id is not None and _normalize_id(session.get("UserId")) != _normalize_id(user_id):
            return None

        item = session.get("NowPlayingItem")
        if not isinstance(item, dict) or item.get("Type") != "Audio":
            return None

        artists = item.get("Artists") or []
        if isinstance(artists, str):
            artists = [artists]
        artists = [a.strip() for a in artists if isinstance(a, str) and a.strip()]

        play_state = session.get("PlayState") or {}
        position = None
        ticks = play_state.get("PositionTicks")
        if ticks is not None:
            try:
                position = max(0.0, int(ticks) / TICKS_PER_SECOND)
            except (TypeError, ValueError):
                position = None

        return cls(
            id=str(item.get("Id", "")),
            name=item.get("Name") or "",
            artists=artists,
            album=item.get("Album") or "",
            album_id=item.get("AlbumId") or None,
            position=position,
            is_paused=bool(play_state.get("IsPaused", False)),
        )

    @property
    def artist_text(self) -> str:
        return ", ".join(self.artists) or "Unknown Artist"


# -------------------------
# Client Class
# -------------------------
class JellyfinClient:
    """Reads the now playing state from Jellyfin."""

    def __init__(self, jf_config: JellyfinConfig, session: Optional[requests.Session] = None):
        self.jf_config = jf_config
        self.server_url = jf_config.server_url
        self.headers = {"X-Emby-Token": jf_config.api_key}
        self.session = session or get_session()

    def web_url(self, item_id: str) -> str:
        """Deep link to an item in the Jellyfin web UI."""
        return f"{self.server_url}/web/index.html#!/details?id={item_id}"

    def get_sessions(self) -> List[Dict[str, Any]]:
        """Fetches active sessions. A server that is down just means nothing is playing."""
        try:
            r = self.session.get(f"{self.server_url}/Sessions", headers=self.headers, timeout=5)
            r.raise_for_status()
            data = r.json()
        except requests.exceptions.ConnectionError as e:
            logger.debug(f"Jellyfin unreachable: {e}")
            return []
        except Exception as e:
            logger.error(f"Error fetching Jellyfin sessions: {e}")
            return []
        return data if isinstance(data, list) else []

    def get_now_playing(self) -> Optional[TrackInfo]:
        """Returns the configured user's currently playing audio track, if any."""
        for session in self.get_sessions():
            track = TrackInfo.from_session(session, self.jf_config.user_id)
            if track:
                return track
        return None
