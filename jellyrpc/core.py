import time
from typing import Optional, Callable

from .config import Settings
from .cache import ArtCache
from .client import JellyfinClient
from .discord import DiscordPresence
from .publisher import ImagePublisher
from .resolver import ArtResolver
from .logger import get_logger

logger = get_logger()

CONNECT_HELP = (
    "Please check the following:",
    "  1. Is the Discord desktop application running?",
    "  2. Is 'discord_client_id' in config.yaml correct?",
    "  3. Go to Discord Settings > Activity Privacy > 'Share your activity status by default' and ensure it's enabled.",
)

# -------------------------
# Polling Loop
# -------------------------
class PresenceLoop:
    """Runs the poll, resolve art, update presence cycle."""

    def __init__(self, client: JellyfinClient, resolver: ArtResolver, presence: DiscordPresence):
        self.client = client
        self.resolver = resolver
        self.presence = presence
        self.last_track_id: Optional[str] = None

    def tick(self):
        """One poll. Never raises, so a bad tick can't stop the loop."""
        try:
            self._tick()
        except Exception:
            logger.exception("Unexpected error during poll")

    def _tick(self):
        track = self.client.get_now_playing()

        if not track:
            if self.last_track_id is not None:
                logger.info("Playback stopped. Clearing presence.")
                self.last_track_id = None
                self.presence.clear()
            return

        if track.id != self.last_track_id:
            self.last_track_id = track.id
            logger.info(f"Now listening to: {track.artist_text} - {track.name}")

        image_key = self.resolver.resolve_art(track.album_id, track.id)
        self.presence.update(track, image_key, self.client.web_url(track.id))

    def run(self, interval: float, sleep: Callable[[float], None] = time.sleep,
            clock: Callable[[], float] = time.monotonic, max_ticks: Optional[int] = None):
        """Ticks every `interval` seconds. A slow tick delays the next one; they never overlap."""
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            started = clock()
            self.tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            elapsed = clock() - started
            if elapsed > interval:
                logger.debug(f"Poll took {elapsed:.1f}s, longer than the {interval:.0f}s interval")
            sleep(max(0.0, interval - elapsed))


# -------------------------
# Main Execution
# -------------------------
def build_loop(settings: Settings, presence: DiscordPresence) -> PresenceLoop:
    """Wires the client, cache, publisher and resolver together."""
    client = JellyfinClient(settings.jellyfin)

    cache = ArtCache(settings.cache_file)
    cache.load()

    publisher = ImagePublisher(settings.image)
    resolver = ArtResolver(
        cache=cache,
        publisher=publisher,
        server_url=settings.jellyfin.server_url,
        placeholder=settings.integration.placeholder,
        headers=client.headers if settings.image.send_token else None,
    )
    return PresenceLoop(client, resolver, presence)


def main_loop(settings: Settings, presence: Optional[DiscordPresence] = None) -> int:
    """Connects to Discord and polls until interrupted. Returns the process exit code."""
    presence = presence or DiscordPresence(settings.integration.discord_client_id)
    loop = build_loop(settings, presence)

    logger.info("Connecting to Discord RPC...")
    try:
        presence.connect()
    except ConnectionError as e:
        logger.error(f"Failed to connect: {e.__cause__ or e}")
        for line in CONNECT_HELP:
            logger.error(line)
        return 1

    logger.info("Monitoring Jellyfin for listening activity...")
    try:
        loop.run(settings.poll_interval)
    except KeyboardInterrupt:
        logger.info("Exiting gracefully...")
    finally:
        presence.close()
    return 0
