"""Shared fixtures for jellyrpc tests."""

import logging
from typing import Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from jellyrpc.config import Settings
from jellyrpc.logger import LOGGER_NAME


class FakeResponse:
    """Just enough of requests.Response for the code under test."""

    def __init__(self, status_code: int = 200, content: bytes = b"", headers: Optional[dict] = None,
                 text: Optional[str] = None, json_data=None):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.text = text if text is not None else content.decode("utf-8", errors="replace")
        self._json = json_data

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture(autouse=True)
def _reset_logger():
    """Undo any handlers the entry point installed during a test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def make_response():
    return FakeResponse


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        jellyfin={
            "base_url": "http://jellyfin.local:8096",
            "api_key": "secret-key",
            "user_id": "0123456789abcdef0123456789abcdef",
        },
        integration={"discord_client_id": "123456789012345678"},
        general={
            "poll_interval_seconds": 15,
            "cache_file": str(tmp_path / "album_art_cache.json"),
            "log_file": None,
        },
    )


@pytest.fixture()
def audio_session():
    """A /Sessions entry for the configured user playing a track."""
    return {
        "UserId": "0123456789abcdef0123456789abcdef",
        "NowPlayingItem": {
            "Id": "T456",
            "Name": "Everything In Its Right Place",
            "Artists": ["Radiohead"],
            "Album": "Kid A",
            "AlbumId": "A123",
            "Type": "Audio",
        },
        "PlayState": {"PositionTicks": 420_000_000, "IsPaused": False},
    }
