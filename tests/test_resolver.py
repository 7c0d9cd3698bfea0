"""Tests for jellyrpc/resolver.py: cache-first album art resolution."""

from unittest.mock import MagicMock

import pytest

from jellyrpc.cache import ArtCache
from jellyrpc.publisher import PublishResult
from jellyrpc.resolver import ArtResolver

SERVER = "http://jellyfin.local:8096"
PLACEHOLDER = "jellyfin_logo"


class FakePublisher:
    """Returns queued results and records every source URL it is asked for."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def publish(self, source_url, headers=None):
        self.calls.append(source_url)
        return self.results.pop(0) if self.results else PublishResult(reason="bad_response", status=500)


def ok(url):
    return PublishResult(url=url, status=200)


def failed():
    return PublishResult(reason="network_error", error="boom")


@pytest.fixture()
def cache(tmp_path):
    return ArtCache(str(tmp_path / "cache.json"))


class TestKeySelection:

    def test_album_id_takes_precedence(self, cache):
        pub = FakePublisher(ok("https://files.catbox.moe/a.jpg"))
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)
        assert resolver.resolve_art("A123", "T456") == "https://files.catbox.moe/a.jpg"
        assert pub.calls == [f"{SERVER}/Items/A123/Images/Primary"]
        assert cache.data == {"A123": "https://files.catbox.moe/a.jpg"}

    def test_track_id_used_without_album(self, cache):
        pub = FakePublisher(ok("https://files.catbox.moe/t.jpg"))
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)
        assert resolver.resolve_art(None, "T456") == "https://files.catbox.moe/t.jpg"
        assert pub.calls == [f"{SERVER}/Items/T456/Images/Primary"]
        assert "T456" in cache

    def test_no_ids_returns_placeholder_without_side_effects(self):
        cache = MagicMock()
        publisher = MagicMock()
        resolver = ArtResolver(cache, publisher, SERVER, PLACEHOLDER)
        assert resolver.resolve_art(None, None) == PLACEHOLDER
        assert cache.mock_calls == []
        assert publisher.mock_calls == []

    def test_trailing_slash_on_server_url(self, cache):
        pub = FakePublisher(ok("https://x/a.jpg"))
        ArtResolver(cache, pub, SERVER + "/", PLACEHOLDER).resolve_art("A1", None)
        assert pub.calls == [f"{SERVER}/Items/A1/Images/Primary"]


class TestMemoization:

    def test_cache_hit_never_publishes(self, cache):
        cache.set("A123", "https://files.catbox.moe/cached.jpg")
        pub = FakePublisher()
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)
        for _ in range(5):
            assert resolver.resolve_art("A123", "T456") == "https://files.catbox.moe/cached.jpg"
        assert pub.calls == []

    def test_empty_cached_value_is_still_a_hit(self, cache):
        cache.set("A123", "")
        pub = FakePublisher()
        assert ArtResolver(cache, pub, SERVER, PLACEHOLDER).resolve_art("A123", None) == ""
        assert pub.calls == []

    def test_failures_retry_until_first_success(self, cache):
        pub = FakePublisher(failed(), failed(), failed(), ok("https://files.catbox.moe/a.jpg"))
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)

        for attempt in range(1, 4):
            assert resolver.resolve_art("A123", "T456") == PLACEHOLDER
            assert len(pub.calls) == attempt
            assert "A123" not in cache

        for _ in range(3):
            assert resolver.resolve_art("A123", "T456") == "https://files.catbox.moe/a.jpg"
        assert len(pub.calls) == 4

    def test_failure_is_not_written_to_disk(self, cache, tmp_path):
        resolver = ArtResolver(cache, FakePublisher(failed()), SERVER, PLACEHOLDER)
        resolver.resolve_art("A123", None)
        assert not (tmp_path / "cache.json").exists()

    def test_success_survives_restart(self, cache, tmp_path):
        ArtResolver(cache, FakePublisher(ok("https://x/a.jpg")), SERVER, PLACEHOLDER).resolve_art("A123", None)

        reloaded = ArtCache(str(tmp_path / "cache.json"))
        reloaded.load()
        pub = FakePublisher()
        assert ArtResolver(reloaded, pub, SERVER, PLACEHOLDER).resolve_art("A123", None) == "https://x/a.jpg"
        assert pub.calls == []

    def test_headers_are_passed_to_publisher(self, cache):
        publisher = MagicMock()
        publisher.publish.return_value = ok("https://x/a.jpg")
        ArtResolver(cache, publisher, SERVER, PLACEHOLDER, headers={"X-Emby-Token": "k"}).resolve_art("A1", None)
        publisher.publish.assert_called_once_with(f"{SERVER}/Items/A1/Images/Primary", headers={"X-Emby-Token": "k"})


class TestInFlight:

    def test_same_key_is_not_uploaded_twice_concurrently(self, cache):
        nested = []

        class ReentrantPublisher(FakePublisher):
            def publish(self, source_url, headers=None):
                # A second resolution while the first upload is still running
                nested.append(resolver.resolve_art("A123", None))
                return super().publish(source_url, headers)

        pub = ReentrantPublisher(ok("https://x/a.jpg"))
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)

        assert resolver.resolve_art("A123", None) == "https://x/a.jpg"
        assert nested == [PLACEHOLDER]
        assert len(pub.calls) == 1

    def test_key_released_after_failure(self, cache):
        pub = FakePublisher(failed(), ok("https://x/a.jpg"))
        resolver = ArtResolver(cache, pub, SERVER, PLACEHOLDER)
        assert resolver.resolve_art("A123", None) == PLACEHOLDER
        assert resolver.resolve_art("A123", None) == "https://x/a.jpg"
