from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from lyricsify.auth.manager import AuthManager
from lyricsify.auth.token import Token
from lyricsify.config import OAuthSettings
from lyricsify.errors import NetworkError, RemoteApiError
from lyricsify.events import EventChannel, ServiceError, TrackChanged
from lyricsify.spotify.client import SpotifyPlaybackClient
from lyricsify.sync.poller import TrackPoller
from tests.mocks.fakes import MemoryTokenStore, fake_response, make_track


class ScriptedPlayback:
    """Returns (or raises) the scripted results in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        res = self.results.pop(0)
        if isinstance(res, Exception):
            raise res
        return res


def _drain(channel: EventChannel) -> list:
    out = []
    while True:
        ev = channel.recv(timeout=0.01)
        if ev is None:
            return out
        out.append(ev)


def _poller(playback, channel=None, sleeps=None):
    channel = channel if channel is not None else EventChannel()
    sleeps = sleeps if sleeps is not None else []
    return TrackPoller(playback, channel, interval_s=5.0, sleep=sleeps.append), channel


class TestTrackChanges:
    def test_same_track_twice_emits_once(self):
        a, b = make_track("A"), make_track("B")
        poller, channel = _poller(ScriptedPlayback(a, a, b))
        for _ in range(3):
            assert poller.poll_once() is True

        events = _drain(channel)
        assert events == [TrackChanged(a), TrackChanged(b)]
        assert poller.last_track == b

    def test_equal_value_counts_as_same_track(self):
        poller, channel = _poller(ScriptedPlayback(make_track("A"), make_track("A")))
        poller.poll_once()
        poller.poll_once()
        assert len(_drain(channel)) == 1

    def test_stop_emits_nothing_but_resets_state(self):
        a = make_track("A")
        poller, channel = _poller(ScriptedPlayback(a, None, None, a))
        for _ in range(4):
            poller.poll_once()
        assert _drain(channel) == [TrackChanged(a), TrackChanged(a)]

    def test_nothing_playing_at_start(self):
        poller, channel = _poller(ScriptedPlayback(None))
        poller.poll_once()
        assert _drain(channel) == []
        assert poller.last_track is None


class TestRetry:
    def test_succeeds_on_third_attempt(self):
        a = make_track("A")
        sleeps: list[float] = []
        playback = ScriptedPlayback(NetworkError("down"), RemoteApiError("502"), a)
        poller, channel = _poller(playback, sleeps=sleeps)

        assert poller.fetch_with_retry() == a
        assert sleeps == [1.0, 2.0]
        assert playback.calls == 3

    def test_no_delay_after_success(self):
        sleeps: list[float] = []
        poller, _ = _poller(ScriptedPlayback(make_track("A")), sleeps=sleeps)
        poller.fetch_with_retry()
        assert sleeps == []

    def test_exhausted_retries_emit_service_error(self):
        a = make_track("A")
        sleeps: list[float] = []
        playback = ScriptedPlayback(a, NetworkError("e1"), NetworkError("e2"), NetworkError("e3"))
        poller, channel = _poller(playback, sleeps=sleeps)

        poller.poll_once()
        assert poller.poll_once() is True

        events = _drain(channel)
        assert events[0] == TrackChanged(a)
        assert isinstance(events[1], ServiceError)
        assert "after 3 attempts" in events[1].message
        assert "e3" in events[1].message
        # no sleep after the final attempt
        assert sleeps == [1.0, 2.0]
        assert poller.last_track == a

    def test_fetch_with_retry_raises_after_last_attempt(self):
        poller, _ = _poller(ScriptedPlayback(NetworkError("x"), NetworkError("y"), NetworkError("z")))
        with pytest.raises(RemoteApiError):
            poller.fetch_with_retry()


class TestLifecycle:
    def test_closed_channel_stops_poller(self):
        channel = EventChannel()
        channel.close()
        poller, _ = _poller(ScriptedPlayback(make_track("A")), channel=channel)
        assert poller.poll_once() is False

    def test_run_exits_when_channel_closed(self):
        channel = EventChannel()
        playback = ScriptedPlayback(make_track("A"))

        def fetch():
            track = playback()
            channel.close()
            return track

        poller = TrackPoller(fetch, channel, interval_s=60.0, sleep=lambda s: None)
        poller.run()
        assert playback.calls == 1

    def test_empty_retry_delays_rejected(self):
        with pytest.raises(ValueError):
            TrackPoller(lambda: None, EventChannel(), retry_delays=())

    def test_run_survives_unexpected_error(self):
        channel = EventChannel()
        a = make_track("A")
        playback = ScriptedPlayback(ValueError("invalid literal for int()"), a)

        def fetch():
            track = playback()
            channel.close()
            return track

        poller = TrackPoller(fetch, channel, interval_s=0.01, sleep=lambda s: None)
        poller.run()
        assert playback.calls == 2
        assert poller.last_track == a


class TestExpiredSession:
    """Poller wired to the real auth manager and playback client."""

    def test_failed_refresh_clears_token_and_reports(self):
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        store = MemoryTokenStore(Token("a1", "r1", now - timedelta(seconds=1), frozenset()).to_json())
        session = Mock()
        session.post.return_value = fake_response(400, {"error": "invalid_grant"})
        auth = AuthManager(
            OAuthSettings(client_id="cid", client_secret="secret", redirect_uri="http://localhost:8888/callback"),
            store,
            session=session,
            clock=lambda: now,
        )
        auth._token = Token.from_json(store.blob)
        client = SpotifyPlaybackClient(auth, session=session, base_url="https://api.test/v1")
        poller, channel = _poller(client.currently_playing)

        assert poller.poll_once() is True

        events = _drain(channel)
        assert len(events) == 1
        assert isinstance(events[0], ServiceError)
        assert "after 3 attempts" in events[0].message
        assert auth.token is None
        assert store.blob is None
        # one refresh attempt, later attempts fail fast without a token
        assert session.post.call_count == 1
        session.get.assert_not_called()
