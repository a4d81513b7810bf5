"""Pytest configuration and shared fixtures"""
from pathlib import Path

import pytest

from statussync.config import FormatConfig
from statussync.errors import SlackApiError
from statussync.models import Playback, PlayerState, Source, Track
from statussync.reconciler import Reconciler
from statussync.status_cache import StatusCache


class FakeSlack:
    """Records calls; ``fail_*`` attributes hold a SlackApiError code to raise."""

    def __init__(self, photo_url="https://avatars.example/original.png", photo_bytes=b"\x89PNG\r\n\x1a\noriginal"):
        self.status_calls = []
        self.photo_uploads = []
        self.profile_fetches = 0
        self.downloads = []
        self.photo_url = photo_url
        self.photo_bytes = photo_bytes
        self.fail_status = None
        self.fail_profile = None
        self.fail_photo = None

    def set_status(self, text, emoji):
        if self.fail_status:
            raise SlackApiError(self.fail_status)
        self.status_calls.append((text, emoji))

    def get_profile_photo_url(self):
        self.profile_fetches += 1
        if self.fail_profile:
            raise SlackApiError(self.fail_profile)
        return self.photo_url

    def download(self, url):
        self.downloads.append(url)
        return self.photo_bytes

    def set_photo(self, data):
        if self.fail_photo:
            raise SlackApiError(self.fail_photo)
        self.photo_uploads.append(data)


class FakeSource:
    """Stand-in player: ``playback`` is returned as-is; artwork is written under ``tmp``."""

    preference = "auto"

    def __init__(self, tmp: Path, artwork: bytes = b"\xff\xd8\xffartwork"):
        self.tmp = tmp
        self.artwork = artwork
        self.playback = None
        self.exported = []

    def current_playback(self):
        return self.playback

    def export_artwork(self, track):
        if self.artwork is None:
            return None
        path = self.tmp / f"art-{len(self.exported)}.img"
        path.write_bytes(self.artwork)
        self.exported.append(path)
        return path


def make_track(artist="Artist A", title="Title B", album="Album C", source=Source.MUSIC):
    return Track(source=source, artist=artist, title=title, album=album)


def playing(track=None, position=0.0, duration=0.0):
    return Playback(state=PlayerState.PLAYING, track=track or make_track(), position=position, duration=duration)


@pytest.fixture
def slack():
    return FakeSlack()


@pytest.fixture
def cache(tmp_path):
    return StatusCache(tmp_path / "status.json")


@pytest.fixture
def make_reconciler(slack, cache):
    def _make(clear_on_pause=True, dry_run=False, **fmt):
        return Reconciler(FormatConfig(**fmt), slack, cache, clear_on_pause=clear_on_pause, dry_run=dry_run)
    return _make
