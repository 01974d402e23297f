"""Pytest configuration and fixtures."""

import os
import shutil
import tempfile
from pathlib import Path

# Keep log files and config out of the real home directory
_XDG_ROOT = Path(tempfile.mkdtemp(prefix="player_client_tests_"))
os.environ.setdefault("XDG_DATA_HOME", str(_XDG_ROOT / "data"))
os.environ.setdefault("XDG_CONFIG_HOME", str(_XDG_ROOT / "config"))

import pytest

from player_client.config import Config
from player_client.events import EventBus
from player_client.exceptions import StoreError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_config(monkeypatch, temp_dir):
    """Config singleton rooted in a temporary XDG tree."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(temp_dir / "data"))
    Config.reset_instance()
    yield Config.get_instance()
    Config.reset_instance()


class FakeEngine:
    """Records commands; fail[name] makes that command raise."""

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.before_return = {}

    async def _record(self, name, *args):
        self.calls.append((name, *args))
        hook = self.before_return.get(name)
        if hook is not None:
            hook(*args)
        if name in self.fail:
            raise self.fail[name]

    async def play(self, path):
        await self._record("play", path)

    async def pause(self):
        await self._record("pause")

    async def resume(self):
        await self._record("resume")

    async def stop(self):
        await self._record("stop")

    async def seek(self, seconds):
        await self._record("seek", seconds)

    async def set_volume(self, volume):
        await self._record("set_volume", volume)

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]


class FakeStore:
    """
    In-memory data store speaking the store boundary.

    ``fail[name]`` makes that operation raise; every call is appended to
    ``calls``; ``observers`` are invoked with the operation name on each call.
    """

    def __init__(self):
        self.tracks = []
        self.playlists = []
        self.memberships = {}
        self.folders = []
        self.calls = []
        self.fail = {}
        self.observers = []
        self._next_id = 1

    def _enter(self, name, *args):
        self.calls.append((name, *args))
        for observer in list(self.observers):
            observer(name)
        if name in self.fail:
            raise self.fail[name]

    def add_track(self, track_id, path, title=None, artist=None, duration=0):
        row = {
            "id": track_id,
            "path": path,
            "title": title,
            "artist": artist,
            "album": None,
            "duration_secs": duration,
            "has_cover": False,
        }
        self.tracks.append(row)
        return row

    def add_playlist(self, playlist_id, name):
        self.playlists.append(
            {"id": playlist_id, "name": name, "createdAt": "2024-01-01 00:00:00"}
        )
        self.memberships.setdefault(playlist_id, [])

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]

    async def list_tracks(self, title_filter=None):
        self._enter("list_tracks", title_filter)
        if title_filter is None:
            return [dict(row) for row in self.tracks]
        needle = title_filter.lower()
        return [dict(row) for row in self.tracks if needle in (row["title"] or "").lower()]

    async def list_playlists(self):
        self._enter("list_playlists")
        return sorted((dict(row) for row in self.playlists), key=lambda row: row["name"])

    async def create_playlist(self, name):
        self._enter("create_playlist", name)
        if any(row["name"] == name for row in self.playlists):
            raise StoreError(f"UNIQUE constraint failed: playlists.name ({name})")
        playlist_id = f"pl-{self._next_id}"
        self._next_id += 1
        self.add_playlist(playlist_id, name)
        return playlist_id

    async def delete_playlist(self, playlist_id):
        self._enter("delete_playlist", playlist_id)
        self.playlists = [row for row in self.playlists if row["id"] != playlist_id]
        self.memberships.pop(playlist_id, None)

    async def list_tracks_for_playlist(self, playlist_id):
        self._enter("list_tracks_for_playlist", playlist_id)
        ids = self.memberships.get(playlist_id, [])
        by_id = {row["id"]: row for row in self.tracks}
        return [dict(by_id[track_id]) for track_id in ids if track_id in by_id]

    async def add_tracks_to_playlist(self, playlist_id, track_ids):
        self._enter("add_tracks_to_playlist", playlist_id, list(track_ids))
        members = self.memberships.setdefault(playlist_id, [])
        for track_id in track_ids:
            if track_id not in members:
                members.append(track_id)

    async def remove_tracks_from_playlist(self, playlist_id, track_ids):
        self._enter("remove_tracks_from_playlist", playlist_id, list(track_ids))
        members = self.memberships.get(playlist_id, [])
        self.memberships[playlist_id] = [t for t in members if t not in track_ids]

    async def list_folders(self, name_filter=None):
        self._enter("list_folders", name_filter)
        if name_filter is None:
            return [dict(row) for row in self.folders]
        needle = name_filter.lower()
        return [dict(row) for row in self.folders if needle in row["name"].lower()]

    async def add_folder(self, name, path):
        self._enter("add_folder", name, path)
        folder_id = f"folder-{self._next_id}"
        self._next_id += 1
        self.folders.append({"id": folder_id, "name": name, "path": path, "songCount": 0})
        return folder_id

    async def delete_folders(self, ids):
        self._enter("delete_folders", list(ids))
        self.folders = [row for row in self.folders if row["id"] not in ids]


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def published(event_bus):
    """Collects (event, data) pairs for the core -> UI notifications."""
    seen = []
    for event in (
        EventBus.PLAYBACK_STATE_CHANGED,
        EventBus.TRACKS_CHANGED,
        EventBus.PLAYLISTS_CHANGED,
        EventBus.PLAYLIST_TRACKS_CHANGED,
        EventBus.FOLDERS_CHANGED,
    ):
        event_bus.subscribe(event, lambda data, event=event: seen.append((event, data)))
    return seen
