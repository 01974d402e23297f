"""Tests for the playback reconciler."""

import logging

import pytest

from player_client.events import EventBus
from player_client.models import PlaybackStatus, Track
from player_client.reconciler import PlaybackReconciler


class TestPlaybackReconciler:
    """Test how engine events and local writes fold into the snapshot."""

    @pytest.fixture
    def library(self):
        return {"/music/a.mp3": Track(path="/music/a.mp3", id=1, title="A", duration_secs=180)}

    @pytest.fixture
    def errors(self):
        return []

    @pytest.fixture
    def reconciler(self, event_bus, library, errors):
        return PlaybackReconciler(
            event_bus, track_resolver=library.get, error_reporter=errors.append
        )

    def test_initial_snapshot(self, reconciler):
        snapshot = reconciler.snapshot
        assert snapshot.status is PlaybackStatus.STOPPED
        assert snapshot.current_item is None
        assert snapshot.volume == 1.0

    def test_playing_status_resolves_track(self, reconciler):
        """Test a playing status names the item and takes the duration."""
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3", "duration": 180})
        assert reconciler.is_playing
        assert reconciler.current_item.id == 1
        assert reconciler.current_item.title == "A"
        assert reconciler.duration == 180.0

    def test_current_item_is_a_copy(self, reconciler):
        """Test callers cannot edit the snapshot through current_item."""
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        reconciler.current_item.title = "edited"
        assert reconciler.current_item.title == "A"
        assert reconciler.snapshot.current_item.title == "A"

    def test_unknown_path_becomes_stand_in(self, reconciler):
        reconciler.handle_status({"status": "playing", "path": "/elsewhere/b.ogg"})
        assert reconciler.current_item.id is None
        assert reconciler.current_item.display_title == "b.ogg"

    def test_paused_keeps_item(self, reconciler):
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        reconciler.handle_status({"status": "paused"})
        assert reconciler.status is PlaybackStatus.PAUSED
        assert reconciler.current_item.path == "/music/a.mp3"

    def test_progress_last_write_wins(self, reconciler):
        """Test the later of two progress events is what remains."""
        reconciler.handle_progress({"position": 10, "duration": 180})
        reconciler.handle_progress({"position": 5, "duration": 180})
        assert reconciler.position == 5.0
        assert reconciler.duration == 180.0

    def test_stopped_clears_item_and_progress_does_not_restore_it(self, reconciler):
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        reconciler.handle_status({"status": "stopped"})
        reconciler.handle_progress({"position": 30, "duration": 180})
        assert reconciler.status is PlaybackStatus.STOPPED
        assert reconciler.current_item is None
        assert reconciler.position == 30.0

    def test_error_leaves_snapshot_unchanged(self, reconciler, event_bus, errors):
        """Test error events only reach the reporter."""
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        before = reconciler.snapshot.to_dict()
        changes = []
        event_bus.subscribe(EventBus.PLAYBACK_STATE_CHANGED, changes.append)

        reconciler.handle_error("decoder failure")

        assert errors == ["decoder failure"]
        assert reconciler.snapshot.to_dict() == before
        assert changes == []

    def test_error_without_reporter_is_logged(self, event_bus, caplog):
        reconciler = PlaybackReconciler(event_bus)
        with caplog.at_level(logging.ERROR, logger="player_client"):
            reconciler.handle_error({"message": "device lost"})
        assert "device lost" in caplog.text

    @pytest.mark.parametrize("position", [float("nan"), -4.0])
    def test_bad_positions_become_zero(self, reconciler, position):
        reconciler.handle_progress({"position": position, "duration": 180})
        assert reconciler.position == 0.0

    def test_position_clamped_to_duration(self, reconciler):
        reconciler.handle_progress({"position": 200, "duration": 180})
        assert reconciler.position == 180.0

    def test_zero_duration_does_not_clamp(self, reconciler):
        reconciler.handle_progress({"position": 12, "duration": 0})
        assert reconciler.position == 12.0

    def test_duplicate_status_is_harmless(self, reconciler, event_bus):
        """Test a repeated status keeps the same snapshot."""
        payload = {"status": "playing", "path": "/music/a.mp3", "duration": 180}
        reconciler.handle_status(payload)
        first = reconciler.snapshot.to_dict()
        reconciler.handle_status(payload)
        assert reconciler.snapshot.to_dict() == first

    def test_malformed_events_are_dropped(self, reconciler, event_bus):
        changes = []
        event_bus.subscribe(EventBus.PLAYBACK_STATE_CHANGED, changes.append)
        reconciler.handle_status({"status": "rewinding"})
        reconciler.handle_status("playing")
        reconciler.handle_progress({"duration": 10})
        assert changes == []
        assert reconciler.status is PlaybackStatus.STOPPED

    def test_status_is_case_insensitive(self, reconciler):
        reconciler.handle_status({"status": "PLAYING"})
        assert reconciler.is_playing

    def test_volume_is_stored_clamped(self, reconciler):
        reconciler.set_volume(1.4)
        assert reconciler.volume == 1.0
        reconciler.set_volume(-1)
        assert reconciler.volume == 0.0

    def test_note_seek(self, reconciler):
        reconciler.handle_progress({"position": 10, "duration": 180})
        reconciler.note_seek(95.5)
        assert reconciler.position == 95.5

    def test_every_change_is_published(self, reconciler, event_bus):
        """Test each committed change publishes a snapshot copy."""
        changes = []
        event_bus.subscribe(EventBus.PLAYBACK_STATE_CHANGED, changes.append)
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        reconciler.handle_progress({"position": 3, "duration": 180})
        assert len(changes) == 2
        published = changes[-1]["snapshot"]
        assert published.position_seconds == 3.0
        published.position_seconds = 99.0
        assert reconciler.position == 3.0

    def test_reset(self, reconciler):
        reconciler.handle_status({"status": "playing", "path": "/music/a.mp3"})
        reconciler.reset()
        assert reconciler.current_item is None
        assert reconciler.status is PlaybackStatus.STOPPED

    def test_resolver_failure_falls_back_to_path(self, event_bus):
        def resolver(path):
            raise KeyError(path)

        reconciler = PlaybackReconciler(event_bus, track_resolver=resolver)
        reconciler.handle_status({"status": "playing", "path": "/music/x.mp3"})
        assert reconciler.current_item.path == "/music/x.mp3"
