"""The poll loop: query player -> reconcile status -> photo lifecycle, one cycle at a time."""
import logging
import threading
from typing import Optional

from .errors import PlayerError
from .models import Playback
from .photo import PhotoManager
from .reconciler import Action, Reconciler

logger = logging.getLogger(__name__)


class StatusSync:
    def __init__(self, source, reconciler: Reconciler, photo: Optional[PhotoManager] = None,
                 poll_seconds: float = 15.0):
        self.source = source
        self.reconciler = reconciler
        self.photo = photo
        self.poll_seconds = poll_seconds

    def read_playback(self) -> Optional[Playback]:
        try:
            return self.source.current_playback()
        except PlayerError as e:
            logger.error("[Music] Failed to read player state: %s", e)
            return None

    def tick(self) -> Action:
        playback = self.read_playback()
        action = self.reconciler.reconcile(playback)

        track = self.reconciler.visible_track(playback)
        key = track.key if track else None
        state = self.reconciler.state
        # Follows the photo lifecycle, not publish success: a failed status
        # update must not re-trigger an artwork upload on every poll.
        if key != state.last_track_key:
            state.last_track_key = key
            if track:
                logger.debug("[Music] Now playing: %s — %s (%s)", track.artist, track.title, track.source.value)
            if self.photo is not None:
                if track:
                    self.photo.on_track_changed(track)
                else:
                    self.photo.on_stopped()
        return action

    def run(self, stop_event: threading.Event) -> None:
        """Poll until ``stop_event`` is set. A cycle always finishes before the next wait."""
        logger.info("[Music] Watching %s every %.1fs…", self.source.preference, self.poll_seconds)
        while not stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("[Sync] Cycle failed")
            if stop_event.wait(timeout=self.poll_seconds):
                break
