"""Decide whether a poll result needs a Slack status update, and apply it."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import FormatConfig
from .errors import SlackApiError
from .formatter import format_status, has_block
from .models import CLEARED, DisplayPayload, Playback, PlayerState, Track
from .slack_client import SlackClient
from .status_cache import StatusCache

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    PUBLISH = "publish"
    SKIP = "skip"
    CLEAR_AND_FORGET = "clear_and_forget"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    payload: Optional[DisplayPayload] = None


SKIP = Action(ActionKind.SKIP)
CLEAR_AND_FORGET = Action(ActionKind.CLEAR_AND_FORGET, CLEARED)


@dataclass
class ReconciliationState:
    last_published: Optional[DisplayPayload] = None
    last_track_key: Optional[str] = None


class Reconciler:
    """Owns "what was last published" and turns each poll into an Action.

    ``client`` may be None in dry-run mode; publishes are then only logged.
    """

    def __init__(
        self,
        format_config: FormatConfig,
        client: Optional[SlackClient],
        cache: StatusCache,
        clear_on_pause: bool = True,
        dry_run: bool = False,
    ):
        self.format_config = format_config
        self.client = client
        self.cache = cache
        self.clear_on_pause = clear_on_pause
        self.dry_run = dry_run
        self.state = ReconciliationState()

    def visible_track(self, playback: Optional[Playback]) -> Optional[Track]:
        """The track the status is currently showing, if any."""
        if playback is None or playback.track is None:
            return None
        if playback.state is PlayerState.PLAYING:
            return playback.track
        if playback.state is PlayerState.PAUSED and has_block(self.format_config.template, PlayerState.PAUSED):
            return playback.track
        return None

    def desired_payload(self, playback: Optional[Playback]) -> Optional[DisplayPayload]:
        payload = None
        if playback is not None:
            payload = format_status(playback.track, playback.fraction, self.format_config, playback.state)
        if payload is None and self.clear_on_pause:
            return CLEARED
        return payload

    def decide(self, playback: Optional[Playback]) -> Action:
        desired = self.desired_payload(playback)
        if desired is None:
            # Remote state may have been changed elsewhere; forget what we sent.
            self.state.last_published = None
            return SKIP
        if desired == self.state.last_published:
            return SKIP
        return Action(ActionKind.PUBLISH, desired)

    def reconcile(self, playback: Optional[Playback]) -> Action:
        action = self.decide(playback)
        self.apply(action)
        return action

    def apply(self, action: Action) -> bool:
        if action.kind is ActionKind.PUBLISH:
            return self.publish(action.payload)
        if action.kind is ActionKind.CLEAR_AND_FORGET:
            return self.clear_and_forget()
        return True

    def publish(self, payload: DisplayPayload) -> bool:
        label = payload.text or "(cleared)"
        if self.dry_run:
            logger.info("[dry-run] Would update Slack status to: %s %s", payload.emoji, label)
        else:
            try:
                self.client.set_status(payload.text, payload.emoji)
            except SlackApiError as e:
                logger.error("[Slack] Failed to update status (%s); will retry next poll", e.code)
                return False
            logger.info("[Slack] Updated status to: %s", label)

        self.state.last_published = payload
        if payload.is_cleared:
            self.cache.erase()
        else:
            self.cache.write(payload)
        return True

    def clear_and_forget(self) -> bool:
        if not self.publish(CLEARED):
            return False
        self.state.last_published = None
        return self.cache.erase()
