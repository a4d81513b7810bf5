# statussync/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Source(str, Enum):
    MUSIC = "music"
    SPOTIFY = "spotify"


class PlayerState(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Track:
    source: Source
    artist: str
    title: str
    album: str

    @property
    def key(self) -> str:
        return "|".join((self.source.value, self.artist, self.title, self.album))


@dataclass(frozen=True)
class Playback:
    state: PlayerState
    track: Optional[Track] = None
    position: float = 0.0  # seconds
    duration: float = 0.0  # seconds

    @property
    def fraction(self) -> float:
        if self.duration <= 0:
            return 0.0
        return max(0.0, min(1.0, self.position / self.duration))


@dataclass(frozen=True)
class DisplayPayload:
    text: str
    emoji: str

    @property
    def is_cleared(self) -> bool:
        return not self.text and not self.emoji


CLEARED = DisplayPayload(text="", emoji="")
