#statussync/music_macos.py
import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import requests

from .errors import PlayerError
from .itunes_lookup import lookup_artwork_url
from .models import Playback, PlayerState, Source, Track

logger = logging.getLogger(__name__)

DELIMITER = "||slack-nowplaying||"
OSASCRIPT_TIMEOUT = 5
DOWNLOAD_TIMEOUT = 6


@dataclass(frozen=True)
class PlayerSpec:
    source: Source
    app: str
    # Music reports duration in seconds, Spotify in milliseconds.
    duration_scale: float
    # AppleScript expression (evaluated with `t` = current track) returning
    # "<track id><DELIMITER><artwork url>".
    extra: str


PLAYERS: Dict[Source, PlayerSpec] = {
    Source.MUSIC: PlayerSpec(
        source=Source.MUSIC,
        app="Music",
        duration_scale=1.0,
        extra=f'(persistent ID of t as string) & "{DELIMITER}" & ""',
    ),
    Source.SPOTIFY: PlayerSpec(
        source=Source.SPOTIFY,
        app="Spotify",
        duration_scale=1000.0,
        extra=f'(spotify url of t as string) & "{DELIMITER}" & (artwork url of t as string)',
    ),
}

_MISSING = "missing value"


def _status_script(spec: PlayerSpec) -> str:
    d = DELIMITER
    return f'''
    if application "{spec.app}" is not running then
        return "not_running"
    end if
    tell application "{spec.app}"
        set ps to (player state as string)
        if ps is "stopped" then
            return "stopped"
        end if
        set t to current track
        return ps & "{d}" & (artist of t as string) & "{d}" & (name of t as string) & "{d}" & (album of t as string) & "{d}" & (duration of t as string) & "{d}" & (player position as string) & "{d}" & {spec.extra}
    end tell
    '''


def _music_artwork_script(target: Path) -> str:
    return f'''
    tell application "Music"
        if (count of artworks of current track) is 0 then
            return "none"
        end if
        set artData to raw data of artwork 1 of current track
    end tell
    set f to open for access (POSIX file "{target}") with write permission
    try
        set eof f to 0
        write artData to f
    end try
    close access f
    return "ok"
    '''


def _clean(value: str) -> str:
    value = (value or "").strip()
    return "" if value == _MISSING else value


def _to_float(value: str) -> float:
    # AppleScript uses the user's locale for the decimal separator.
    try:
        return float(_clean(value).replace(",", "."))
    except ValueError:
        return 0.0


def _to_state(value: str) -> PlayerState:
    value = value.strip().lower()
    if value == "paused":
        return PlayerState.PAUSED
    if value == "stopped":
        return PlayerState.STOPPED
    # "playing", "fast forwarding", "rewinding"
    return PlayerState.PLAYING


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class MacMusicSource:
    """Reads now-playing info from Music.app / Spotify via osascript.

    ``preference`` is ``music``, ``spotify`` or ``auto`` (first playing player,
    else first paused one).
    """

    def __init__(self, preference: str = "auto", runner: Optional[Runner] = None,
                 session: Optional[requests.Session] = None):
        self.preference = preference
        self._run = runner or subprocess.run
        self._http = session or requests.Session()
        self._artwork_urls: Dict[str, str] = {}

    def _players(self) -> Iterable[PlayerSpec]:
        if self.preference == "auto":
            return (PLAYERS[Source.MUSIC], PLAYERS[Source.SPOTIFY])
        return (PLAYERS[Source(self.preference)],)

    def _osascript(self, script: str, app: str) -> str:
        try:
            result = self._run(
                ["osascript", "-e", script],
                capture_output=True,
                text=True,
                timeout=OSASCRIPT_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise PlayerError(f"osascript timed out talking to {app}") from e
        except OSError as e:
            raise PlayerError(f"cannot run osascript: {e}") from e

        if result.returncode != 0:
            raise PlayerError(f"osascript failed for {app}: {(result.stderr or '').strip()}")
        return (result.stdout or "").strip()

    def query(self, spec: PlayerSpec) -> Optional[Playback]:
        out = self._osascript(_status_script(spec), spec.app)
        if not out or out == "not_running":
            return None
        if out == "stopped":
            return Playback(state=PlayerState.STOPPED)

        parts = out.split(DELIMITER)
        if len(parts) < 8:
            raise PlayerError(f"unexpected reply from {spec.app}: {out[:80]!r}")

        state, artist, title, album, duration, position, track_id, artwork_url = parts[:8]
        track_id = _clean(track_id)
        if spec.source is Source.SPOTIFY and track_id.startswith("spotify:ad:"):
            logger.debug("[Music] Spotify is playing an advertisement, ignoring")
            return None

        track = Track(
            source=spec.source,
            artist=_clean(artist),
            title=_clean(title),
            album=_clean(album),
        )
        artwork_url = _clean(artwork_url)
        if artwork_url:
            self._artwork_urls = {track.key: artwork_url}

        return Playback(
            state=_to_state(state),
            track=track,
            position=_to_float(position),
            duration=_to_float(duration) / spec.duration_scale,
        )

    def current_playback(self) -> Optional[Playback]:
        """Return the preferred player's playback, or None when no player is running."""
        found = []
        errors = []
        for spec in self._players():
            try:
                playback = self.query(spec)
            except PlayerError as e:
                errors.append(e)
                continue
            if playback is None:
                continue
            if playback.state is PlayerState.PLAYING:
                return playback
            found.append(playback)

        if not found and errors:
            raise errors[0]
        # Prefer a paused track over a bare "stopped".
        found.sort(key=lambda p: p.track is None)
        return found[0] if found else None

    def export_artwork(self, track: Track) -> Optional[Path]:
        """Write the track's artwork to a temporary file; caller deletes it."""
        if track.source is Source.MUSIC:
            path = self._export_music_artwork()
            if path:
                return path
            url = lookup_artwork_url(track.title, track.artist, track.album)
        else:
            url = self._artwork_urls.get(track.key)

        if not url:
            return None
        return self._download_to_temp(url)

    def _export_music_artwork(self) -> Optional[Path]:
        path = _temp_path(".img")
        try:
            out = self._osascript(_music_artwork_script(path), "Music")
        except PlayerError as e:
            logger.warning("[Music] Artwork export failed: %s", e)
            _remove(path)
            return None
        if out != "ok" or not path.exists() or path.stat().st_size == 0:
            _remove(path)
            return None
        return path

    def _download_to_temp(self, url: str) -> Optional[Path]:
        try:
            r = self._http.get(url, timeout=DOWNLOAD_TIMEOUT)
            r.raise_for_status()
        except requests.RequestException as e:
            logger.warning("[Music] Artwork download failed (%s): %s", url, e)
            return None
        if not r.content:
            return None
        path = _temp_path(".img")
        path.write_bytes(r.content)
        return path


def _temp_path(suffix: str) -> Path:
    fd, name = tempfile.mkstemp(prefix="slack-nowplaying-", suffix=suffix)
    os.close(fd)
    return Path(name)


def _remove(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
