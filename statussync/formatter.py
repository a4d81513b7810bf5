"""Status text templating.

Templates are plain strings with ``{token}`` placeholders:

    {artist} {album} {song} / {title}   track fields ("" when missing)
    {bar}                               9-slot progress bar
    {note} {notes}                      ♪ / ♫

and two conditional blocks, ``[paused]...[/paused]`` and
``[stopped]...[/stopped]``. While playing, both blocks are removed and the
remaining text is rendered. While paused (or stopped) only the content of the
matching block is rendered; with no such block there is nothing to show.
Unknown tokens are left as they are.
"""
import math
import re
from typing import Optional

from .config import FormatConfig
from .models import DisplayPayload, PlayerState, Track

ELLIPSIS = "..."
BAR_SLOTS = 9
BAR_TRACK = "▬"
BAR_MARKER = "🔘"
BAR_TOKEN = "{bar}"

_BLOCK_TAGS = {
    PlayerState.PAUSED: "paused",
    PlayerState.STOPPED: "stopped",
}
_TOKEN_RE = re.compile(r"\{(\w+)\}")
_WS_RE = re.compile(r"\s+")


def _block_re(tag: str) -> "re.Pattern[str]":
    return re.compile(rf"\[{tag}\](.*?)\[/{tag}\]", re.DOTALL)


_BLOCK_RES = {tag: _block_re(tag) for tag in _BLOCK_TAGS.values()}


def sanitize(value: Optional[str]) -> str:
    return _WS_RE.sub(" ", value or "").strip()


def progress_bar(fraction: float) -> str:
    f = max(0.0, min(1.0, fraction))
    marker = min(BAR_SLOTS - 1, max(0, math.floor(f * (BAR_SLOTS - 1) + 0.5)))
    return BAR_TRACK * marker + BAR_MARKER + BAR_TRACK * (BAR_SLOTS - 1 - marker)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max(0, max_length)]
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def has_block(template: str, state: PlayerState) -> bool:
    tag = _BLOCK_TAGS.get(state)
    return bool(tag and template and _BLOCK_RES[tag].search(template))


def select_template_body(template: str, state: PlayerState) -> Optional[str]:
    """Return the part of ``template`` that applies to ``state`` (None = nothing to show)."""
    tag = _BLOCK_TAGS.get(state)
    if tag is None:
        body = template
        for block in _BLOCK_RES.values():
            body = block.sub("", body)
        return body
    match = _BLOCK_RES[tag].search(template)
    return match.group(1) if match else None


def render_template(template: str, track: Optional[Track], fraction: float) -> str:
    values = {
        "artist": sanitize(track.artist) if track else "",
        "album": sanitize(track.album) if track else "",
        "song": sanitize(track.title) if track else "",
        "title": sanitize(track.title) if track else "",
        "bar": progress_bar(fraction),
        "note": "♪",
        "notes": "♫",
    }

    def _sub(match: "re.Match[str]") -> str:
        return values.get(match.group(1), match.group(0))

    return sanitize(_TOKEN_RE.sub(_sub, template))


def compose_legacy(track: Track, config: FormatConfig) -> str:
    artist = sanitize(track.artist) or "Unknown Artist"
    title = sanitize(track.title) or "Unknown Track"
    album = sanitize(track.album)

    text = f"{artist} — {title}"
    if config.include_album and album:
        text += f" ({album})"
    return f"{config.prefix}{text}{config.suffix}".strip()


def format_status(
    track: Optional[Track],
    fraction: float,
    config: FormatConfig,
    state: PlayerState = PlayerState.PLAYING,
) -> Optional[DisplayPayload]:
    """Map a track and playback position to the payload to publish.

    Returns None when the configuration has nothing to show for ``state``.
    """
    if state is PlayerState.PLAYING and track is None:
        return None

    if config.template:
        body = select_template_body(config.template, state)
        if body is None:
            return None
        text = render_template(body, track, fraction)
        if not text and state is PlayerState.PLAYING:
            # e.g. a template made only of [paused]/[stopped] blocks
            return None
    else:
        if state is not PlayerState.PLAYING or track is None:
            return None
        text = compose_legacy(track, config)

    emoji = config.emoji
    if BAR_TOKEN in emoji:
        # Slack rejects anything but :shortcodes: in status_emoji.
        emoji = emoji.replace(BAR_TOKEN, "").strip()
        text = f"{progress_bar(fraction)} {text}".strip()

    return DisplayPayload(text=truncate(text, config.max_length), emoji=emoji)
