"""Status formatter: legacy composition, templates, progress bar, truncation"""
import pytest

from conftest import make_track
from statussync.config import FormatConfig
from statussync.formatter import (
    BAR_MARKER,
    BAR_SLOTS,
    ELLIPSIS,
    format_status,
    progress_bar,
    truncate,
)
from statussync.models import PlayerState

TEMPLATE = "{artist} - {song}[paused]Paused: {song}[/paused][stopped]Nothing playing[/stopped]"


def test_legacy_composition():
    payload = format_status(make_track(), 0.0, FormatConfig())
    assert payload.text == "Artist A — Title B"
    assert payload.emoji == ":musical_note:"


def test_legacy_composition_with_album_prefix_and_suffix():
    cfg = FormatConfig(include_album=True, prefix="Listening to ", suffix="  ")
    payload = format_status(make_track(), 0.0, cfg)
    assert payload.text == "Listening to Artist A — Title B (Album C)"


def test_legacy_composition_cleans_whitespace_and_fills_unknowns():
    track = make_track(artist="  Artist \n  A ", title="")
    payload = format_status(track, 0.0, FormatConfig())
    assert payload.text == "Artist A — Unknown Track"


def test_legacy_only_renders_while_playing():
    assert format_status(make_track(), 0.0, FormatConfig(), PlayerState.PAUSED) is None
    assert format_status(None, 0.0, FormatConfig(), PlayerState.STOPPED) is None


def test_truncates_to_max_length_with_ellipsis():
    payload = format_status(make_track(), 0.0, FormatConfig(max_length=10))
    assert payload.text == "Artist ..."
    assert len(payload.text) == 10
    assert payload.text.endswith(ELLIPSIS)


@pytest.mark.parametrize("max_length", [4, 7, 15, 17])
def test_truncation_law(max_length):
    text = "x" * 40
    out = truncate(text, max_length)
    assert len(out) == max_length
    assert out.endswith(ELLIPSIS)


def test_truncation_without_room_for_ellipsis():
    assert truncate("Artist A — Title B", 3) == "Art"
    assert truncate("Artist A — Title B", 1) == "A"


def test_short_text_is_untouched():
    assert truncate("short", 10) == "short"


@pytest.mark.parametrize("fraction,slot", [(0.0, 0), (0.5, 4), (1.0, 8), (0.0625, 1), (-1.0, 0), (2.0, 8)])
def test_progress_bar_marker_position(fraction, slot):
    bar = progress_bar(fraction)
    assert len(bar) == BAR_SLOTS
    assert bar.count(BAR_MARKER) == 1
    assert bar.index(BAR_MARKER) == slot


def test_template_tokens():
    cfg = FormatConfig(template="{notes} {artist} - {title} ({album}) {note}")
    payload = format_status(make_track(), 0.0, cfg)
    assert payload.text == "♫ Artist A - Title B (Album C) ♪"


def test_template_unknown_tokens_are_left_verbatim():
    cfg = FormatConfig(template="{mood} {artist}")
    assert format_status(make_track(), 0.0, cfg).text == "{mood} Artist A"


def test_template_missing_fields_render_empty():
    cfg = FormatConfig(template="{song} [{album}]")
    payload = format_status(make_track(album=""), 0.0, cfg)
    assert payload.text == "Title B []"


def test_template_bar_token():
    cfg = FormatConfig(template="{song} {bar}")
    payload = format_status(make_track(), 0.5, cfg)
    assert payload.text == f"Title B {progress_bar(0.5)}"


def test_conditional_blocks_are_exclusive():
    cfg = FormatConfig(template=TEMPLATE)
    track = make_track()
    assert format_status(track, 0.0, cfg, PlayerState.PLAYING).text == "Artist A - Title B"
    assert format_status(track, 0.0, cfg, PlayerState.PAUSED).text == "Paused: Title B"
    assert format_status(None, 0.0, cfg, PlayerState.STOPPED).text == "Nothing playing"


def test_missing_block_means_nothing_to_show():
    cfg = FormatConfig(template="{artist} - {song}")
    assert format_status(make_track(), 0.0, cfg, PlayerState.PAUSED) is None
    assert format_status(None, 0.0, cfg, PlayerState.STOPPED) is None


def test_empty_playing_body_means_nothing_to_show():
    cfg = FormatConfig(template="[paused]P[/paused]", emoji=":headphones:{bar}")
    assert format_status(make_track(), 0.5, cfg, PlayerState.PLAYING) is None
    assert format_status(make_track(), 0.5, cfg, PlayerState.PAUSED).text == f"{progress_bar(0.5)} P"


def test_bar_in_emoji_moves_to_text():
    cfg = FormatConfig(emoji=":headphones:{bar}")
    payload = format_status(make_track(), 0.5, cfg)
    assert payload.emoji == ":headphones:"
    assert payload.text == f"{progress_bar(0.5)} Artist A — Title B"


def test_truncation_applies_after_bar_is_prepended():
    cfg = FormatConfig(emoji=":headphones:{bar}", max_length=12)
    payload = format_status(make_track(), 0.0, cfg)
    assert len(payload.text) == 12
    assert payload.text.startswith(progress_bar(0.0))
    assert payload.text.endswith(ELLIPSIS)


def test_format_is_deterministic():
    cfg = FormatConfig(template="{notes} {artist} {bar}", emoji=":cd:{bar}", max_length=30)
    track = make_track()
    assert format_status(track, 0.3, cfg) == format_status(track, 0.3, cfg)
