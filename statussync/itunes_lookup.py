import logging
import re
import urllib.parse
from functools import lru_cache
from typing import Optional

import requests

logger = logging.getLogger(__name__)

SEARCH_URL = "https://itunes.apple.com/search?term={term}&entity=song&limit=8"
ARTWORK_SIZE = "512x512"
_HTTP = requests.Session()


def _normalize(value: str) -> str:
    value = value.lower()
    value = value.replace("&", "and")
    value = re.sub(r"\b(feat|featuring|ft)\b\.?", "", value)
    value = re.sub(r"[^a-z0-9]+", " ", value)
    return " ".join(value.split()).strip()


def _normalize_album(value: str) -> str:
    value = value.lower()
    # Drop edition/format markers in parentheses/brackets.
    value = re.sub(r"[\(\[].*?[\)\]]", " ", value)
    value = re.sub(r"\b(deluxe|expanded|remaster(ed)?|edition|version|clean|explicit)\b", " ", value)
    return _normalize(value)


def score_result(item: dict, title_norm: str, artist_norm: str, album_norm: str) -> int:
    track_name = _normalize(item.get("trackName", "") or "")
    artist_name = _normalize(item.get("artistName", "") or "")
    album_name = _normalize_album(item.get("collectionName", "") or "")

    title_tokens = set(title_norm.split())
    if title_tokens and not title_tokens & set(track_name.split()):
        # No title overlap at all is almost always the wrong song.
        return -1

    score = 0
    if track_name == title_norm:
        score += 6
    elif title_norm in track_name or track_name in title_norm:
        score += 3

    if artist_name and artist_norm:
        if artist_name == artist_norm:
            score += 4
        elif artist_norm in artist_name or artist_name in artist_norm:
            score += 2
        elif not set(artist_norm.split()) & set(artist_name.split()):
            score -= 5

    if album_name and album_norm:
        if album_name == album_norm:
            score += 6
        elif album_norm in album_name or album_name in album_norm:
            score += 2
        else:
            score -= 2

    if item.get("artworkUrl100"):
        score += 1
    return score


def pick_best(results: list, title: str, artist: str, album: str = "") -> Optional[dict]:
    title_norm = _normalize(title)
    artist_norm = _normalize(artist)
    album_norm = _normalize_album(album)
    if not results:
        return None
    scored = sorted(
        ((item, score_result(item, title_norm, artist_norm, album_norm)) for item in results),
        key=lambda x: x[1],
        reverse=True,
    )
    item, best = scored[0]
    min_score = 4 if artist_norm else 3
    return item if best >= min_score else None


@lru_cache(maxsize=256)
def lookup_artwork_url(title: str, artist: str, album: str = "") -> Optional[str]:
    """Best-effort cover art URL from the iTunes Search API (None when no good match)."""
    title = (title or "").strip()
    artist = (artist or "").strip()
    album = (album or "").strip()
    if not title:
        return None

    term = urllib.parse.quote(f"{title} {artist} {album}".strip())
    try:
        r = _HTTP.get(SEARCH_URL.format(term=term), timeout=4)
        r.raise_for_status()
        results = r.json().get("results", [])
    except (requests.RequestException, ValueError) as e:
        logger.debug("[Artwork] iTunes lookup failed for %r: %s", title, e)
        return None

    item = pick_best(results, title, artist, album)
    if not item:
        return None
    artwork = item.get("artworkUrl100") or item.get("artworkUrl60")
    if artwork:
        artwork = re.sub(r"/\d+x\d+", f"/{ARTWORK_SIZE}", artwork)
        logger.debug("[Artwork] iTunes match: '%s' on '%s'", item.get("trackName"), item.get("collectionName"))
    return artwork
