"""Profile photo lifecycle: swap in album artwork while playing, restore the original after."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import PlayerError, SlackApiError
from .models import Track
from .slack_client import SlackClient, detect_image_type

logger = logging.getLogger(__name__)

AUTH_HINT = (
    "Slack refused to read your profile (%s). The original photo will not be "
    "cached or restored this run; add the users.profile:read scope to the "
    "token and reinstall the app to fix this."
)


@dataclass
class PhotoState:
    custom_photo_active: bool = False
    # Sticky for the whole run once set.
    cache_unavailable: bool = False
    cache_attempted: bool = False


class PhotoManager:
    def __init__(
        self,
        client: Optional[SlackClient],
        source,
        cache_path: Optional[Path],
        enabled: bool = True,
        dry_run: bool = False,
    ):
        self.client = client
        self.source = source
        self.cache_path = Path(cache_path) if cache_path else None
        self.enabled = enabled
        self.dry_run = dry_run
        self.state = PhotoState()

    @property
    def active(self) -> bool:
        return self.state.custom_photo_active

    def has_cached_original(self) -> bool:
        return self.cache_path is not None and self.cache_path.exists()

    def ensure_original_cached(self) -> None:
        """Fetch and store the current profile photo, at most once per run."""
        if self.state.cache_attempted or self.state.cache_unavailable:
            return
        if self.cache_path is None:
            return
        # Only one attempt: after our first upload the remote photo is no longer the original.
        self.state.cache_attempted = True

        if self.cache_path.exists():
            logger.info("[Photo] Reusing cached original photo at %s", self.cache_path)
            return
        if self.dry_run:
            logger.info("[dry-run] Would cache current profile photo to %s", self.cache_path)
            return

        try:
            url = self.client.get_profile_photo_url()
            if not url:
                logger.warning("[Photo] Profile has no photo URL; nothing to cache")
                return
            data = self.client.download(url)
        except SlackApiError as e:
            if e.is_auth_error:
                self.state.cache_unavailable = True
                logger.warning(AUTH_HINT, e.code)
            else:
                logger.error("[Photo] Failed to cache original photo: %s", e)
            return

        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_bytes(data)
        except OSError as e:
            logger.error("[Photo] Failed to write photo cache at %s: %s", self.cache_path, e)
            return
        kind = detect_image_type(data)
        logger.info(
            "[Photo] Cached original photo (%d bytes, %s) at %s",
            len(data), kind[0] if kind else "unknown format", self.cache_path,
        )

    def on_track_changed(self, track: Track) -> bool:
        """Upload ``track``'s artwork as the profile photo. Returns True if a photo was set."""
        if not self.enabled:
            return False
        if not self.state.custom_photo_active:
            self.ensure_original_cached()

        try:
            artwork = self.source.export_artwork(track)
        except (PlayerError, OSError) as e:
            logger.warning("[Photo] Artwork export failed for %s — %s: %s", track.artist, track.title, e)
            artwork = None
        if artwork is None:
            logger.info("[Photo] No artwork for %s — %s; keeping current photo", track.artist, track.title)
            return False

        try:
            if self.dry_run:
                logger.info("[dry-run] Would upload artwork for %s — %s", track.artist, track.title)
            else:
                self.client.set_photo(Path(artwork).read_bytes())
                logger.info("[Photo] Profile photo set to artwork for %s — %s", track.artist, track.title)
            self.state.custom_photo_active = True
            return True
        except (SlackApiError, OSError) as e:
            logger.error("[Photo] Artwork upload failed: %s", e)
            return False
        finally:
            _remove_temp(Path(artwork))

    def on_stopped(self) -> bool:
        # A failed restore stays Active; the next retry is the exit rollback
        # (or a later stop after another track change), not the next poll.
        if not self.enabled or not self.state.custom_photo_active:
            return False
        return self.restore()

    def restore(self) -> bool:
        """Put the cached original back. A missing cache still marks the photo inactive."""
        if not self.has_cached_original():
            logger.info("[Photo] No cached original photo; nothing to restore")
            self.state.custom_photo_active = False
            return False

        if self.dry_run:
            logger.info("[dry-run] Would restore original photo from %s", self.cache_path)
            self.state.custom_photo_active = False
            return True

        try:
            self.client.set_photo(self.cache_path.read_bytes())
        except (SlackApiError, OSError) as e:
            logger.error("[Photo] Failed to restore original photo: %s", e)
            return False
        self.state.custom_photo_active = False
        logger.info("[Photo] Restored original profile photo")
        return True


def _remove_temp(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("[Photo] Could not delete temporary artwork %s: %s", path, e)
