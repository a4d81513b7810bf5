# statussync/__main__.py
import logging
import sys

from .config import Settings, load_env_file
from .debug import setup_logging
from .errors import ConfigError
from .music_macos import MacMusicSource
from .photo import PhotoManager
from .reconciler import Reconciler
from .shutdown import ShutdownCoordinator
from .slack_client import SlackClient
from .status_cache import StatusCache
from .sync import StatusSync

logger = logging.getLogger("slack-nowplaying")


def build(settings: Settings):
    client = SlackClient(settings.slack_token) if settings.slack_token else None
    source = MacMusicSource(settings.player)
    reconciler = Reconciler(
        settings.format,
        client,
        StatusCache(settings.status_cache_file),
        clear_on_pause=settings.clear_on_pause,
        dry_run=settings.dry_run,
    )
    photo = PhotoManager(
        client,
        source,
        settings.photo_cache_file,
        enabled=settings.update_photo,
        dry_run=settings.dry_run,
    )
    sync = StatusSync(source, reconciler, photo, poll_seconds=settings.poll_seconds)
    coordinator = ShutdownCoordinator(reconciler, photo, clear_on_pause=settings.clear_on_pause)
    return sync, coordinator


def main() -> int:
    load_env_file()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.log_level, settings.log_file, debug=settings.debug)

    if sys.platform != "darwin":
        logger.error("slack-nowplaying only works on macOS because it talks to Music/Spotify via AppleScript.")
        return 1

    if not settings.slack_token and not settings.dry_run:
        logger.error("Missing SLACK_TOKEN. Create a Slack app with users.profile:write and export the user token.")
        return 1

    if settings.dry_run and not settings.slack_token:
        logger.warning("Running with DRY_RUN enabled and no SLACK_TOKEN. Slack will not be updated.")

    sync, coordinator = build(settings)
    coordinator.install()
    try:
        sync.run(coordinator.stop_event)
    finally:
        coordinator.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
