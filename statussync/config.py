"""Configuration: environment variables (optionally from .env) parsed into Settings."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

# Project root = parent of the statussync package
BASE_DIR = Path(__file__).resolve().parent.parent

TRUTHY = {"1", "true", "yes", "on"}
PLAYER_CHOICES = ("auto", "music", "spotify")

DEFAULT_STATUS_CACHE = Path.home() / ".slack-currenttrack-status.json"
DEFAULT_PHOTO_CACHE = Path.home() / ".slack-currenttrack-photo"


def load_env_file(path: Optional[Path] = None) -> bool:
    """Load .env into os.environ without overriding variables already set."""
    env_file = path or (BASE_DIR / ".env")
    if not env_file.exists():
        return False
    return load_dotenv(env_file, override=False)


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(env.get(key, ""), 10)
    except (TypeError, ValueError):
        return default


def _path(env: Mapping[str, str], key: str, default: Path) -> Optional[Path]:
    # An explicitly empty value disables the file.
    value = env.get(key)
    if value is None:
        return default
    if value.strip() == "":
        return None
    return Path(value).expanduser()


@dataclass(frozen=True)
class FormatConfig:
    template: str = ""
    emoji: str = ":musical_note:"
    prefix: str = ""
    suffix: str = ""
    include_album: bool = False
    max_length: int = 100


@dataclass(frozen=True)
class Settings:
    slack_token: str = ""
    player: str = "auto"
    poll_interval_ms: int = 15000
    clear_on_pause: bool = True
    update_photo: bool = False
    dry_run: bool = False
    status_cache_file: Optional[Path] = DEFAULT_STATUS_CACHE
    photo_cache_file: Optional[Path] = DEFAULT_PHOTO_CACHE
    log_level: str = "INFO"
    log_file: str = ""
    debug: bool = False
    format: FormatConfig = field(default_factory=FormatConfig)

    @property
    def poll_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        player = env.get("MUSIC_PLAYER", "auto").strip().lower() or "auto"
        if player not in PLAYER_CHOICES:
            raise ConfigError(
                f"MUSIC_PLAYER must be one of {', '.join(PLAYER_CHOICES)} (got {player!r})"
            )

        poll_interval_ms = _int(env, "POLL_INTERVAL_MS", 15000)
        if poll_interval_ms <= 0:
            raise ConfigError(f"POLL_INTERVAL_MS must be positive (got {poll_interval_ms})")

        max_length = _int(env, "STATUS_MAX_LENGTH", 100)
        if max_length <= 0:
            raise ConfigError(f"STATUS_MAX_LENGTH must be positive (got {max_length})")

        fmt = FormatConfig(
            template=env.get("SLACK_STATUS_FORMAT", ""),
            emoji=env.get("SLACK_STATUS_EMOJI") or ":musical_note:",
            prefix=env.get("SLACK_STATUS_PREFIX", ""),
            suffix=env.get("SLACK_STATUS_SUFFIX", ""),
            include_album=_bool(env, "INCLUDE_ALBUM", False),
            max_length=max_length,
        )

        return cls(
            slack_token=env.get("SLACK_TOKEN", "").strip(),
            player=player,
            poll_interval_ms=poll_interval_ms,
            clear_on_pause=_bool(env, "CLEAR_STATUS_ON_PAUSE", True),
            update_photo=_bool(env, "UPDATE_PROFILE_PHOTO", False),
            dry_run=_bool(env, "DRY_RUN", False),
            status_cache_file=_path(env, "STATUS_CACHE_FILE", DEFAULT_STATUS_CACHE),
            photo_cache_file=_path(env, "PROFILE_PHOTO_CACHE_FILE", DEFAULT_PHOTO_CACHE),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            log_file=env.get("LOG_FILE", ""),
            debug=_bool(env, "SNP_DEBUG", False),
            format=fmt,
        )
