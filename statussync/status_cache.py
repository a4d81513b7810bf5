"""Persist the last published status payload (JSON) so it survives restarts."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import DisplayPayload

logger = logging.getLogger(__name__)


class StatusCache:
    """Best-effort on-disk record of the last payload we published.

    A ``None`` path disables the cache; every operation then becomes a no-op.
    Failures are logged and reported through the return value, never raised.
    """

    def __init__(self, path: Optional[Path]) -> None:
        self.path = Path(path) if path else None

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def write(self, payload: DisplayPayload) -> bool:
        if self.path is None:
            return True
        data = {
            "status_text": payload.text,
            "status_emoji": payload.emoji,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error("[Cache] Failed to persist status cache at %s: %s", self.path, e)
            return False
        return True

    def erase(self) -> bool:
        if self.path is None:
            return True
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("[Cache] Failed to remove status cache at %s: %s", self.path, e)
            return False
        return True

    def read(self) -> Optional[dict]:
        """Diagnostic read of the stored record ({status_text, status_emoji, updated_at}).

        Nothing in the poll loop reads it back; each run starts with no warm state.
        """
        if self.path is None or not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("[Cache] Ignoring unreadable status cache at %s: %s", self.path, e)
            return None
        return data if isinstance(data, dict) else None
