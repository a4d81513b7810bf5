# statussync/debug.py
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

_initialized = False


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, debug: bool = False) -> None:
    """Configure the root logger once: stdout console plus an optional rotating file."""
    global _initialized
    if _initialized:
        return

    console_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                path, maxBytes=1 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
        except OSError as e:
            root.warning("[Log] Cannot open log file %s: %s", path, e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    _initialized = True
    root.debug("[Log] Logging initialized (console=%s, file=%s)", logging.getLevelName(console_level), log_file or "-")
