"""Logging configuration for JobTrackr."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

# Loggers of libraries that are chatty at INFO during a sync
QUIET_LOGGERS = (
    "urllib3",
    "httplib2",
    "googleapiclient.discovery_cache",
    "google_auth_oauthlib",
    "sqlalchemy",
    "apscheduler",
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(threadName)s): %(message)s"


def _to_level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    app_level: Optional[str] = None,
) -> None:
    """Configure root and ``jobtrackr`` logging.

    Called once by main.py and the scripts. Gmail fetches run in worker
    threads, so records carry the thread name.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path for rotating file handler
        app_level: Level for ``jobtrackr.*`` loggers, defaults to ``level``
    """
    root = logging.getLogger()

    if root.handlers:
        return

    root_level = _to_level(level)
    root.setLevel(root_level)
    logging.getLogger("jobtrackr").setLevel(_to_level(app_level, root_level))

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
