"""Configuration for feedkeep."""
import os
from pathlib import Path

from src.models import Generator

APP_NAME = "feedkeep"
VERSION = "0.1.0"
APP_HOMEPAGE = "https://github.com/feedkeep/feedkeep"

DEFAULT_FEED_FILE = "feed.xml"
DEFAULT_LOG_RETENTION_DAYS = 30


def app_generator() -> Generator:
    """The generator block identifying this tool inside a feed."""
    return Generator(name=APP_NAME, uri=APP_HOMEPAGE, version=VERSION)


def load_config() -> dict:
    """Load configuration from defaults, overridden by environment variables.

    FEEDKEEP_FILE: path to the feed document
    FEEDKEEP_LOG_DIR: directory for log files (file logging is off when unset)
    FEEDKEEP_LOG_RETENTION_DAYS: how many days of log files to keep
    """
    log_dir = os.environ.get("FEEDKEEP_LOG_DIR")
    retention = os.environ.get("FEEDKEEP_LOG_RETENTION_DAYS", str(DEFAULT_LOG_RETENTION_DAYS))
    try:
        retention_days = int(retention)
    except ValueError:
        raise ValueError(f"FEEDKEEP_LOG_RETENTION_DAYS must be an integer, got {retention!r}")

    return {
        "feed_file": os.environ.get("FEEDKEEP_FILE", DEFAULT_FEED_FILE),
        "logging": {
            "log_dir": Path(log_dir) if log_dir else None,
            "retention_days": retention_days,
        },
    }


def default_reject_path(feed_path: Path) -> Path:
    """Where pruned entries go by default: ``feed.xml`` -> ``feed.rej.xml``."""
    name = feed_path.name
    if name.endswith(".xml"):
        name = name[: -len(".xml")]
    return feed_path.with_name(f"{name}.rej.xml")
