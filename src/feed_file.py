"""Reading and writing feed documents on disk."""
import logging
import os
from pathlib import Path
from typing import Sequence

from src.atom import decode_feed, encode_feed
from src.models import Feed

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".feedkeep"


def read_feed(path: Path) -> Feed | None:
    """Load and decode the feed at path, or return None if there is no file."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"No feed document at {path}")
        return None
    return decode_feed(data)


def write_feed(path: Path, feed: Feed, include_generator: bool = True) -> None:
    """Encode the feed and replace the file at path atomically.

    The document is written to a temporary sibling first and renamed over
    the target, so a failed write never leaves a truncated feed behind.
    """
    write_feeds([(path, feed)], include_generator=include_generator)


def write_feeds(documents: Sequence[tuple[Path, Feed]], include_generator: bool = True) -> None:
    """Write several feeds so that either all of them or none are replaced.

    Every document is encoded and written to its temporary sibling before any
    target is touched. Only then are the temporaries renamed over the targets
    in order. A rename failing after an earlier one succeeded still leaves the
    earlier target replaced.
    """
    staged = [(path, encode_feed(feed, include_generator=include_generator)) for path, feed in documents]
    temp_paths = []
    try:
        for path, data in staged:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_name(path.name + TEMP_SUFFIX)
            temp_paths.append(temp_path)
            logger.debug(f"Writing {len(data)} bytes to {temp_path}")
            temp_path.write_bytes(data)
        for (path, _), temp_path in zip(staged, temp_paths):
            os.replace(temp_path, path)
            logger.info(f"Wrote {path}")
    except OSError:
        for temp_path in temp_paths:
            temp_path.unlink(missing_ok=True)
        raise
