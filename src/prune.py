"""Pruning old entries from a feed, and archiving them into a reject feed."""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from src.errors import ValidationError
from src.models import Entry, Feed
from src.timestamps import utc_now

logger = logging.getLogger(__name__)

OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class PruneStrategy(str, Enum):
    """How entries are ranked when deciding which to keep."""

    PUBLISHED = "published"
    UPDATED = "updated"
    SINCE_DATE = "since-date"


@dataclass
class PruneResult:
    """Entries kept and removed by a prune, each in storage order."""

    kept: list[Entry] = field(default_factory=list)
    removed: list[Entry] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed)

    @property
    def kept_count(self) -> int:
        return len(self.kept)


def select_entries(
    entries: list[Entry],
    count: int,
    strategy: PruneStrategy,
    since: datetime | None = None,
) -> PruneResult:
    """Split entries into kept and removed without touching the input list.

    ``published`` and ``updated`` keep the ``count`` newest entries by that
    timestamp. Entries without a publication date rank below every dated one
    and keep their storage order amongst themselves. ``since-date`` keeps every
    entry published (or, lacking that, updated) on or after ``since`` and
    ignores ``count``.
    """
    if strategy is PruneStrategy.SINCE_DATE:
        keep = {index for index, entry in enumerate(entries) if entry.effective_date >= since}
    else:
        if count >= len(entries):
            return PruneResult(kept=list(entries))
        ranked = sorted(range(len(entries)), key=lambda i: _rank(entries[i], strategy), reverse=True)
        keep = set(ranked[:count])

    result = PruneResult()
    for index, entry in enumerate(entries):
        (result.kept if index in keep else result.removed).append(entry)
    return result


def _rank(entry: Entry, strategy: PruneStrategy) -> tuple[bool, datetime]:
    if strategy is PruneStrategy.UPDATED:
        return True, entry.updated
    return entry.published is not None, entry.published or OLDEST


def prune_feed(
    feed: Feed,
    count: int,
    strategy: PruneStrategy = PruneStrategy.PUBLISHED,
    since: datetime | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> PruneResult:
    """Remove entries from the feed so only those selected by the strategy remain.

    Args:
        feed: Feed to prune (modified in place)
        count: Number of entries to keep; ignored for since-date
        strategy: Ranking rule, see select_entries
        since: Reference time, required for since-date
        clock: Source of the mutation time

    Returns:
        PruneResult; when nothing is removed the feed is left untouched

    Raises:
        ValidationError: If count is negative or since is missing for since-date.
    """
    strategy = PruneStrategy(strategy)
    if count < 0:
        raise ValidationError(f"count must not be negative, got {count}", field="count")
    if strategy is PruneStrategy.SINCE_DATE:
        if since is None:
            raise ValidationError("since-date strategy requires a reference date", field="since")
        if since.tzinfo is None:
            raise ValidationError("since must carry a UTC offset", field="since")

    result = select_entries(feed.entries, count, strategy, since)
    if not result.changed:
        logger.warning(f"Not pruning anything: {len(feed.entries)} entries already satisfy the target")
        return result

    feed.entries = list(result.kept)
    feed.touch(clock())
    logger.info(f"Pruned {len(result.removed)} entries from {feed.id}, {result.kept_count} kept")
    return result


def merge_rejects(
    primary: Feed,
    removed: list[Entry],
    reject: Feed | None,
    clock: Callable[[], datetime] = utc_now,
    reject_id: str | None = None,
) -> Feed:
    """Archive pruned entries into a reject feed.

    A missing reject feed is created from the primary feed's metadata (no
    entries, no self link) with id ``reject_id``, defaulting to the primary id
    plus ``#rejected``. An entry whose id is already archived is overwritten in
    place, so archiving the same entry twice never duplicates it.

    Returns:
        The reject feed (the one passed in, or a new one)
    """
    now = clock()
    if reject is None:
        reject = replace(
            primary,
            id=reject_id or f"{primary.id}#rejected",
            updated=now,
            self_link=None,
            links=list(primary.links),
            entries=[],
        )
        logger.info(f"Creating reject feed {reject.id}")

    for entry in removed:
        existing = reject.find_entry(entry.id)
        if existing is None:
            reject.entries.append(entry)
        else:
            logger.debug(f"Entry {entry.id} already archived, overwriting")
            reject.entries[existing] = entry

    reject.touch(now)
    return reject
