"""Adding entries to a feed."""
import logging
from datetime import datetime
from typing import Callable, Sequence

from src.atom import check_xml_text
from src.errors import DuplicateEntryError, ValidationError
from src.models import Author, Content, ContentType, Entry, Feed, parse_content_type
from src.timestamps import coerce_timestamp, utc_now

logger = logging.getLogger(__name__)


def add_entry(
    feed: Feed,
    entry_id: str,
    title: str,
    *,
    summary: str | None = None,
    content: str | None = None,
    content_type: str | None = None,
    content_language: str | None = None,
    author_names: Sequence[str] = (),
    author_emails: Sequence[str] = (),
    published: str | datetime | None = None,
    updated: str | datetime | None = None,
    replace: bool = False,
    clock: Callable[[], datetime] = utc_now,
) -> Entry:
    """Build a new entry and append it to the feed.

    Content type and language are ignored when no content is given. Author
    names and emails are paired by position; an empty email means none.

    Args:
        feed: Feed to add the entry to (modified in place)
        entry_id: URI of the entry, unique within the feed
        title: Title of the entry
        replace: Replace an existing entry with the same id instead of failing
        clock: Source of the default update time

    Returns:
        The entry that was added

    Raises:
        ValidationError: If an argument is invalid; the feed is left unchanged.
        DuplicateEntryError: If the id is taken and replace is False.
    """
    if not entry_id:
        raise ValidationError("entry id must not be empty", field="id")
    if not title:
        raise ValidationError("entry title must not be empty", field="title")
    for name, value in (
        ("id", entry_id),
        ("title", title),
        ("summary", summary),
        ("content", content),
        ("content_language", content_language),
    ):
        check_xml_text(value, name)
    for value in (*author_names, *author_emails):
        check_xml_text(value, "authors")

    entry_content = None
    if content is not None:
        try:
            kind = parse_content_type(content_type) if content_type is not None else ContentType.TEXT
        except ValueError as e:
            raise ValidationError(
                f"content type must be text, html, xhtml or a MIME type, got {content_type!r}",
                field="content_type",
            ) from e
        entry_content = Content(body=content, content_type=kind, language=content_language)

    if len(author_names) != len(author_emails):
        raise ValidationError(
            "author names and author emails must be given the same number of times, "
            f"got {len(author_names)} and {len(author_emails)}",
            field="authors",
        )

    published_at = coerce_timestamp(published, "published")
    updated_at = coerce_timestamp(updated, "updated")

    existing = feed.find_entry(entry_id)
    if existing is not None and not replace:
        raise DuplicateEntryError(entry_id)

    now = clock()
    entry = Entry(
        id=entry_id,
        title=title,
        updated=updated_at or now,
        summary=summary,
        content=entry_content,
        authors=[Author(name=name, email=email or None) for name, email in zip(author_names, author_emails)],
        published=published_at,
    )

    if existing is None:
        feed.entries.append(entry)
        logger.info(f"Added entry {entry_id}")
    else:
        feed.entries[existing] = entry
        logger.info(f"Replaced entry {entry_id}")

    feed.touch(now)
    return entry
