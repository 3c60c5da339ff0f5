"""Feed-level metadata changes: title, id, links, icon, logo, subtitle, generator."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

from src.atom import check_xml_text
from src.config import app_generator
from src.errors import ValidationError
from src.models import Feed, Link
from src.timestamps import utc_now

logger = logging.getLogger(__name__)


@dataclass
class MetadataResult:
    """Outcome of a metadata update."""

    feed: Feed
    created: bool = False
    changed: list[str] = field(default_factory=list)


def update_metadata(
    feed: Feed | None,
    *,
    title: str | None = None,
    uri: str | None = None,
    links: Sequence[Link] = (),
    remove_links: bool = False,
    icon: str | None = None,
    remove_icon: bool = False,
    logo: str | None = None,
    remove_logo: bool = False,
    subtitle: str | None = None,
    remove_subtitle: bool = False,
    no_generator: bool = False,
    clock: Callable[[], datetime] = utc_now,
) -> MetadataResult:
    """Apply a sparse set of metadata changes to a feed.

    Omitted fields are left alone. A remove flag clears its field unless a new
    value for that field is given in the same call. ``remove_links`` on its own
    keeps the self link; together with new links it replaces every link.

    Args:
        feed: The existing feed, or None if the document does not exist yet
        clock: Source of the mutation time

    Returns:
        MetadataResult holding the (possibly new) feed and the changed field names

    Raises:
        ValidationError: If title or uri is empty or missing for a new document,
            or a value holds a character XML cannot carry.
    """
    if title is not None and not title:
        raise ValidationError("title must not be empty", field="title")
    if uri is not None and not uri:
        raise ValidationError("uri must not be empty", field="uri")
    for name, value in (("title", title), ("uri", uri), ("icon", icon), ("logo", logo), ("subtitle", subtitle)):
        check_xml_text(value, name)
    for link in links:
        for value in (link.href, link.rel, link.type, link.title, link.lang):
            check_xml_text(value, "links")
    if feed is None:
        if title is None:
            raise ValidationError("title is required when creating a new feed", field="title")
        if uri is None:
            raise ValidationError("uri is required when creating a new feed", field="uri")

    now = clock()
    result = MetadataResult(feed=feed)

    if feed is None:
        feed = Feed(title=title, id=uri, updated=now)
        result.feed = feed
        result.created = True
        result.changed.extend(["title", "id"])
    else:
        if title is not None and title != feed.title:
            feed.title = title
            result.changed.append("title")
        if uri is not None and uri != feed.id:
            feed.id = uri
            result.changed.append("id")

    for name, value, remove in (
        ("icon", icon, remove_icon),
        ("logo", logo, remove_logo),
        ("subtitle", subtitle, remove_subtitle),
    ):
        current = getattr(feed, name)
        if value is not None:
            if value != current:
                setattr(feed, name, value)
                result.changed.append(name)
        elif remove and current is not None:
            setattr(feed, name, None)
            result.changed.append(name)

    if _apply_links(feed, links, remove_links):
        result.changed.append("links")

    # Generator is only refreshed alongside another change
    if no_generator:
        if feed.generator is not None:
            feed.generator = None
            result.changed.append("generator")
    elif result.changed and feed.generator != app_generator():
        feed.generator = app_generator()
        result.changed.append("generator")

    feed.touch(now)
    logger.info(f"Metadata of {feed.id} updated (changed: {', '.join(result.changed) or 'nothing'})")
    return result


def _apply_links(feed: Feed, links: Sequence[Link], remove_links: bool) -> bool:
    before = feed.all_links()

    if remove_links:
        feed.links = []
        if links:
            feed.self_link = None

    for link in links:
        if feed.add_link(link):
            logger.debug(f"Link {link.href} (rel={link.rel}) added or modified")
        else:
            logger.debug(f"Link {link.href} (rel={link.rel}) already present, skipping")

    return feed.all_links() != before
