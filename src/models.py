"""Data models for an Atom feed document."""
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

SELF_REL = "self"

# type "/" subtype, each an RFC 6838 restricted-name, optional parameters
MIME_PATTERN = re.compile(
    r"^[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]{0,126}/[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]{0,126}"
    r"(?:\s*;\s*[A-Za-z0-9!#$&^_.+-]+=(?:[A-Za-z0-9!#$&^_.+-]+|\"[^\"]*\"))*$"
)


class ContentType(str, Enum):
    """The literal content types Atom defines."""

    TEXT = "text"
    HTML = "html"
    XHTML = "xhtml"


@dataclass(frozen=True)
class MimeType:
    """Content type given as a MIME type string, e.g. ``text/markdown``."""

    value: str

    def __post_init__(self):
        if not MIME_PATTERN.match(self.value):
            raise ValueError(f"not a valid MIME type: {self.value!r}")

    def __str__(self) -> str:
        return self.value


def parse_content_type(raw: str) -> ContentType | MimeType:
    """Parse ``text``, ``html``, ``xhtml`` or a MIME type string.

    Raises:
        ValueError: If the value is neither a literal tag nor a valid MIME type.
    """
    try:
        return ContentType(raw)
    except ValueError:
        return MimeType(raw)


@dataclass
class Generator:
    """The agent used to generate the feed."""

    name: str
    uri: str | None = None
    version: str | None = None


@dataclass
class Link:
    """A reference from the feed to a web resource."""

    href: str
    rel: str | None = None
    type: str | None = None
    title: str | None = None
    lang: str | None = None

    @property
    def is_self(self) -> bool:
        return self.rel == SELF_REL


@dataclass
class Author:
    """A person credited on an entry."""

    name: str
    email: str | None = None


@dataclass
class Content:
    """Full content of an entry. Its source URI is always the entry's id."""

    body: str
    content_type: ContentType | MimeType = ContentType.TEXT
    language: str | None = None


@dataclass
class Entry:
    """A single article or post within the feed."""

    id: str
    title: str
    updated: datetime
    summary: str | None = None
    content: Content | None = None
    authors: list[Author] = field(default_factory=list)
    published: datetime | None = None

    @property
    def content_source(self) -> str | None:
        return self.id if self.content is not None else None

    @property
    def effective_date(self) -> datetime:
        """Publication date if known, else the last update."""
        return self.published or self.updated


@dataclass
class Feed:
    """An Atom feed document: metadata plus entries in storage order."""

    title: str
    id: str
    updated: datetime
    generator: Generator | None = None
    icon: str | None = None
    logo: str | None = None
    subtitle: str | None = None
    self_link: Link | None = None
    links: list[Link] = field(default_factory=list)
    entries: list[Entry] = field(default_factory=list)

    def find_entry(self, entry_id: str) -> int | None:
        """Return the position of the entry with the given id, if any."""
        for index, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return index
        return None

    def add_link(self, link: Link) -> bool:
        """Add a link, replacing one with the same href and rel in place.

        A ``rel=self`` link replaces the self link. Returns True if anything
        changed.
        """
        if link.is_self:
            if self.self_link == link:
                return False
            self.self_link = link
            return True

        for index, existing in enumerate(self.links):
            if existing.href == link.href and existing.rel == link.rel:
                if existing == link:
                    return False
                self.links[index] = link
                return True

        self.links.append(link)
        return True

    def all_links(self) -> list[Link]:
        """Every link in serialization order, the self link first."""
        if self.self_link is None:
            return list(self.links)
        return [self.self_link, *self.links]

    def touch(self, now: datetime) -> None:
        """Record a mutation at ``now``; the update time never moves backwards."""
        if now > self.updated:
            self.updated = now
