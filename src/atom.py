"""Atom XML decoding and canonical encoding.

Decoding goes through ElementTree. Encoding is rendered by hand so the output
is canonical: fixed element order, the five predefined entities for ``& < > " '``,
and character references for whitespace that XML parsers would otherwise
normalize away.
"""
import logging
import re
import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape

from src.errors import StructuralParseError, ValidationError
from src.models import (
    Author,
    Content,
    Entry,
    Feed,
    Generator,
    Link,
    parse_content_type,
)
from src.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

TEXT_ENTITIES = {'"': "&quot;", "'": "&apos;", "\r": "&#13;"}
ATTR_ENTITIES = {**TEXT_ENTITIES, "\n": "&#10;", "\t": "&#9;"}

INDENT = "  "

# Anything outside the XML 1.0 Char production
INVALID_XML_CHAR = re.compile(r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def check_xml_text(value: str | None, field: str) -> None:
    """Raise ValidationError if value holds a character no XML document can carry."""
    if value is None:
        return
    match = INVALID_XML_CHAR.search(value)
    if match:
        raise ValidationError(
            f"{field} contains character U+{ord(match.group()):04X}, which XML cannot represent",
            field=field,
        )


def _tag(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


# === Decoding ===


def decode_feed(data: bytes) -> Feed:
    """Parse raw Atom document bytes into a Feed.

    Raises:
        StructuralParseError: If the XML is malformed or a required element
            is missing or invalid.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise StructuralParseError(f"document is not well-formed XML: {e}") from e

    if root.tag != _tag("feed"):
        raise StructuralParseError(f"root element is {root.tag!r}, expected an Atom <feed>")

    feed = Feed(
        title=_required_text(root, "title", "feed"),
        id=_required_text(root, "id", "feed"),
        updated=_required_timestamp(root, "updated", "feed"),
        generator=_decode_generator(root.find(_tag("generator"))),
        icon=_optional_text(root, "icon"),
        logo=_optional_text(root, "logo"),
        subtitle=_optional_text(root, "subtitle"),
    )

    for element in root.findall(_tag("link")):
        link = _decode_link(element)
        if link.is_self:
            if feed.self_link is not None:
                raise StructuralParseError("feed has more than one rel=self <link>")
            feed.self_link = link
        elif any(other.href == link.href and other.rel == link.rel for other in feed.links):
            raise StructuralParseError(f"feed has duplicate <link> href={link.href!r} rel={link.rel!r}")
        else:
            feed.links.append(link)

    seen_ids = set()
    for element in root.findall(_tag("entry")):
        entry = _decode_entry(element)
        if entry.id in seen_ids:
            raise StructuralParseError(f"feed has duplicate <entry> id {entry.id!r}")
        seen_ids.add(entry.id)
        feed.entries.append(entry)

    logger.debug(f"Decoded feed {feed.id} with {len(feed.entries)} entries")
    return feed


def _required_text(parent: ET.Element, name: str, context: str) -> str:
    element = parent.find(_tag(name))
    if element is None:
        raise StructuralParseError(f"{context} is missing required <{name}>")
    text = element.text or ""
    if not text:
        raise StructuralParseError(f"{context} has an empty <{name}>")
    return text


def _optional_text(parent: ET.Element, name: str) -> str | None:
    element = parent.find(_tag(name))
    if element is None:
        return None
    return element.text or ""


def _parse_time(text: str, name: str, context: str):
    try:
        return parse_timestamp(text)
    except ValueError as e:
        raise StructuralParseError(f"{context} has a malformed <{name}>: {text!r}") from e


def _required_timestamp(parent: ET.Element, name: str, context: str):
    return _parse_time(_required_text(parent, name, context), name, context)


def _optional_timestamp(parent: ET.Element, name: str, context: str):
    text = _optional_text(parent, name)
    if text is None:
        return None
    return _parse_time(text, name, context)


def _decode_generator(element: ET.Element | None) -> Generator | None:
    if element is None:
        return None
    return Generator(
        name=element.text or "",
        uri=element.get("uri"),
        version=element.get("version"),
    )


def _decode_link(element: ET.Element) -> Link:
    href = element.get("href")
    if href is None:
        raise StructuralParseError("<link> is missing its href attribute")
    return Link(
        href=href,
        rel=element.get("rel"),
        type=element.get("type"),
        title=element.get("title"),
        lang=element.get(XML_LANG),
    )


def _decode_entry(element: ET.Element) -> Entry:
    entry_id = _required_text(element, "id", "entry")
    context = f"entry {entry_id!r}"

    content = None
    content_element = element.find(_tag("content"))
    if content_element is not None:
        raw_type = content_element.get("type", "text")
        try:
            content_type = parse_content_type(raw_type)
        except ValueError as e:
            raise StructuralParseError(f"{context} has unknown content type {raw_type!r}") from e
        if len(content_element):
            raise StructuralParseError(f"{context} has content with child elements, which is not supported")
        content = Content(
            body=content_element.text or "",
            content_type=content_type,
            language=content_element.get(XML_LANG),
        )

    authors = []
    for person in element.findall(_tag("contributor")):
        name = person.find(_tag("name"))
        if name is None:
            raise StructuralParseError(f"{context} has a <contributor> without <name>")
        authors.append(Author(name=name.text or "", email=_optional_text(person, "email")))

    return Entry(
        id=entry_id,
        title=_required_text(element, "title", context),
        updated=_required_timestamp(element, "updated", context),
        summary=_optional_text(element, "summary"),
        content=content,
        authors=authors,
        published=_optional_timestamp(element, "published", context),
    )


# === Encoding ===


def _text(value: str) -> str:
    return escape(value, TEXT_ENTITIES)


def _attrs(pairs: list[tuple[str, str | None]]) -> str:
    return "".join(f' {name}="{escape(value, ATTR_ENTITIES)}"' for name, value in pairs if value is not None)


def _leaf(depth: int, name: str, value: str, attrs: str = "") -> str:
    return f"{INDENT * depth}<{name}{attrs}>{_text(value)}</{name}>"


def encode_feed(feed: Feed, include_generator: bool = True) -> bytes:
    """Serialize a Feed into canonical Atom XML bytes (UTF-8).

    Args:
        feed: The feed to serialize
        include_generator: If False, the generator block is left out even
            when the feed has one
    """
    lines = [
        '<?xml version="1.0" encoding="utf-8"?>',
        f'<feed xmlns="{ATOM_NS}">',
        _leaf(1, "title", feed.title),
        _leaf(1, "id", feed.id),
        _leaf(1, "updated", format_timestamp(feed.updated)),
    ]

    if include_generator and feed.generator is not None:
        gen = feed.generator
        lines.append(_leaf(1, "generator", gen.name, _attrs([("uri", gen.uri), ("version", gen.version)])))
    if feed.icon is not None:
        lines.append(_leaf(1, "icon", feed.icon))
    if feed.logo is not None:
        lines.append(_leaf(1, "logo", feed.logo))
    if feed.subtitle is not None:
        lines.append(_leaf(1, "subtitle", feed.subtitle))

    for link in feed.all_links():
        attrs = _attrs([
            ("href", link.href),
            ("rel", link.rel),
            ("type", link.type),
            ("title", link.title),
            ("xml:lang", link.lang),
        ])
        lines.append(f"{INDENT}<link{attrs}/>")

    for entry in feed.entries:
        lines.extend(_encode_entry(entry))

    lines.append("</feed>")
    return ("\n".join(lines) + "\n").encode("utf-8")


def _encode_entry(entry: Entry) -> list[str]:
    lines = [
        f"{INDENT}<entry>",
        _leaf(2, "title", entry.title),
        _leaf(2, "id", entry.id),
        _leaf(2, "updated", format_timestamp(entry.updated)),
    ]
    if entry.summary is not None:
        lines.append(_leaf(2, "summary", entry.summary))
    if entry.content is not None:
        content = entry.content
        attrs = _attrs([("type", content.content_type.value), ("xml:lang", content.language)])
        lines.append(_leaf(2, "content", content.body, attrs))
    for author in entry.authors:
        lines.append(f"{INDENT * 2}<contributor>")
        lines.append(_leaf(3, "name", author.name))
        if author.email is not None:
            lines.append(_leaf(3, "email", author.email))
        lines.append(f"{INDENT * 2}</contributor>")
    if entry.published is not None:
        lines.append(_leaf(2, "published", format_timestamp(entry.published)))
    lines.append(f"{INDENT}</entry>")
    return lines
