"""Link annotation syntax: ``URL[rel=VALUE][type=VALUE][title=VALUE][lang=VALUE]``.

This micro-format only exists on the command line. Feed documents carry the
same information as attributes of ``<link>`` elements.
"""
import logging
import re

from src.errors import LinkSyntaxError
from src.models import Link

logger = logging.getLogger(__name__)

LINK_KEYS = ("rel", "type", "title", "lang")

# A "[" opens the annotation run only when a key and "=" follow it, so
# bracketed IPv6 hosts such as http://[::1]/ stay part of the URL.
SUFFIX_START = re.compile(r"\[[^\[\]=]*=")

_ESCAPES = {"\\": "\\\\", "[": "\\[", "]": "\\]"}


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def format_link(link: Link) -> str:
    """Render a link in annotation syntax, emitting rel, type, title, lang in order."""
    parts = [link.href]
    for key in LINK_KEYS:
        value = getattr(link, key)
        if value is not None:
            parts.append(f"[{key}={_escape(value)}]")
    return "".join(parts)


def parse_link(text: str) -> Link:
    """Parse annotation syntax into a Link. Suffixes may come in any order.

    Raises:
        LinkSyntaxError: On an unknown, empty or repeated key, an unterminated
            or nested bracket, an unescaped ``]`` in a value, or an empty URL.
    """
    match = SUFFIX_START.search(text)
    href = text if match is None else text[: match.start()]
    if not href:
        raise LinkSyntaxError("link has no URL", text)

    values: dict[str, str] = {}
    pos = len(text) if match is None else match.start()
    while pos < len(text):
        if text[pos] != "[":
            raise LinkSyntaxError(f"unexpected {text[pos]!r} after annotation", text)

        eq = text.find("=", pos)
        if eq == -1:
            raise LinkSyntaxError("unterminated annotation", text)
        key = text[pos + 1 : eq]
        if not key:
            raise LinkSyntaxError("empty annotation key", text)
        if "[" in key or "]" in key:
            raise LinkSyntaxError("nested bracket in annotation key", text)
        if key not in LINK_KEYS:
            raise LinkSyntaxError(f"unknown annotation key {key!r}", text)
        if key in values:
            raise LinkSyntaxError(f"annotation key {key!r} given twice", text)

        value, pos = _read_value(text, eq + 1)
        values[key] = value

    link = Link(href=href, **values)
    logger.debug(f"Parsed link {link!r} from {text!r}")
    return link


def _read_value(text: str, pos: int) -> tuple[str, int]:
    """Read an escaped value up to its closing bracket; return it and the next position."""
    chars = []
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            if pos + 1 >= len(text):
                raise LinkSyntaxError("dangling escape in annotation", text)
            chars.append(text[pos + 1])
            pos += 2
        elif ch == "[":
            raise LinkSyntaxError("nested bracket in annotation value", text)
        elif ch == "]":
            return "".join(chars), pos + 1
        else:
            chars.append(ch)
            pos += 1
    raise LinkSyntaxError("unterminated annotation", text)
