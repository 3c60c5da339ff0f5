"""Tests for the link annotation syntax."""
import pytest

from src.errors import LinkSyntaxError, ValidationError
from src.links import format_link, parse_link
from src.models import Link


def test_format_link_emits_suffixes_in_fixed_order():
    """Suffixes come out as rel, type, title, lang, skipping absent fields."""
    link = Link(
        href="https://example.com/feed.xml",
        rel="self",
        type="application/atom+xml",
        title="An example feed",
        lang="en-us",
    )

    assert format_link(link) == (
        "https://example.com/feed.xml[rel=self][type=application/atom+xml]"
        "[title=An example feed][lang=en-us]"
    )
    assert format_link(Link(href="https://example.com/", lang="fr")) == "https://example.com/[lang=fr]"
    assert format_link(Link(href="https://example.com/")) == "https://example.com/"


def test_parse_link_accepts_any_order():
    """The parser must not depend on canonical suffix order."""
    link = parse_link(
        "https://www.meteo.gc.ca/rss/marine/06100_f.xml[lang=fr-ca][rel=alternate]"
        "[title=Détroit de Haro - Météo maritime][type=application/atom+xml]"
    )

    assert link == Link(
        href="https://www.meteo.gc.ca/rss/marine/06100_f.xml",
        rel="alternate",
        type="application/atom+xml",
        title="Détroit de Haro - Météo maritime",
        lang="fr-ca",
    )


def test_parse_link_subset_leaves_other_fields_unset():
    link = parse_link("https://example.com/feed.xml[title=Feed]")

    assert link.href == "https://example.com/feed.xml"
    assert link.title == "Feed"
    assert link.rel is None
    assert link.type is None
    assert link.lang is None


def test_parse_link_without_suffixes_is_verbatim_url():
    assert parse_link("https://example.com/a?b=c") == Link(href="https://example.com/a?b=c")
    assert parse_link("https://example.com/feed.xml]") == Link(href="https://example.com/feed.xml]")
    assert parse_link("https://example.com/feed.xml[]") == Link(href="https://example.com/feed.xml[]")


def test_parse_link_keeps_ipv6_host_brackets_in_url():
    link = parse_link("http://[::1]:8080/feed.xml[rel=self]")

    assert link.href == "http://[::1]:8080/feed.xml"
    assert link.rel == "self"


def test_link_round_trip_with_brackets_and_unicode():
    """Values holding brackets, backslashes and non-ASCII text survive a round trip."""
    link = Link(
        href="https://example.com/日本/feed.xml",
        rel="related",
        type="text/html; charset=utf-8",
        title="Notes [draft] \\ ünïcödé ]",
        lang="ja",
    )

    encoded = format_link(link)

    assert "\\[draft\\]" in encoded
    assert parse_link(encoded) == link


def test_link_round_trip_with_empty_values():
    link = Link(href="https://example.com/", title="")

    assert parse_link(format_link(link)) == link


@pytest.mark.parametrize(
    "text",
    [
        "https://example.com/feed.xml[foo=bar]",  # unknown key
        "https://example.com/feed.xml[=self]",  # empty key
        "https://example.com/feed.xml[rel=self",  # unterminated
        "https://example.com/feed.xml[rel=self][type=",  # unterminated second suffix
        "https://example.com/feed.xml[title=a[b]]",  # nested bracket
        "https://example.com/feed.xml[title=a]b]",  # unescaped ] in value
        "https://example.com/feed.xml[rel=self]trailing",  # garbage after suffix
        "https://example.com/feed.xml[rel=self][rel=alternate]",  # repeated key
        "https://example.com/feed.xml[title=a\\",  # dangling escape
        "[rel=self]",  # no URL
        "",
    ],
)
def test_parse_link_rejects_malformed_annotations(text):
    with pytest.raises(LinkSyntaxError):
        parse_link(text)


def test_link_syntax_error_is_a_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        parse_link("https://example.com/[colour=blue]")

    assert excinfo.value.field == "link"
    assert "colour" in str(excinfo.value)
