"""Tests for feed metadata updates."""
import copy
from datetime import datetime, timezone

import pytest

from src.config import app_generator
from src.errors import ValidationError
from src.meta import update_metadata
from src.models import Entry, Feed, Link

UTC = timezone.utc
EARLIER = datetime(2023, 12, 1, tzinfo=UTC)


def _existing_feed() -> Feed:
    return Feed(
        title="Existing",
        id="https://example.com/feed.xml",
        updated=EARLIER,
        generator=app_generator(),
        icon="https://example.com/icon.png",
        logo="https://example.com/logo.png",
        subtitle="A subtitle",
        self_link=Link(href="https://example.com/feed.xml", rel="self"),
        links=[Link(href="https://example.com/", rel="alternate")],
        entries=[Entry(id="https://example.com/1.html", title="E1", updated=EARLIER)],
    )


def test_new_feed_requires_title_and_uri(clock):
    with pytest.raises(ValidationError) as excinfo:
        update_metadata(None, uri="https://e/feed.xml", clock=clock)
    assert excinfo.value.field == "title"

    with pytest.raises(ValidationError) as excinfo:
        update_metadata(None, title="T", clock=clock)
    assert excinfo.value.field == "uri"


def test_new_feed_is_created_with_generator(clock, now):
    result = update_metadata(None, title="T", uri="https://e/feed.xml", subtitle="Sub", clock=clock)

    assert result.created is True
    assert result.feed.title == "T"
    assert result.feed.id == "https://e/feed.xml"
    assert result.feed.subtitle == "Sub"
    assert result.feed.updated == now
    assert result.feed.generator == app_generator()
    assert result.feed.entries == []


def test_no_arguments_changes_nothing_but_updated(clock, now):
    """An empty call only refreshes the update time."""
    feed = _existing_feed()
    before = copy.deepcopy(feed)

    result = update_metadata(feed, clock=clock)

    assert result.created is False
    assert result.changed == []
    assert result.feed.updated == now
    before.updated = now
    assert result.feed == before


def test_empty_title_is_rejected_without_changes(clock):
    feed = _existing_feed()
    before = copy.deepcopy(feed)

    with pytest.raises(ValidationError):
        update_metadata(feed, title="", icon="https://example.com/new.png", clock=clock)

    assert feed == before


def test_fields_are_overwritten(clock):
    feed = _existing_feed()

    result = update_metadata(feed, title="New", uri="urn:uuid:new", logo="https://example.com/l2.png", clock=clock)

    assert feed.title == "New"
    assert feed.id == "urn:uuid:new"
    assert feed.logo == "https://example.com/l2.png"
    assert result.changed == ["title", "id", "logo"]


def test_remove_flags_clear_fields(clock):
    feed = _existing_feed()

    result = update_metadata(feed, remove_icon=True, remove_logo=True, remove_subtitle=True, clock=clock)

    assert feed.icon is None
    assert feed.logo is None
    assert feed.subtitle is None
    assert result.changed == ["icon", "logo", "subtitle"]


def test_remove_flag_ignored_when_value_given(clock):
    feed = _existing_feed()

    update_metadata(feed, icon="https://example.com/other.png", remove_icon=True, clock=clock)

    assert feed.icon == "https://example.com/other.png"


def test_links_are_added_and_modified_in_place(clock):
    feed = _existing_feed()

    update_metadata(
        feed,
        links=[
            Link(href="https://example.com/", rel="alternate", title="Home"),
            Link(href="https://example.com/", rel="related"),
            Link(href="https://example.com/about"),
        ],
        clock=clock,
    )

    assert feed.links == [
        Link(href="https://example.com/", rel="alternate", title="Home"),
        Link(href="https://example.com/", rel="related"),
        Link(href="https://example.com/about"),
    ]


def test_identical_link_is_not_duplicated(clock):
    feed = _existing_feed()

    result = update_metadata(feed, links=[Link(href="https://example.com/", rel="alternate")], clock=clock)

    assert len(feed.links) == 1
    assert "links" not in result.changed


def test_self_link_goes_to_its_own_field(clock):
    feed = _existing_feed()

    update_metadata(feed, links=[Link(href="https://example.com/atom.xml", rel="self")], clock=clock)

    assert feed.self_link == Link(href="https://example.com/atom.xml", rel="self")
    assert feed.links == [Link(href="https://example.com/", rel="alternate")]


def test_remove_links_alone_keeps_self_link(clock):
    feed = _existing_feed()

    result = update_metadata(feed, remove_links=True, clock=clock)

    assert feed.links == []
    assert feed.self_link == Link(href="https://example.com/feed.xml", rel="self")
    assert "links" in result.changed


def test_remove_links_with_new_links_replaces_all(clock):
    feed = _existing_feed()

    update_metadata(feed, remove_links=True, links=[Link(href="https://example.org/")], clock=clock)

    assert feed.self_link is None
    assert feed.links == [Link(href="https://example.org/")]


def test_no_generator_removes_generator(clock):
    feed = _existing_feed()

    result = update_metadata(feed, no_generator=True, clock=clock)

    assert feed.generator is None
    assert result.changed == ["generator"]


def test_no_arguments_keeps_removed_generator_removed(clock):
    """An empty call on a feed without generator does not add it back."""
    feed = _existing_feed()
    feed.generator = None

    result = update_metadata(feed, clock=clock)

    assert feed.generator is None
    assert result.changed == []


def test_generator_is_restored_alongside_another_change(clock):
    feed = _existing_feed()
    feed.generator = None

    result = update_metadata(feed, subtitle="New subtitle", clock=clock)

    assert feed.generator == app_generator()
    assert result.changed == ["subtitle", "generator"]


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"title": "Page\x0cbreak"}, "title"),
        ({"subtitle": "bell\x07"}, "subtitle"),
        ({"icon": "https://example.com/\x01.png"}, "icon"),
        ({"links": [Link(href="https://example.com/", title="\x00")]}, "links"),
    ],
)
def test_characters_xml_cannot_carry_are_rejected(clock, kwargs, field):
    feed = _existing_feed()
    before = copy.deepcopy(feed)

    with pytest.raises(ValidationError) as excinfo:
        update_metadata(feed, clock=clock, **kwargs)

    assert excinfo.value.field == field
    assert feed == before


def test_updated_never_moves_backwards(now):
    feed = _existing_feed()
    feed.updated = now

    update_metadata(feed, title="Later", clock=lambda: EARLIER)

    assert feed.updated == now
