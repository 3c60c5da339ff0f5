"""Shared test fixtures for feedkeep tests."""
import logging
from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


SAMPLE_ATOM_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Blog</title>
  <id>https://example.com/feed.xml</id>
  <updated>2023-12-01T08:30:00Z</updated>
  <link href="https://example.com/feed.xml" rel="self"/>
  <link href="https://example.com/" rel="alternate" xml:lang="en-us"/>
  <entry>
    <title>First Post</title>
    <id>https://example.com/1.html</id>
    <updated>2023-01-01T10:00:00Z</updated>
    <content>Plain body</content>
    <contributor>
      <name>Ada</name>
      <email>ada@example.com</email>
    </contributor>
    <published>2023-01-01T09:00:00+01:00</published>
  </entry>
</feed>"""


@pytest.fixture
def clock():
    """A clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def now():
    """The time reported by the clock fixture."""
    return FIXED_NOW


@pytest.fixture
def sample_atom_xml():
    """Sample Atom document as written by another tool."""
    return SAMPLE_ATOM_XML


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI installs so they don't outlive CliRunner's streams."""
    yield
    logging.getLogger().handlers.clear()
