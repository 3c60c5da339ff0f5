"""CLI entry point for feedkeep."""
import json
import logging
from pathlib import Path

import click

from src.config import APP_NAME, VERSION, default_reject_path, load_config
from src.entries import add_entry
from src.errors import FeedError, LinkSyntaxError
from src.feed_file import read_feed, write_feeds
from src.links import format_link, parse_link
from src.logging_config import setup_logging
from src.meta import update_metadata
from src.models import Feed
from src.prune import PruneStrategy, merge_rejects, prune_feed
from src.timestamps import format_timestamp, parse_since_date

logger = logging.getLogger(__name__)


class LinkParamType(click.ParamType):
    """Click parameter accepting ``URL[rel=...][type=...][title=...][lang=...]``."""

    name = "link"

    def convert(self, value, param, ctx):
        try:
            return parse_link(value)
        except LinkSyntaxError as e:
            self.fail(str(e), param, ctx)


LINK = LinkParamType()


def _since_date(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_since_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _load_feed(path: Path) -> Feed | None:
    try:
        return read_feed(path)
    except (FeedError, OSError) as e:
        _fail(f"could not read {path}: {e}")


def _require_feed(path: Path) -> Feed:
    feed = _load_feed(path)
    if feed is None:
        _fail(f"feed {path} does not exist, create it first with `{APP_NAME} meta --title ... --uri ...`")
    return feed


def _save_feeds(ctx: click.Context, *documents: tuple[Path, Feed]) -> None:
    paths = ", ".join(str(path) for path, _ in documents)
    if ctx.obj["no_op"]:
        logger.warning(f"Not writing {paths} because no-op was requested")
        return
    try:
        write_feeds(documents)
    except OSError as e:
        _fail(f"could not write {paths}: {e}")


def _metadata_as_text(feed: Feed) -> str:
    """Render feed metadata as key=value lines."""
    lines = [f"title={feed.title}"]
    if feed.subtitle is not None:
        lines.append(f"subtitle={feed.subtitle}")
    lines.append(f"uri={feed.id}")
    lines.append(f"updated_at={format_timestamp(feed.updated)}")
    if feed.icon is not None:
        lines.append(f"icon={feed.icon}")
    if feed.logo is not None:
        lines.append(f"logo={feed.logo}")
    lines.extend(f"link={format_link(link)}" for link in feed.all_links())
    return "\n".join(lines)


def _metadata_as_dict(feed: Feed) -> dict:
    generator = feed.generator
    return {
        "title": feed.title,
        "uri": feed.id,
        "updated_at": format_timestamp(feed.updated),
        "subtitle": feed.subtitle,
        "icon": feed.icon,
        "logo": feed.logo,
        "generator": None if generator is None else {
            "name": generator.name,
            "uri": generator.uri,
            "version": generator.version,
        },
        "links": [format_link(link) for link in feed.all_links()],
        "entries": len(feed.entries),
    }


@click.group()
@click.option(
    "--file", "-f", "feed_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the Atom feed (default: feed.xml, or $FEEDKEEP_FILE)",
)
@click.option("--no-op", "-n", is_flag=True, help="Show what would change without writing anything to disk")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, feed_file: Path | None, no_op: bool, verbose: bool):
    """feedkeep - Manage an on-disk Atom feed's metadata and entries."""
    try:
        config = load_config()
    except ValueError as e:
        _fail(str(e))

    setup_logging(config["logging"]["log_dir"], config["logging"]["retention_days"], verbose)
    ctx.obj = {
        "file": feed_file or Path(config["feed_file"]),
        "no_op": no_op,
    }


@cli.command()
@click.option("--title", "-t", default=None, help="Human-readable title (required for a new feed)")
@click.option("--uri", "-u", default=None, help="Unique, permanent URI of the feed (required for a new feed)")
@click.option(
    "--rel-link", "-r", "rel_links", type=LINK, multiple=True,
    help="Related link, repeatable; suffixes [rel=X], [type=X], [title=X], [lang=X] are supported",
)
@click.option("--remove-links", "-R", is_flag=True, help="Remove all links except rel=self (replace all links if --rel-link is also given)")
@click.option("--icon", "-i", default=None, help="URL of a small image identifying the feed")
@click.option("--remove-icon", "-I", is_flag=True, help="Remove the icon; ignored if --icon is given")
@click.option("--logo", "-l", default=None, help="URL of a larger image identifying the feed")
@click.option("--remove-logo", "-L", is_flag=True, help="Remove the logo; ignored if --logo is given")
@click.option("--subtitle", "-s", default=None, help="Human-readable description of the feed")
@click.option("--remove-subtitle", "-S", is_flag=True, help="Remove the subtitle; ignored if --subtitle is given")
@click.option("--no-generator", "-G", is_flag=True, help=f"Do not disclose in the feed that {APP_NAME} generated it")
@click.option("--json", "output_json", is_flag=True, help="Print the resulting metadata as JSON")
@click.pass_context
def meta(
    ctx: click.Context,
    title: str | None,
    uri: str | None,
    rel_links: tuple,
    remove_links: bool,
    icon: str | None,
    remove_icon: bool,
    logo: str | None,
    remove_logo: bool,
    subtitle: str | None,
    remove_subtitle: bool,
    no_generator: bool,
    output_json: bool,
):
    """Set or modify the feed's metadata, then print it.

    Creates the feed if the file does not exist yet.
    """
    path = ctx.obj["file"]
    feed = _load_feed(path)

    try:
        result = update_metadata(
            feed,
            title=title,
            uri=uri,
            links=rel_links,
            remove_links=remove_links,
            icon=icon,
            remove_icon=remove_icon,
            logo=logo,
            remove_logo=remove_logo,
            subtitle=subtitle,
            remove_subtitle=remove_subtitle,
            no_generator=no_generator,
        )
    except FeedError as e:
        _fail(str(e))

    _save_feeds(ctx, (path, result.feed))

    if output_json:
        click.echo(json.dumps(_metadata_as_dict(result.feed), indent=2))
    else:
        click.echo(_metadata_as_text(result.feed))


@cli.command()
@click.argument("entry_id", metavar="ID")
@click.argument("title")
@click.option("--summary", "-s", default=None, help="A short summary of the entry")
@click.option("--content", "-c", default=None, help="The full content of the entry (its source is assumed to be ID)")
@click.option("--content-type", "-T", default=None, help="text, html, xhtml, or a MIME type; ignored without --content")
@click.option("--content-language", "-L", default=None, help="Language of the content, e.g. en-us; ignored without --content")
@click.option("--author-name", "-a", "author_names", multiple=True, help="Author name, repeatable")
@click.option("--author-email", "-A", "author_emails", multiple=True, help="Author email, repeatable, paired with --author-name by position")
@click.option("--published-at", "-d", default=None, help="RFC 3339 date and time the entry was published")
@click.option("--updated-at", "-D", default=None, help="RFC 3339 date and time the entry was last updated (default: now)")
@click.option("--replace", is_flag=True, help="Replace an existing entry with the same ID")
@click.pass_context
def add(
    ctx: click.Context,
    entry_id: str,
    title: str,
    summary: str | None,
    content: str | None,
    content_type: str | None,
    content_language: str | None,
    author_names: tuple,
    author_emails: tuple,
    published_at: str | None,
    updated_at: str | None,
    replace: bool,
):
    """Add an entry to the feed."""
    path = ctx.obj["file"]
    feed = _require_feed(path)

    try:
        entry = add_entry(
            feed,
            entry_id,
            title,
            summary=summary,
            content=content,
            content_type=content_type,
            content_language=content_language,
            author_names=author_names,
            author_emails=author_emails,
            published=published_at,
            updated=updated_at,
            replace=replace,
        )
    except FeedError as e:
        _fail(str(e))

    _save_feeds(ctx, (path, feed))
    click.echo(f"Added: {entry.title} ({entry.id})")
    click.echo(f"Entries: {len(feed.entries)}")


@cli.command()
@click.argument("count", type=click.IntRange(min=0))
@click.option(
    "--strategy", "-s",
    type=click.Choice([s.value for s in PruneStrategy]),
    default=PruneStrategy.PUBLISHED.value,
    show_default=True,
    help="Rank entries by publication date, by update date, or keep only those since --since-date",
)
@click.option("--since-date", "-d", default=None, callback=_since_date, help="YYYY-MM-DD or RFC 3339, used with --strategy since-date")
@click.option(
    "--reject-file", "-r",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Atom file receiving pruned entries (default: <feed>.rej.xml)",
)
@click.option("--no-reject", "-R", is_flag=True, help="Discard pruned entries instead of archiving them")
@click.pass_context
def prune(ctx: click.Context, count: int, strategy: str, since_date, reject_file: Path | None, no_reject: bool):
    """Remove entries from the feed, keeping COUNT of them as ranked by the strategy.

    Pruned entries are archived to a reject file unless --no-reject is given.
    """
    path = ctx.obj["file"]
    feed = _require_feed(path)

    try:
        result = prune_feed(feed, count, PruneStrategy(strategy), since=since_date)
    except FeedError as e:
        _fail(str(e))

    if result.changed:
        # Reject document first so a failed rename never drops pruned entries
        documents = []
        if not no_reject:
            reject_path = reject_file or default_reject_path(path)
            reject = merge_rejects(feed, result.removed, _load_feed(reject_path))
            documents.append((reject_path, reject))
        documents.append((path, feed))
        _save_feeds(ctx, *documents)

    click.echo(f"Kept: {result.kept_count}, Removed: {len(result.removed)}")
    for entry in result.removed:
        click.echo(f"  ✗ {entry.title} ({entry.id})")


@cli.command()
def version():
    """Display version info and exit."""
    click.echo(f"{APP_NAME} {VERSION}")


if __name__ == "__main__":
    cli()
