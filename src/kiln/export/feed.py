"""RSS feed generation — produce an RSS 2.0 feed from the post list.

The newest ``rss.max_items`` posts are included.  Each item carries an
RFC 822 date, the site author, a plain-text description, and (when
``rss.include_full_content`` is set) the full HTML body as
``content:encoded``.
"""

from __future__ import annotations

import time
from email.utils import format_datetime
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element, SubElement, register_namespace, tostring

from kiln.content.models import plain_text
from kiln.export.output import ExportedFile, write_text_atomic

if TYPE_CHECKING:
    from datetime import datetime

    from kiln.config import KilnConfig
    from kiln.content.models import Post
    from kiln.observability.collector import BuildCollector

_ATOM_NS = "http://www.w3.org/2005/Atom"
_CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

register_namespace("atom", _ATOM_NS)
register_namespace("content", _CONTENT_NS)

# Plain-text description length when the post has none
_DESCRIPTION_LENGTH = 300


def rfc822(value: datetime) -> str:
    """Format a (naive local or aware) datetime as an RFC 822 date."""
    return format_datetime(value.astimezone())


def generate_feed(posts: list[Post], config: KilnConfig) -> str:
    """Generate the feed XML string.

    Args:
        posts: Posts in any order; they are sorted newest first here.
        config: Site configuration (``rss`` section, site metadata).

    Returns:
        Complete XML string suitable for writing to ``rss.file_name``.

    """
    rss_config = config.rss
    base = config.base_url.rstrip("/")
    items = sorted(posts, key=lambda p: p.date, reverse=True)[: rss_config.max_items]

    rss = Element("rss", {"version": "2.0"})
    channel = SubElement(rss, "channel")
    SubElement(channel, "title").text = rss_config.title or config.site_name
    SubElement(channel, "link").text = base
    SubElement(channel, "description").text = rss_config.description or config.description
    SubElement(channel, "language").text = rss_config.language
    if items:
        SubElement(channel, "lastBuildDate").text = rfc822(items[0].date)
    SubElement(
        channel,
        f"{{{_ATOM_NS}}}link",
        {"href": f"{base}/{rss_config.file_name}", "rel": "self", "type": "application/rss+xml"},
    )

    for post in items:
        link = base + post.url
        item = SubElement(channel, "item")
        SubElement(item, "title").text = post.title
        SubElement(item, "link").text = link
        SubElement(item, "guid", {"isPermaLink": "true"}).text = link
        SubElement(item, "pubDate").text = rfc822(post.date)
        if config.author:
            SubElement(item, "author").text = config.author
        description = post.metadata.get("description")
        if not description:
            description = plain_text(post.content[:_DESCRIPTION_LENGTH])
        SubElement(item, "description").text = str(description)
        if rss_config.include_full_content:
            SubElement(item, f"{{{_CONTENT_NS}}}encoded").text = post.content

    xml = tostring(rss, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + xml + "\n"


class FeedGenerator:
    """Writes the RSS feed into the output directory.

    Args:
        config: Site configuration.
        collector: Optional event collector.

    """

    def __init__(self, config: KilnConfig, collector: BuildCollector | None = None) -> None:
        self._config = config
        self._collector = collector

    def generate(self, posts: list[Post]) -> ExportedFile | None:
        """Write the feed; returns None when RSS is disabled."""
        if not self._config.rss.enabled:
            return None

        t0 = time.perf_counter()
        xml = generate_feed(posts, self._config)
        feed_path = self._config.output_path / self._config.rss.file_name
        size = write_text_atomic(feed_path, xml)
        elapsed = (time.perf_counter() - t0) * 1000

        if self._collector is not None:
            self._collector.record_build("write_feed", "posts", str(feed_path), duration_ms=elapsed)
        return ExportedFile(
            source_path=self._config.rss.file_name,
            output_path=feed_path,
            source_type="feed",
            size_bytes=size,
            duration_ms=elapsed,
        )
