"""Rendering helpers for feed output."""

from __future__ import annotations

import json

from .models import Feed
from .templating import get_environment

DEFAULT_TITLE = "Current events"


def build_feed_html(feed: Feed, title: str = DEFAULT_TITLE) -> str:
    """Render the feed as an HTML page using the Jinja2 template."""
    env = get_environment()
    template = env.get_template("feed.html.j2")
    return template.render(title=title, sections=feed.sections())


def build_feed_text(feed: Feed, title: str = DEFAULT_TITLE) -> str:
    """Render the feed as plain text using the Jinja2 template."""
    env = get_environment()
    template = env.get_template("feed.txt.j2")
    return template.render(title=title, sections=feed.sections())


def build_feed_json(feed: Feed) -> str:
    return json.dumps(feed.to_list(), indent=2, ensure_ascii=False)


def render(feed: Feed, output_format: str) -> str:
    if output_format == "json":
        return build_feed_json(feed)
    if output_format == "html":
        return build_feed_html(feed)
    if output_format == "text":
        return build_feed_text(feed)
    raise ValueError(f"Unsupported output format: {output_format}")
