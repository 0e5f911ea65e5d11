"""Jinja2 environment for wikinews templates."""

from __future__ import annotations

from importlib import resources

import bleach
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

_ENV: Environment | None = None

ALLOWED_TAGS = ["a", "b", "i", "em", "strong", "span", "small", "sup", "sub", "ul", "li", "br"]
ALLOWED_ATTRIBUTES = {"a": ["href", "title"]}


def _sanitize_fragment(value: str | None) -> Markup:
    """Keep inline markup and links of a post, drop everything else."""
    if not value:
        return Markup("")
    clean_html = bleach.clean(
        value, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True
    )
    return Markup(clean_html)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        _ENV = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["fragment"] = _sanitize_fragment
    return _ENV
